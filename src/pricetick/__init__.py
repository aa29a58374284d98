"""
pricetick - concurrent price broadcast and purchase arbitration.
"""

from .client import ClientAgent, run_client
from .config import Settings, load_settings
from .server import PurchaseServer

__version__ = "0.1.0"
__all__ = ["ClientAgent", "PurchaseServer", "Settings", "load_settings", "run_client"]
