"""
Client side of pricetick.
"""

from .client import ClientAgent, default_client_id, run_client

__all__ = ["ClientAgent", "default_client_id", "run_client"]
