"""
Server side of pricetick.
"""

from .server import PurchaseServer

__all__ = ["PurchaseServer"]
