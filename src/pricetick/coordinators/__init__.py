"""
Server-side coordinators.

The price generator drives the market; the arbiter judges bids.
"""

from .arbiter import PurchaseArbiter
from .price_generator import PriceGenerator

__all__ = ["PurchaseArbiter", "PriceGenerator"]
