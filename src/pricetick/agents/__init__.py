"""
Bidding strategies for pricetick client agents.

Strategies implement the BiddingStrategy protocol and return structured
actions that the client agent executes.
"""

from .base import BiddingStrategy
from .actions import (
    BiddingAction,
    BidAction,
    SkipAction,
)
from .strategies import FixedBudgetStrategy, RandomBudgetStrategy

__all__ = [
    # Protocol
    "BiddingStrategy",
    # Action models
    "BiddingAction",
    "BidAction",
    "SkipAction",
    # Strategies
    "FixedBudgetStrategy",
    "RandomBudgetStrategy",
]
