"""
Built-in bidding strategies.
"""

import random
from typing import Optional

from .actions import BiddingAction, BidAction, SkipAction


class RandomBudgetStrategy:
    """
    Draws a fresh budget for every price and bids it if it covers the price.

    The budget, not the price, is what goes on the wire, so a bid can
    still win against a newer, higher price as long as the budget covers it.
    """

    def __init__(
        self,
        min_budget: int = 10,
        max_budget: int = 75,
        rng: Optional[random.Random] = None,
    ):
        if min_budget > max_budget:
            raise ValueError(f"min_budget {min_budget} exceeds max_budget {max_budget}")
        self.min_budget = min_budget
        self.max_budget = max_budget
        self._rng = rng or random.Random()

    async def decide(self, client_id: str, price: int) -> BiddingAction:
        budget = self._rng.randint(self.min_budget, self.max_budget)
        if budget >= price:
            return BidAction(max_price=budget)
        return SkipAction(budget=budget)


class FixedBudgetStrategy:
    """Always bids the same budget when it covers the price."""

    def __init__(self, budget: int):
        self.budget = budget

    async def decide(self, client_id: str, price: int) -> BiddingAction:
        if self.budget >= price:
            return BidAction(max_price=self.budget)
        return SkipAction(budget=self.budget)
