"""
Bidding strategy protocol.

Client agents delegate the bid/skip decision to a strategy. Anything
with a matching ``decide`` coroutine works: a fixed budget, a random
budget, a model-driven pricer.
"""

from typing import Protocol

from .actions import BiddingAction


class BiddingStrategy(Protocol):
    """
    Decides how a client reacts to one price broadcast.

    Example Implementation:
        class HalfPriceHunter:
            def __init__(self, budget: int):
                self.budget = budget

            async def decide(self, client_id, price):
                if price * 2 <= self.budget:
                    return BidAction(max_price=self.budget)
                return SkipAction(budget=self.budget)
    """

    async def decide(self, client_id: str, price: int) -> BiddingAction:
        """
        Decide whether to bid on ``price``.

        Args:
            client_id: Identifier of the deciding client
            price: Price just broadcast by the server

        Returns:
            BidAction to send a purchase request, SkipAction otherwise
        """
        ...
