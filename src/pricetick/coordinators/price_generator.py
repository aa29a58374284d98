"""
Price Generator.

Publishes a new random selling price on a fixed interval and pushes it
to every connected client.
"""

import asyncio
import logging
import random
from typing import Optional

from ..protocol.messages import create_price_message
from ..state.events import EventLog, EventType
from ..state.price import ActivePrice
from ..state.registry import ClientRegistry

logger = logging.getLogger(__name__)


class PriceGenerator:
    """
    Periodic price publisher.

    Each tick:
    1. Draw a uniform integer in [min_price, max_price]
    2. Store it as the active price
    3. Broadcast ``PRICE:<n>`` through the registry

    The first tick runs immediately. Send failures are handled by the
    registry and never stop the loop.
    """

    def __init__(
        self,
        price: ActivePrice,
        registry: ClientRegistry,
        min_price: int = 10,
        max_price: int = 100,
        interval: float = 3.0,
        rng: Optional[random.Random] = None,
        event_log: Optional[EventLog] = None,
    ):
        """
        Initialize price generator.

        Args:
            price: Shared active price cell (this generator is its only writer)
            registry: Registry to broadcast through
            min_price: Lowest price, inclusive
            max_price: Highest price, inclusive
            interval: Seconds between ticks
            rng: Random source. A fresh, OS-seeded one is used if None
            event_log: Optional diagnostic event log
        """
        if min_price > max_price:
            raise ValueError(f"min_price {min_price} exceeds max_price {max_price}")

        self._price = price
        self._registry = registry
        self.min_price = min_price
        self.max_price = max_price
        self.interval = interval
        self._rng = rng or random.Random()
        self._event_log = event_log
        self.ticks = 0

    def next_price(self) -> int:
        return self._rng.randint(self.min_price, self.max_price)

    async def tick(self) -> int:
        """
        Publish one new price.

        Returns:
            The published price
        """
        price = self.next_price()
        self._price.set(price)
        self.ticks += 1

        logger.info(f"[PriceGenerator] Price generated: {price}")

        delivered = await self._registry.broadcast(create_price_message(price))

        logger.debug(f"[PriceGenerator] Price {price} delivered to {delivered} clients")
        if self._event_log is not None:
            self._event_log.emit(
                EventType.PRICE_PUBLISHED,
                data={"price": price, "delivered": delivered},
            )
        return price

    async def run(self, stop: asyncio.Event):
        """
        Publish prices until ``stop`` is set.

        Args:
            stop: Event that ends the loop; also interrupts the wait
                between ticks
        """
        logger.debug(
            f"[PriceGenerator] Starting: range [{self.min_price}, {self.max_price}], "
            f"every {self.interval}s"
        )

        while not stop.is_set():
            await self.tick()

            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

        logger.debug(f"[PriceGenerator] Stopped after {self.ticks} ticks")
