"""
Purchase demo with custom bidding strategies.

This demonstrates a price broadcast market where:
- 1 server publishes a random price every half second
- 3 clients with different strategies bid against it
- Each client stops after 5 approved purchases
- The server shuts itself down once every client has finished
"""

import asyncio
import argparse
import logging

from pricetick import PurchaseServer, Settings, run_client
from pricetick.agents import BidAction, FixedBudgetStrategy, RandomBudgetStrategy, SkipAction
from pricetick.state import EventType

logging.basicConfig(level=logging.WARNING, format="%(message)s")
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Only show user-facing logs
logging.getLogger("pricetick.coordinators.arbiter").setLevel(logging.INFO)
logging.getLogger("pricetick.state.barrier").setLevel(logging.INFO)


class BargainHunter:
    """Bids only on prices in the bottom quarter of the range, and bids low."""

    def __init__(self, min_price: int, max_price: int):
        self.threshold = min_price + (max_price - min_price) // 4

    async def decide(self, client_id: str, price: int):
        if price <= self.threshold:
            return BidAction(max_price=price)
        return SkipAction(budget=self.threshold)


def print_event_log(events, label: str):
    """Print a formatted event log."""
    print(f"\n{label} EVENTS ({len(events)}):")
    for i, event in enumerate(events, 1):
        timestamp = event.timestamp.strftime("%H:%M:%S.%f")[:-3]
        event_info = f"  {i}. [{timestamp}] {event.event_type.value}"
        if event.session_id:
            event_info += f" ({event.session_id})"
        if "price" in event.data:
            event_info += f" - price {event.data['price']}"
        if "bid" in event.data:
            event_info += f", bid {event.data['bid']}"
        print(event_info)
    print()


async def main(show_state: bool = False):
    """Run the purchase demo."""
    print("\n" + "=" * 70)
    print("PURCHASE DEMO")
    print("=" * 70 + "\n")

    settings = Settings(host="127.0.0.1", port=0, price_interval=0.5, target_purchases=5)
    server = PurchaseServer(settings)
    server_task = asyncio.create_task(server.serve())
    port = await server.wait_started()

    client_settings = settings.model_copy(update={"port": port})
    strategies = {
        "Hunter": BargainHunter(settings.min_price, settings.max_price),
        "Steady": FixedBudgetStrategy(60),
        "Gambler": RandomBudgetStrategy(settings.min_budget, settings.max_budget),
    }

    results = await asyncio.gather(
        *(run_client(name, client_settings, strategy) for name, strategy in strategies.items())
    )
    await server_task

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    for result in results:
        if result is None:
            continue
        print(
            f"  {result.client_id:8} approved {result.approved}, denied {result.denied}, "
            f"skipped {result.skipped} of {result.prices_seen} prices"
        )

    prices = [e.data["price"] for e in server.events.get_events(EventType.PRICE_PUBLISHED)]
    print(f"\nPrices published: {len(prices)} (min {min(prices)}, max {max(prices)})")

    if show_state:
        print_event_log(server.events.get_events(), "SERVER")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Purchase Demo")
    parser.add_argument(
        "--show-state",
        action="store_true",
        help="Show the server's full event log",
    )
    args = parser.parse_args()

    asyncio.run(main(show_state=args.show_state))
