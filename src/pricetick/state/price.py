"""
The process-wide active price.
"""

import threading
from typing import Optional, Tuple


class ActivePrice:
    """
    Single-writer cell holding the current selling price.

    Only the price generator writes it. A bid is compared against the
    price under the same lock as the read, so it is always judged against
    one consistent value.
    """

    def __init__(self, initial: Optional[int] = None):
        self._lock = threading.Lock()
        self._value = initial

    def get(self) -> Optional[int]:
        """Current price, or None before the first tick."""
        with self._lock:
            return self._value

    def set(self, price: int):
        """Replace the current price; the previous value is discarded."""
        with self._lock:
            self._value = price

    def covers(self, max_price: int) -> Tuple[Optional[int], bool]:
        """
        Compare a bid against the current price atomically.

        Returns:
            The price the bid was judged on, and whether ``max_price``
            covers it. There is no price before the first tick, so every
            bid is refused until then.
        """
        with self._lock:
            price = self._value
            return price, price is not None and max_price >= price
