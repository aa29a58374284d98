"""
Purchase Arbiter.

Judges each purchase bid against the price that is active at the
moment of arbitration.
"""

import logging
from typing import Optional

from ..core.types import ArbitrationResult, Decision
from ..state.events import EventLog, EventType
from ..state.price import ActivePrice

logger = logging.getLogger(__name__)


class PurchaseArbiter:
    """
    Approves a bid when its maximum price covers the active price.

    The read and the comparison happen under the price lock, so a bid is
    always judged against one consistent price. That price may already be
    newer than the one the client reacted to; this is accepted behavior,
    the latest price wins.
    """

    def __init__(self, price: ActivePrice, event_log: Optional[EventLog] = None):
        """
        Initialize arbiter.

        Args:
            price: Shared active price cell
            event_log: Optional diagnostic event log
        """
        self._price = price
        self._event_log = event_log

    def arbitrate(self, session_id: str, max_price: int) -> ArbitrationResult:
        """
        Decide a single bid.

        Args:
            session_id: Session that sent the bid
            max_price: Highest price the client accepts

        Returns:
            ArbitrationResult with the decision and the price it was judged on.
            Bids arriving before the first price are denied.
        """
        price, approved = self._price.covers(max_price)

        decision = Decision.APPROVED if approved else Decision.DENIED
        result = ArbitrationResult(
            session_id=session_id,
            bid=max_price,
            price=price,
            decision=decision,
        )

        verb = "APPROVED" if approved else "DENIED"
        logger.info(
            f"[PurchaseArbiter] Purchase {verb} for {session_id} "
            f"(max: {max_price}, price: {price if price is not None else 'none'})"
        )

        if self._event_log is not None:
            self._event_log.emit(
                EventType.BID_APPROVED if approved else EventType.BID_DENIED,
                session_id=session_id,
                data={"bid": max_price, "price": price},
            )

        return result
