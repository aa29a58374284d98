"""
Core data types for pricetick.

These types are shared by the server, the client agents and the
coordinators that run on the server side.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Decision(Enum):
    """Outcome of arbitrating one purchase bid."""

    APPROVED = "APPROVED"
    DENIED = "DENIED"


class AgentState(Enum):
    """States of a client agent's control loop."""

    CONNECTED = "connected"
    AWAITING_PRICE = "awaiting_price"
    BIDDING = "bidding"
    SKIPPING = "skipping"
    FINISHED = "finished"


@dataclass(frozen=True)
class ArbitrationResult:
    """
    One arbitration decision with its rationale.

    The price is the value that was active when the bid was judged,
    which may be newer than the price the client was reacting to.
    """

    session_id: str
    bid: int
    price: Optional[int]
    decision: Decision
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def approved(self) -> bool:
        return self.decision is Decision.APPROVED


@dataclass
class AgentResult:
    """Summary returned by a client agent when its loop exits."""

    client_id: str
    state: AgentState
    approved: int = 0
    denied: int = 0
    bids_sent: int = 0
    skipped: int = 0
    prices_seen: int = 0

    @property
    def finished(self) -> bool:
        return self.state is AgentState.FINISHED
