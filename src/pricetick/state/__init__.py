"""
Shared server state.

Provides:
- Event types and the diagnostic event log
- The active price cell
- The client registry with broadcast-and-prune
- The completion barrier
"""

from .events import Event, EventLog, EventType
from .price import ActivePrice
from .registry import ClientRegistry, ClientSession
from .barrier import CompletionBarrier

__all__ = [
    # Events
    "Event",
    "EventLog",
    "EventType",
    # Shared state
    "ActivePrice",
    "ClientRegistry",
    "ClientSession",
    "CompletionBarrier",
]
