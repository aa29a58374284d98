"""
Event types and the diagnostic event log.

Events record significant facts on the server: sessions coming and
going, prices being published, bids being decided. They exist for
diagnostics only and are never persisted.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """
    Types of significant server events.

    NOT everything needs to be an event - only facts worth inspecting
    after the fact.
    """

    # Session lifecycle
    SESSION_REGISTERED = "session_registered"
    SESSION_PRUNED = "session_pruned"
    SESSION_CLOSED = "session_closed"
    SESSION_FINISHED = "session_finished"

    # Market
    PRICE_PUBLISHED = "price_published"
    BID_APPROVED = "bid_approved"
    BID_DENIED = "bid_denied"

    # Server lifecycle
    SHUTDOWN_TRIGGERED = "shutdown_triggered"


@dataclass(frozen=True)
class Event:
    """
    Immutable record of something that happened on the server.

    Example:
        Event(
            event_type=EventType.BID_DENIED,
            session_id="Client-53122",
            data={"bid": 40, "price": 71},
        )
    """

    event_type: EventType
    session_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


EventListener = Callable[[Event], None]


class EventLog:
    """
    Bounded, thread-safe, append-only event log.

    Oldest events are dropped once ``max_events`` is reached.
    """

    def __init__(self, max_events: int = 1000):
        self._events: Deque[Event] = deque(maxlen=max_events)
        self._listeners: List[EventListener] = []
        self._lock = threading.Lock()

    def emit(
        self,
        event_type: EventType,
        session_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Event:
        """
        Append an event and notify listeners.

        A listener that raises is logged and skipped; it never reaches the
        code that emitted the event.

        Args:
            event_type: Type of event
            session_id: Session the event concerns, if any
            data: Event-specific data

        Returns:
            Created event
        """
        event = Event(event_type=event_type, session_id=session_id, data=data or {})
        with self._lock:
            self._events.append(event)
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"[EventLog] Listener failed on {event_type.value}")
        return event

    def subscribe(self, listener: EventListener):
        """Call ``listener`` for every event emitted from now on."""
        with self._lock:
            self._listeners.append(listener)

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        session_id: Optional[str] = None,
    ) -> List[Event]:
        """
        Get events with optional filters.

        Args:
            event_type: Filter by event type
            session_id: Filter by session

        Returns:
            List of events, oldest first
        """
        with self._lock:
            events = list(self._events)

        if event_type:
            events = [e for e in events if e.event_type == event_type]

        if session_id:
            events = [e for e in events if e.session_id == session_id]

        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
