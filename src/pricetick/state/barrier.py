"""
Completion barrier: decides when every client is done.
"""

import logging
import threading
from typing import Callable, Optional, Set

from .events import EventLog, EventType
from .registry import ClientRegistry

logger = logging.getLogger(__name__)


class CompletionBarrier:
    """
    Counts finished sessions against the registry and fires shutdown once.

    A finished session is removed from the registry, so the barrier is
    satisfied when the registry is empty and at least one session has
    finished. The removal, the count and the comparison happen under one
    lock, so concurrent completion signals cannot both trigger shutdown.
    """

    def __init__(
        self,
        registry: ClientRegistry,
        on_shutdown: Callable[[], None],
        event_log: Optional[EventLog] = None,
    ):
        """
        Initialize barrier.

        Args:
            registry: Registry of live sessions
            on_shutdown: Called exactly once, synchronously, when all
                sessions have finished. Must not block.
            event_log: Optional diagnostic event log
        """
        self._registry = registry
        self._on_shutdown = on_shutdown
        self._event_log = event_log
        self._lock = threading.Lock()
        self._finished: Set[str] = set()
        self._completed = 0
        self._triggered = False

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def total(self) -> int:
        """Finished sessions plus sessions still registered."""
        with self._lock:
            return self._completed + self._registry.size()

    @property
    def triggered(self) -> bool:
        with self._lock:
            return self._triggered

    def has_finished(self, session_id: str) -> bool:
        """True if a session with this id has already finished."""
        with self._lock:
            return session_id in self._finished

    def notify_finished(self, session_id: str) -> bool:
        """
        Record that a session reached its purchase target.

        An id that already finished counts again only if a live session
        has since been registered under it.

        Args:
            session_id: Session that sent the completion signal

        Returns:
            True if this call triggered the shutdown
        """
        with self._lock:
            if session_id in self._finished and session_id not in self._registry:
                logger.warning(f"[CompletionBarrier] Duplicate completion from {session_id}")
                return False

            self._registry.remove(session_id)
            self._finished.add(session_id)
            self._completed += 1
            completed = self._completed
            remaining = self._registry.size()

            triggered = not self._triggered and remaining == 0
            if triggered:
                self._triggered = True

        logger.info(
            f"[CompletionBarrier] {session_id} finished purchasing. "
            f"Completed: {completed}/{completed + remaining}"
        )
        self._emit(
            EventType.SESSION_FINISHED,
            session_id,
            {"completed": completed, "remaining": remaining},
        )

        if not triggered:
            return False

        logger.info("[CompletionBarrier] All clients have finished. Shutting down server")
        self._emit(EventType.SHUTDOWN_TRIGGERED, session_id, {"completed": completed})
        self._on_shutdown()
        return True

    def _emit(self, event_type: EventType, session_id: str, data: dict):
        if self._event_log is not None:
            self._event_log.emit(event_type, session_id=session_id, data=data)
