"""
Client registry for the purchase server.

Tracks the live client sessions and broadcasts messages to all of them,
dropping any session whose send fails along the way.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ..transport import Channel
from .events import EventLog, EventType

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ClientSession:
    """One live client connection tracked by the server."""

    session_id: str
    channel: Channel
    alive: bool = True
    connected_at: datetime = field(default_factory=datetime.now)


class ClientRegistry:
    """
    Thread-safe set of active client sessions.

    The lock guards only the session map. Broadcasts take a snapshot
    under the lock, send with the lock released, then prune the failed
    sessions under the lock again, so a slow peer never blocks
    registration.
    """

    def __init__(self, event_log: Optional[EventLog] = None):
        """
        Initialize registry.

        Args:
            event_log: Optional diagnostic event log
        """
        self._sessions: Dict[str, ClientSession] = {}
        self._lock = threading.Lock()
        self._event_log = event_log

    def register(self, session: ClientSession) -> ClientSession:
        """
        Add a session.

        Args:
            session: Session to track

        Returns:
            The registered session, used as the handle for later calls

        Raises:
            ValueError: a live session with the same id is already registered
        """
        with self._lock:
            if session.session_id in self._sessions:
                raise ValueError(f"Session {session.session_id} already registered")
            self._sessions[session.session_id] = session
            size = len(self._sessions)

        logger.info(f"[ClientRegistry] Registered {session.session_id}. Total: {size}")
        self._emit(EventType.SESSION_REGISTERED, session.session_id, {"size": size})
        return session

    def remove(self, session_id: str) -> Optional[ClientSession]:
        """
        Stop tracking a session. Does not close its channel.

        Returns:
            The removed session, or None if it was not registered
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session:
                session.alive = False
        return session

    def get(self, session_id: str) -> Optional[ClientSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def size(self) -> int:
        """Number of live sessions."""
        with self._lock:
            return len(self._sessions)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    async def broadcast(self, message: str) -> int:
        """
        Send ``message`` to every registered session.

        Sessions whose send fails are removed and closed as part of the
        same pass. There is no retry.

        Args:
            message: Message text

        Returns:
            Number of sessions the message was delivered to
        """
        with self._lock:
            sessions = list(self._sessions.values())

        if not sessions:
            return 0

        results = await asyncio.gather(
            *(session.channel.send(message) for session in sessions),
            return_exceptions=True,
        )

        failed: List[ClientSession] = []
        for session, result in zip(sessions, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"[ClientRegistry] Unexpected error sending to {session.session_id}: {result!r}"
                )
                failed.append(session)
            elif not result:
                failed.append(session)

        if failed:
            with self._lock:
                for session in failed:
                    session.alive = False
                    if self._sessions.get(session.session_id) is session:
                        del self._sessions[session.session_id]
                size = len(self._sessions)

            for session in failed:
                logger.warning(
                    f"[ClientRegistry] Dropped {session.session_id} after failed send. Total: {size}"
                )
                self._emit(EventType.SESSION_PRUNED, session.session_id, {"size": size})
                await session.channel.close()

        return len(sessions) - len(failed)

    async def close_all(self):
        """Close and drop every remaining session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            session.alive = False
            await session.channel.close()

        if sessions:
            logger.info(f"[ClientRegistry] Closed {len(sessions)} remaining sessions")

    def _emit(self, event_type: EventType, session_id: str, data: dict):
        if self._event_log is not None:
            self._event_log.emit(event_type, session_id=session_id, data=data)
