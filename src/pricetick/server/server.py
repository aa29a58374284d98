"""
PurchaseServer - broadcasts prices, arbitrates bids, shuts down when done.
"""

import asyncio
import itertools
import logging
from typing import Optional

from ..config import Settings
from ..coordinators import PriceGenerator, PurchaseArbiter
from ..core.errors import MalformedMessage, TransportError
from ..protocol.messages import MessageType, create_decision_message, parse_message
from ..state import (
    ActivePrice,
    ClientRegistry,
    ClientSession,
    CompletionBarrier,
    EventLog,
    EventType,
)
from ..transport import Channel

logger = logging.getLogger(__name__)


class PurchaseServer:
    """
    Purchase server.

    Architecture:
    1. One task per accepted connection registers a session and serves
       its PURCHASE / FINISHED messages
    2. One task runs the price generator, which updates the active price
       and broadcasts it through the registry
    3. The arbiter answers each bid against the active price
    4. The completion barrier stops the server once every session finished

    All shared state lives in the price cell, the registry and the
    barrier; each guards itself.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        price_generator: Optional[PriceGenerator] = None,
    ):
        """
        Initialize PurchaseServer.

        Args:
            settings: Server settings (defaults if None)
            price_generator: Custom generator; must write to ``self.price``
                and broadcast through ``self.registry``. Built from
                settings if None.
        """
        self.settings = settings or Settings()
        self.host = self.settings.host
        self.port = self.settings.port

        # Shared state
        self.events = EventLog(max_events=self.settings.max_events)
        self.price = ActivePrice()
        self.registry = ClientRegistry(event_log=self.events)

        # Coordinators
        self.arbiter = PurchaseArbiter(self.price, event_log=self.events)
        self.barrier = CompletionBarrier(
            self.registry,
            on_shutdown=self.stop,
            event_log=self.events,
        )
        self.price_generator = price_generator or PriceGenerator(
            self.price,
            self.registry,
            min_price=self.settings.min_price,
            max_price=self.settings.max_price,
            interval=self.settings.price_interval,
            event_log=self.events,
        )

        self.bound_port: Optional[int] = None
        self._server: Optional[asyncio.AbstractServer] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop = asyncio.Event()
        self._started = asyncio.Event()
        self._stop_requested = False
        self._handlers = set()
        self._session_numbers = itertools.count(1)

        logger.info(f"[PurchaseServer] Initialized server for {self.host}:{self.port}")

    # ========================================================================
    # SERVER LIFECYCLE
    # ========================================================================

    async def serve(self):
        """
        Run the server until every client has finished or ``stop()`` is called.

        Raises:
            TransportError: the listening socket could not be bound
        """
        self._loop = asyncio.get_running_loop()
        if self._stop_requested:
            self._stop.set()

        try:
            self._server = await asyncio.start_server(
                self._handle_connection, self.host, self.port
            )
        except OSError as e:
            raise TransportError(f"cannot listen on {self.host}:{self.port}: {e}") from e

        self.bound_port = self._server.sockets[0].getsockname()[1]
        logger.info(f"[PurchaseServer] Server started on port {self.bound_port}")
        logger.info("[PurchaseServer] Waiting for client connections...")
        self._started.set()

        generator = asyncio.create_task(self.price_generator.run(self._stop))
        try:
            await self._stop.wait()
        finally:
            await self.shutdown(generator)

    async def wait_started(self) -> int:
        """
        Wait until the listening socket is bound.

        Returns:
            The bound port
        """
        await self._started.wait()
        return self.bound_port

    def stop(self):
        """Request shutdown. Safe to call from any thread, more than once."""
        if self._stop_requested:
            return
        self._stop_requested = True

        # Before serve() there is no loop yet; serve() checks the flag
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._stop.set)

    @property
    def stopped(self) -> bool:
        return self._stop_requested

    async def shutdown(self, generator: Optional[asyncio.Task] = None):
        """Close the listener, stop price generation and close remaining sessions."""
        logger.info("[PurchaseServer] Shutting down server")
        self._stop_requested = True
        self._stop.set()

        # Stop accepting first; wait_closed() below also waits for open connections
        if self._server is not None:
            self._server.close()

        if generator is not None:
            generator.cancel()
            try:
                await generator
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("[PurchaseServer] Price generator failed")

        await self.registry.close_all()

        if self._handlers:
            await asyncio.gather(*list(self._handlers), return_exceptions=True)

        if self._server is not None:
            await self._server.wait_closed()

        logger.info("[PurchaseServer] Server stopped")

    # ========================================================================
    # PER-CONNECTION HANDLING
    # ========================================================================

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ):
        task = asyncio.current_task()
        self._handlers.add(task)

        channel = Channel(reader, writer)
        session_id = self._new_session_id(channel)
        channel.name = session_id

        try:
            if self._stop_requested:
                return
            self.registry.register(ClientSession(session_id=session_id, channel=channel))
            await self._serve_session(session_id, channel)
        except TransportError as e:
            logger.error(f"[PurchaseServer] Client handler error for {session_id}: {e}")
        finally:
            self.registry.remove(session_id)
            await channel.close()
            self.events.emit(EventType.SESSION_CLOSED, session_id=session_id)
            logger.debug(f"[PurchaseServer] Connection closed for {session_id}")
            self._handlers.discard(task)

    async def _serve_session(self, session_id: str, channel: Channel):
        while True:
            line = await channel.receive()
            if line is None:
                return

            try:
                message = parse_message(line)
            except MalformedMessage as e:
                logger.warning(f"[PurchaseServer] Discarding message from {session_id}: {e}")
                continue

            if message.message_type is MessageType.PURCHASE:
                result = self.arbiter.arbitrate(session_id, message.value)
                if not await channel.send(create_decision_message(result.decision)):
                    # Keep reading: a FINISHED may already be buffered behind this bid
                    logger.debug(f"[PurchaseServer] Could not deliver decision to {session_id}")

            elif message.message_type is MessageType.FINISHED:
                self.barrier.notify_finished(session_id)
                return

            else:
                logger.warning(
                    f"[PurchaseServer] Discarding unexpected {message.message_type.value} "
                    f"from {session_id}"
                )

    def _new_session_id(self, channel: Channel) -> str:
        session_id = f"Client-{channel.peer_port}"
        if session_id in self.registry or self.barrier.has_finished(session_id):
            session_id = f"{session_id}-{next(self._session_numbers)}"
        return session_id
