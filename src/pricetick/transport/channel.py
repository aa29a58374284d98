"""
Connection channel for pricetick.

Wraps an asyncio stream pair as a bidirectional channel of discrete,
newline-framed text messages. Used on both sides: the server wraps each
accepted connection, the client agent wraps its own connection.
"""

import asyncio
import logging
from typing import Optional

from ..core.errors import TransportError

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
DELIMITER = b"\n"


class Channel:
    """
    A connection to a single peer.

    One ``send`` on one side corresponds to exactly one ``receive`` on the
    other side. Closing releases the underlying transport once.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        name: Optional[str] = None,
    ):
        """
        Initialize channel.

        Args:
            reader: Stream to read messages from
            writer: Stream to write messages to
            name: Optional label used in log messages
        """
        self._reader = reader
        self._writer = writer
        self._send_lock = asyncio.Lock()
        self._closed = False

        peer = writer.get_extra_info("peername")
        self.peer_host: Optional[str] = peer[0] if peer else None
        self.peer_port: Optional[int] = peer[1] if peer else None
        self.name = name or f"{self.peer_host}:{self.peer_port}"

    @classmethod
    async def connect(cls, host: str, port: int, name: Optional[str] = None) -> "Channel":
        """
        Open a channel to a listening server.

        Raises:
            TransportError: the connection could not be established
        """
        try:
            reader, writer = await asyncio.open_connection(host=host, port=port)
        except OSError as e:
            raise TransportError(f"cannot connect to {host}:{port}: {e}") from e

        logger.debug(f"[Channel] Connected to {host}:{port}")
        return cls(reader, writer, name=name)

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, message: str) -> bool:
        """
        Send one message.

        Args:
            message: Message text without line breaks

        Returns:
            True if the message was written, False if the channel is closed
            or the transport failed
        """
        if "\n" in message or "\r" in message:
            raise ValueError(f"message must be a single line: {message!r}")

        if self._closed or self._writer.is_closing():
            return False

        data = message.encode(ENCODING) + DELIMITER
        async with self._send_lock:
            try:
                self._writer.write(data)
                await self._writer.drain()
            except (ConnectionError, OSError) as e:
                logger.debug(f"[Channel] Send to {self.name} failed: {e}")
                return False

        logger.debug(f"[Channel] -> {self.name}: {message}")
        return True

    async def receive(self) -> Optional[str]:
        """
        Wait for the next message.

        Returns:
            Message text, or None at end of stream

        Raises:
            TransportError: the connection was reset or the line overran
                the stream buffer
        """
        if self._closed:
            return None

        try:
            line = await self._reader.readline()
        except (ConnectionError, OSError) as e:
            raise TransportError(f"receive from {self.name} failed: {e}") from e
        except ValueError as e:
            # StreamReader raises ValueError when a line exceeds its limit
            raise TransportError(f"receive from {self.name} failed: {e}") from e

        if not line:
            return None
        if not line.endswith(DELIMITER):
            # Partial line at EOF is not a message
            logger.debug(f"[Channel] Dropping partial message from {self.name}")
            return None

        message = line.decode(ENCODING, errors="replace").rstrip("\r\n")
        logger.debug(f"[Channel] <- {self.name}: {message}")
        return message

    async def close(self):
        """Close the channel. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"[Channel] Error while closing {self.name}: {e}")

        logger.debug(f"[Channel] Closed {self.name}")
