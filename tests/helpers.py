"""Shared helpers for the test suite."""

import asyncio
import socket

from pricetick.transport import Channel


def free_port() -> int:
    """A localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def channel_pair():
    """
    Connect two channels over loopback.

    Returns:
        (server_side, client_side, listener); close the listener when done
    """
    accepted = asyncio.get_running_loop().create_future()

    async def on_connect(reader, writer):
        accepted.set_result(Channel(reader, writer, name="server-side"))

    listener = await asyncio.start_server(on_connect, "127.0.0.1", 0)
    port = listener.sockets[0].getsockname()[1]

    client_side = await Channel.connect("127.0.0.1", port, name="client-side")
    server_side = await accepted
    return server_side, client_side, listener


class FakeChannel:
    """In-memory stand-in for Channel used where no socket is needed."""

    def __init__(self, name: str, healthy: bool = True, error: Exception = None):
        self.name = name
        self.healthy = healthy
        self.error = error
        self.sent = []
        self.close_calls = 0

    async def send(self, message: str) -> bool:
        if self.error is not None:
            raise self.error
        if not self.healthy:
            return False
        self.sent.append(message)
        return True

    async def close(self):
        self.close_calls += 1
