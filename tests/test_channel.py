"""Tests for the newline-framed connection channel."""

import asyncio

import pytest

from pricetick.core.errors import TransportError
from pricetick.transport import Channel

from helpers import channel_pair, free_port


def test_each_send_is_one_receive():
    async def scenario():
        server_side, client_side, listener = await channel_pair()
        try:
            assert await server_side.send("PRICE:10")
            assert await server_side.send("PRICE:20")
            assert await client_side.receive() == "PRICE:10"
            assert await client_side.receive() == "PRICE:20"

            assert await client_side.send("PURCHASE:30")
            assert await server_side.receive() == "PURCHASE:30"
        finally:
            await server_side.close()
            await client_side.close()
            listener.close()

    asyncio.run(scenario())


def test_receive_returns_none_when_peer_closes():
    async def scenario():
        server_side, client_side, listener = await channel_pair()
        try:
            await server_side.close()
            assert await client_side.receive() is None
        finally:
            await client_side.close()
            listener.close()

    asyncio.run(scenario())


def test_close_is_idempotent_and_blocks_further_io():
    async def scenario():
        server_side, client_side, listener = await channel_pair()
        try:
            await client_side.close()
            await client_side.close()
            assert client_side.closed
            assert await client_side.send("FINISHED") is False
            assert await client_side.receive() is None
        finally:
            await server_side.close()
            listener.close()

    asyncio.run(scenario())


def test_multiline_messages_are_rejected():
    async def scenario():
        server_side, client_side, listener = await channel_pair()
        try:
            with pytest.raises(ValueError):
                await server_side.send("PRICE:1\nPRICE:2")
        finally:
            await server_side.close()
            await client_side.close()
            listener.close()

    asyncio.run(scenario())


def test_peer_port_is_exposed():
    async def scenario():
        server_side, client_side, listener = await channel_pair()
        try:
            local_port = client_side._writer.get_extra_info("sockname")[1]
            assert server_side.peer_port == local_port
        finally:
            await server_side.close()
            await client_side.close()
            listener.close()

    asyncio.run(scenario())


def test_connect_to_closed_port_raises_transport_error():
    async def scenario():
        with pytest.raises(TransportError):
            await Channel.connect("127.0.0.1", free_port())

    asyncio.run(scenario())
