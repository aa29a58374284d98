"""End-to-end tests for the purchase server over loopback sockets."""

import asyncio
from types import SimpleNamespace

import pytest

from pricetick.agents import FixedBudgetStrategy
from pricetick.client import run_client
from pricetick.config import Settings
from pricetick.core.errors import TransportError
from pricetick.server import PurchaseServer
from pricetick.state import ClientSession, EventType
from pricetick.transport import Channel

from helpers import FakeChannel


def fast_settings(**overrides):
    values = dict(
        host="127.0.0.1",
        port=0,
        min_price=10,
        max_price=20,
        price_interval=0.02,
        target_purchases=2,
    )
    values.update(overrides)
    return Settings(**values)


async def receive_until(channel, wanted):
    """Skip price broadcasts until one of ``wanted`` arrives."""
    while True:
        message = await asyncio.wait_for(channel.receive(), timeout=2)
        if message is None or message in wanted:
            return message


async def wait_for_sessions(server, count):
    for _ in range(250):
        if server.registry.size() == count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} sessions, have {server.registry.size()}")


def test_all_clients_finish_and_server_shuts_down():
    settings = fast_settings(price_interval=0.05)
    server = PurchaseServer(settings)

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        port = await server.wait_started()
        client_settings = settings.model_copy(update={"port": port})

        results = await asyncio.wait_for(
            asyncio.gather(
                *(
                    run_client(f"Client-{i}", client_settings, strategy=FixedBudgetStrategy(100))
                    for i in range(1, 4)
                )
            ),
            timeout=10,
        )
        await asyncio.wait_for(server_task, timeout=5)
        return results

    results = asyncio.run(scenario())

    assert all(result.finished and result.approved == 2 for result in results)
    assert server.stopped
    assert server.barrier.completed == 3
    assert server.registry.size() == 0
    assert len(server.events.get_events(EventType.SHUTDOWN_TRIGGERED)) == 1
    assert len(server.events.get_events(EventType.BID_APPROVED)) >= 6


def test_server_waits_for_the_slowest_client():
    settings = fast_settings()
    server = PurchaseServer(settings)

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        port = await server.wait_started()

        slow = await Channel.connect("127.0.0.1", port)
        await wait_for_sessions(server, 1)
        fast = await run_client(
            "fast",
            settings.model_copy(update={"port": port}),
            strategy=FixedBudgetStrategy(100),
        )
        await asyncio.sleep(0.1)
        still_running = not server_task.done()

        await slow.send("FINISHED")
        await asyncio.wait_for(server_task, timeout=5)
        await slow.close()
        return fast, still_running

    fast, still_running = asyncio.run(scenario())

    assert fast.finished
    assert still_running
    assert server.barrier.completed == 2


def test_malformed_bid_is_discarded_and_session_kept():
    server = PurchaseServer(fast_settings())

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        port = await server.wait_started()
        channel = await Channel.connect("127.0.0.1", port)

        await channel.send("PURCHASE:many")
        await channel.send("HELLO")
        await channel.send("PURCHASE:1000")
        decision = await receive_until(channel, {"APPROVED", "DENIED"})

        await channel.send("PURCHASE:1")
        low_decision = await receive_until(channel, {"APPROVED", "DENIED"})

        await channel.send("FINISHED")
        await asyncio.wait_for(server_task, timeout=5)
        await channel.close()
        return decision, low_decision

    decision, low_decision = asyncio.run(scenario())

    assert decision == "APPROVED"
    assert low_decision == "DENIED"


def test_disconnected_client_is_dropped():
    server = PurchaseServer(fast_settings())

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        port = await server.wait_started()

        leaver = await Channel.connect("127.0.0.1", port)
        stayer = await Channel.connect("127.0.0.1", port)
        await wait_for_sessions(server, 2)
        sessions_before = server.registry.size()

        await leaver.close()
        await wait_for_sessions(server, 1)
        sessions_after = server.registry.size()

        await stayer.send("FINISHED")
        await asyncio.wait_for(server_task, timeout=5)
        await stayer.close()
        return sessions_before, sessions_after

    before, after = asyncio.run(scenario())

    assert before == 2
    assert after == 1
    assert server.barrier.completed == 1


def test_stop_from_another_thread():
    server = PurchaseServer(fast_settings())

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        await server.wait_started()
        await asyncio.to_thread(server.stop)
        await asyncio.wait_for(server_task, timeout=5)

    asyncio.run(scenario())
    assert server.stopped
    assert server.barrier.triggered is False


def test_stop_closes_connected_clients():
    server = PurchaseServer(fast_settings())

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        port = await server.wait_started()
        channel = await Channel.connect("127.0.0.1", port)
        await wait_for_sessions(server, 1)

        server.stop()
        await asyncio.wait_for(server_task, timeout=5)
        last = await receive_until(channel, set())
        await channel.close()
        return last

    assert asyncio.run(scenario()) is None


def test_bind_failure_raises_transport_error():
    async def scenario():
        first = PurchaseServer(fast_settings())
        first_task = asyncio.create_task(first.serve())
        port = await first.wait_started()
        try:
            second = PurchaseServer(fast_settings(port=port))
            with pytest.raises(TransportError):
                await second.serve()
        finally:
            first.stop()
            await asyncio.wait_for(first_task, timeout=5)

    asyncio.run(scenario())


def test_new_peer_never_takes_the_id_of_a_finished_session():
    server = PurchaseServer(fast_settings())
    server.registry.register(ClientSession(session_id="Client-5000", channel=FakeChannel("Client-5000")))
    server.registry.register(ClientSession(session_id="Client-7000", channel=FakeChannel("Client-7000")))
    server.barrier.notify_finished("Client-5000")

    session_id = server._new_session_id(SimpleNamespace(peer_port=5000))

    assert session_id != "Client-5000"
    assert session_id.startswith("Client-5000-")


def test_failing_event_listener_does_not_break_the_run():
    settings = fast_settings(price_interval=0.05)
    server = PurchaseServer(settings)

    def broken(event):
        raise RuntimeError("listener failed")

    server.events.subscribe(broken)

    async def scenario():
        server_task = asyncio.create_task(server.serve())
        port = await server.wait_started()
        client_settings = settings.model_copy(update={"port": port})
        results = await asyncio.wait_for(
            asyncio.gather(
                run_client("Client-1", client_settings, strategy=FixedBudgetStrategy(100)),
                run_client("Client-2", client_settings, strategy=FixedBudgetStrategy(100)),
            ),
            timeout=10,
        )
        await asyncio.wait_for(server_task, timeout=5)
        return results

    results = asyncio.run(scenario())

    assert all(result.finished for result in results)
    assert server.price_generator.ticks >= 1
    assert len(server.events.get_events(EventType.SHUTDOWN_TRIGGERED)) == 1
    assert server.registry.size() == 0
