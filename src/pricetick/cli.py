"""
Command line entry point.

    pricetick                 server plus the configured number of clients
    pricetick server          server only
    pricetick client [NAME]   one client
    pricetick both            same as no mode
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .client import default_client_id, run_client
from .config import Settings, load_settings
from .core.errors import ConfigurationError, TransportError
from .server import PurchaseServer

logger = logging.getLogger(__name__)

MODES = ("server", "client", "both")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pricetick",
        description="Price broadcast and purchase arbitration demo",
    )
    parser.add_argument(
        "mode",
        nargs="?",
        choices=MODES,
        default="both",
        help="Role to run (default: both)",
    )
    parser.add_argument("name", nargs="?", help="Client name (client mode only)")
    parser.add_argument("--host", help="Server host")
    parser.add_argument("--port", type=int, help="Server port")
    parser.add_argument("--clients", type=int, dest="num_clients", help="Clients to start in both mode")
    parser.add_argument("--target", type=int, dest="target_purchases", help="Purchases per client")
    parser.add_argument("--interval", type=float, dest="price_interval", help="Seconds between prices")
    parser.add_argument("--log-level", dest="log_level", help="Log level (default: INFO)")
    parser.add_argument("--env-file", dest="env_file", help="Path to a .env file")
    return parser


def configure_logging(level: str):
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


async def run_server_mode(settings: Settings) -> int:
    server = PurchaseServer(settings)
    await server.serve()
    return 0


async def run_client_mode(settings: Settings, name: Optional[str]) -> int:
    result = await run_client(name or default_client_id(), settings)
    if result is None:
        return 1
    return 0


async def run_both_mode(settings: Settings) -> int:
    """Run one server and ``num_clients`` clients in this process."""
    logger.info("=== PRICETICK PURCHASE SYSTEM ===")
    logger.info(f"Starting server and {settings.num_clients} clients...")

    server = PurchaseServer(settings)
    server_task = asyncio.create_task(server.serve())
    started = asyncio.create_task(server.wait_started())

    done, _ = await asyncio.wait({server_task, started}, return_when=asyncio.FIRST_COMPLETED)
    if server_task in done:
        started.cancel()
        server_task.result()
        return 1

    await asyncio.sleep(settings.start_delay)

    client_settings = settings.model_copy(update={"port": server.bound_port})
    clients = []
    for number in range(1, settings.num_clients + 1):
        clients.append(asyncio.create_task(run_client(f"Client-{number}", client_settings)))
        if number < settings.num_clients:
            await asyncio.sleep(settings.client_stagger)

    logger.info("System started")

    results = await asyncio.gather(*clients)
    all_finished = all(result is not None and result.finished for result in results)
    if not all_finished:
        # A client that dropped out never sends FINISHED, so the barrier cannot fire
        logger.warning("Not every client finished; stopping server")
        server.stop()

    await server_task
    logger.info("System terminated")
    return 0 if all_finished else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.name and args.mode != "client":
        parser.error("a client name is only accepted in client mode")

    try:
        settings = load_settings(
            env_file=args.env_file,
            host=args.host,
            port=args.port,
            num_clients=args.num_clients,
            target_purchases=args.target_purchases,
            price_interval=args.price_interval,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        parser.error(str(e))

    configure_logging(settings.log_level)

    if args.mode == "server":
        coro = run_server_mode(settings)
    elif args.mode == "client":
        coro = run_client_mode(settings, args.name)
    else:
        coro = run_both_mode(settings)

    try:
        return asyncio.run(coro)
    except TransportError as e:
        logger.error(f"{e}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
