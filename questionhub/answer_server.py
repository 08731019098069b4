"""Command that runs the answer RPC service."""

from __future__ import annotations

import argparse
import asyncio
import ipaddress
import logging
import pprint
import re
import sys
from collections.abc import Sequence

import grpc

from questionhub.answer_rpc import GptAnswerService, add_service
from questionhub.options import AnswerServerOptions, ConfigError, load_config
from questionhub.ports import CachePort
from questionhub.redis_cache import RedisCache
from questionhub.signals import wait_for_kill_signals
from questionhub.telemetry import init_telemetry
from questionhub.version import app_version

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/00-default.toml"
_PORT = re.compile(r"[0-9]+")


def _parse_socket_address(text: str) -> str:
    host, sep, port_text = text.rpartition(":")
    if not sep or not _PORT.fullmatch(port_text) or int(port_text) > 0xFFFF:
        raise ValueError(f"invalid socket address syntax: {text!r}")
    if host.startswith("[") and host.endswith("]"):
        ipaddress.IPv6Address(host[1:-1])
    else:
        ipaddress.IPv4Address(host)
    return f"{host}:{int(port_text)}"


async def _start_rpc_server(address: str, cache: CachePort) -> tuple[grpc.aio.Server, int]:
    server = grpc.aio.server()
    add_service(server, GptAnswerService(cache))
    port = server.add_insecure_port(address)
    await server.start()
    return server, port


async def serve(options: AnswerServerOptions, shutdown: asyncio.Event) -> None:
    """Serve answer requests until `shutdown` is set."""
    address = _parse_socket_address(options.server_endpoint)
    print(f"Starting GPT Answer server at {options.server_endpoint}")
    cache = await RedisCache.connect(options.redis.host, options.redis.port)
    server, _ = await _start_rpc_server(address, cache)
    try:
        await shutdown.wait()
        logger.info("GRPC server shut down")
    finally:
        await server.stop(None)


async def _run(options: AnswerServerOptions) -> None:
    shutdown = asyncio.Event()
    server = asyncio.create_task(serve(options, shutdown))
    signals = asyncio.create_task(wait_for_kill_signals())
    done, _ = await asyncio.wait({server, signals}, return_when=asyncio.FIRST_COMPLETED)
    if server in done:
        signals.cancel()
        await asyncio.gather(signals, return_exceptions=True)
        server.result()
        return
    shutdown.set()
    await server


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="GPT Answer GRPC server.")
    parser.add_argument(
        "-c", "--config-path", action="append", dest="config_path", help="Config file"
    )
    parser.add_argument("-v", "--version", action="store_true", help="Print version")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("config", help="Print config")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the answer server; return the process exit status."""
    args = _parse_args(argv)
    if args.version:
        print(app_version())
        return 0

    try:
        options = AnswerServerOptions.from_mapping(
            load_config(args.config_path or [DEFAULT_CONFIG_PATH])
        )
    except ConfigError as err:
        print(f"Failed to load config: {err}", file=sys.stderr)
        return 1

    if args.command == "config":
        print(pprint.pformat(options))
        return 0

    handler = init_telemetry(options.service_name, options.exporter_endpoint, options.log.level)
    asyncio.run(_run(options))
    logger.info("Shutdown successfully!")
    handler.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())