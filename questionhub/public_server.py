"""Command that runs the public HTTP question service."""

from __future__ import annotations

import argparse
import asyncio
import ipaddress
import logging
import pprint
import sys
from collections.abc import Sequence

from aiohttp import web

from questionhub.answer_rpc import GptAnswerClient
from questionhub.memory import QuestionInMemoryRepository
from questionhub.options import ConfigError, PublicOptions, load_config
from questionhub.ports import QuestionPort
from questionhub.router import Router
from questionhub.signals import wait_for_kill_signals
from questionhub.sql_repository import QuestionDBRepository
from questionhub.telemetry import init_telemetry
from questionhub.version import app_version

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/00-default.toml"


def build_question_port(options: PublicOptions) -> QuestionPort:
    """Return the question store the configuration selects, in memory by default."""
    if options.db.in_memory is not None:
        logger.info("Using in-memory database")
        return QuestionInMemoryRepository()
    if options.db.pg is not None:
        logger.info("Using postgres database: %s", options.db.pg.url)
        return QuestionDBRepository.from_config(options.db.pg)
    logger.info("No database specified, falling back to in-memory")
    return QuestionInMemoryRepository()


async def serve(options: PublicOptions, shutdown: asyncio.Event) -> None:
    """Serve HTTP requests until `shutdown` is set."""
    question_port = build_question_port(options)
    gpt_answer_client = GptAnswerClient(options.gpt_answer_service_url)
    app = Router(question_port, gpt_answer_client).routes()
    host = str(ipaddress.IPv4Address(options.server.url))

    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, options.server.port)
        await site.start()
        await shutdown.wait()
        logger.info("HTTP server shut down")
    finally:
        await runner.cleanup()


async def _run(options: PublicOptions) -> None:
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
    parser = argparse.ArgumentParser(description="Simple REST server.")
    parser.add_argument(
        "-c", "--config-path", action="append", dest="config_path", help="Config file"
    )
    parser.add_argument("-v", "--version", action="store_true", help="Print version")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("config", help="Print config")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the public server; return the process exit status."""
    args = _parse_args(argv)
    if args.version:
        print(app_version())
        return 0

    try:
        options = PublicOptions.from_mapping(load_config(args.config_path or [DEFAULT_CONFIG_PATH]))
    except ConfigError as err:
        print(f"Failed to load config: {err}")
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