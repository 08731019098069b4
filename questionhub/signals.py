"""Waiting for the signals that ask a server to stop."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from typing import Any

logger = logging.getLogger(__name__)


def _watched_signals() -> list[signal.Signals]:
    watched = [signal.SIGINT]
    if os.name == "posix":
        watched.append(signal.SIGTERM)
    return watched


async def wait_for_kill_signals() -> signal.Signals:
    """Wait for an interrupt or, on POSIX systems, a terminate signal; return it."""
    loop = asyncio.get_running_loop()
    received: asyncio.Future[signal.Signals] = loop.create_future()

    def on_signal(sig: signal.Signals) -> None:
        if not received.done():
            received.set_result(sig)

    installed: list[tuple[signal.Signals, Any]] = []
    try:
        for sig in _watched_signals():
            try:
                loop.add_signal_handler(sig, on_signal, sig)
                installed.append((sig, None))
            except NotImplementedError:
                previous = signal.signal(
                    sig,
                    lambda _num, _frame, sig=sig: loop.call_soon_threadsafe(on_signal, sig),
                )
                installed.append((sig, previous))
        caught = await received
    finally:
        for sig, previous in installed:
            if previous is None:
                loop.remove_signal_handler(sig)
            else:
                signal.signal(sig, previous)

    if caught == signal.SIGINT:
        logger.info("Received ctrl_c!")
    else:
        logger.info("Received terminate!")
    return caught