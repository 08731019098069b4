"""Structured JSON logging set up for a service."""

from __future__ import annotations

import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from typing import Any

TRACE = 5
LEVEL_ENV_VAR = "QUESTIONHUB_LOG"

logging.addLevelName(TRACE, "TRACE")

_OFF = logging.CRITICAL + 10
_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": _OFF,
}

_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


def _bunyan_level(levelno: int) -> int:
    if levelno >= logging.CRITICAL:
        return 60
    if levelno >= logging.ERROR:
        return 50
    if levelno >= logging.WARNING:
        return 40
    if levelno >= logging.INFO:
        return 30
    if levelno >= logging.DEBUG:
        return 20
    return 10


class BunyanFormatter(logging.Formatter):
    """Formats records as single-line Bunyan JSON documents."""

    def __init__(self, name: str) -> None:
        super().__init__()
        self.name = name
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        """Return the record as a JSON line."""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "v": 0,
            "name": self.name,
            "msg": record.getMessage(),
            "level": _bunyan_level(record.levelno),
            "hostname": self.hostname,
            "pid": record.process if record.process is not None else os.getpid(),
            "time": timestamp.isoformat().replace("+00:00", "Z"),
            "target": record.name,
            "line": record.lineno,
            "file": record.pathname,
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and key not in payload:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _parse_directives(spec: str) -> tuple[int, dict[str, int]]:
    default = logging.ERROR
    targets: dict[str, int] = {}
    for token in (part.strip() for part in spec.split(",")):
        if not token:
            continue
        target, sep, level = token.partition("=")
        if sep:
            resolved = _LEVELS.get(level.strip().lower())
            if resolved is not None and target.strip():
                targets[target.strip().replace("::", ".")] = resolved
        elif token.lower() in _LEVELS:
            default = _LEVELS[token.lower()]
        else:
            targets[token.replace("::", ".")] = TRACE
    return default, targets


def init_telemetry(service_name: str, exporter_endpoint: str, log_level: str) -> logging.Handler:
    """Send JSON logs for `service_name` to standard output and return the handler.

    The level filter comes from the QUESTIONHUB_LOG environment variable when it
    is set, otherwise from `log_level`; both accept comma-separated directives
    such as ``info,questionhub.router=debug``. `exporter_endpoint` is accepted so
    configuration files stay valid; no remote span exporter is configured.
    """
    spec = os.environ.get(LEVEL_ENV_VAR) or log_level
    default, targets = _parse_directives(spec)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, BunyanFormatter):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(BunyanFormatter(service_name))
    root.addHandler(handler)
    root.setLevel(default)
    for target, level in targets.items():
        logging.getLogger(target).setLevel(level)
    return handler