"""Configuration loading and the option sets of both servers."""

from __future__ import annotations

import configparser
import glob
import json
import os
import re
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from questionhub.sql_repository import DBConfig

_U16_MAX = 2**16 - 1
_USIZE_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


class ConfigError(Exception):
    """Configuration could not be read or does not have the expected shape."""


def _read_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with path.open("rb") as handle:
                return tomllib.load(handle)
        if suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            if not isinstance(data, dict):
                raise ConfigError(f"{path}: expected a JSON object at the top level")
            return data
        if suffix == ".ini":
            parser = configparser.ConfigParser(interpolation=None)
            with path.open("r", encoding="utf-8") as handle:
                parser.read_file(handle)
            return {section: dict(parser.items(section)) for section in parser.sections()}
    except (OSError, ValueError, configparser.Error) as err:
        raise ConfigError(f"{path}: {err}") from err
    raise ConfigError(f"configuration file \"{path}\" is not of a supported file format")


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _merge(current, value)
        elif isinstance(value, Mapping):
            target[key] = {}
            _merge(target[key], value)
        else:
            target[key] = value


def _apply_environment(config: dict[str, Any], environ: Mapping[str, str]) -> None:
    for name, value in environ.items():
        if value == "":
            continue
        path = name.lower().split("__")
        if any(part == "" for part in path):
            continue
        node = config
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value


def load_config(
    config_paths: Iterable[str], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Merge the files matched by each glob pattern, then environment overrides.

    Later files override earlier ones. Environment variables split into nested
    keys on a double underscore (``SERVER__PORT`` sets ``server.port``); empty
    values are ignored.
    """
    config: dict[str, Any] = {}
    for pattern in config_paths:
        for entry in sorted(glob.glob(pattern)):
            _merge(config, _read_file(Path(entry)))
    _apply_environment(config, os.environ if environ is None else environ)
    return config


def _key(context: str, name: str) -> str:
    return f"{context}.{name}" if context else name


def _field(data: Mapping[str, Any], name: str, context: str) -> Any:
    if name not in data:
        suffix = f" for key `{context}`" if context else ""
        raise ConfigError(f"missing field `{name}`{suffix}")
    return data[name]


def _table(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"invalid type for `{key}`: expected a table")
    return value


def _string(value: Any, key: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"invalid type for `{key}`: expected a string")


def _unsigned(value: Any, key: str, maximum: int) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"invalid type for `{key}`: expected an integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _UNSIGNED.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        raise ConfigError(f"invalid value for `{key}`: expected an unsigned integer")
    if not 0 <= number <= maximum:
        raise ConfigError(f"invalid value for `{key}`: {number} is out of range")
    return number


@dataclass(frozen=True)
class LogConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass(frozen=True)
class ServerConfig:
    """Address the HTTP server binds to."""

    port: int
    url: str


@dataclass(frozen=True)
class InMemoryDatabase:
    """Selects the in-memory question store."""


@dataclass(frozen=True)
class DatabaseConfig:
    """Which question store to use."""

    in_memory: InMemoryDatabase | None = None
    pg: DBConfig | None = None


@dataclass(frozen=True)
class RedisConfig:
    """Location of the Redis server."""

    port: int
    host: str


def _log(data: Mapping[str, Any]) -> LogConfig:
    if "log" not in data:
        return LogConfig()
    table = _table(data["log"], "log")
    return LogConfig(level=_string(_field(table, "level", "log"), "log.level"))


def _database(value: Any) -> DatabaseConfig:
    table = _table(value, "db")
    in_memory = None
    if table.get("in_memory") is not None:
        _table(table["in_memory"], "db.in_memory")
        in_memory = InMemoryDatabase()
    pg = None
    if table.get("pg") is not None:
        pg_table = _table(table["pg"], "db.pg")
        pg = DBConfig(
            url=_string(_field(pg_table, "url", "db.pg"), "db.pg.url"),
            max_size=_unsigned(_field(pg_table, "max_size", "db.pg"), "db.pg.max_size", _USIZE_MAX),
        )
    return DatabaseConfig(in_memory=in_memory, pg=pg)


@dataclass(frozen=True)
class PublicOptions:
    """Options of the public HTTP server."""

    server: ServerConfig
    gpt_answer_service_url: str
    db: DatabaseConfig
    exporter_endpoint: str
    service_name: str
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PublicOptions:
        """Build the options from a loaded configuration; raise ConfigError if invalid."""
        server = _table(_field(data, "server", ""), "server")
        return cls(
            server=ServerConfig(
                port=_unsigned(_field(server, "port", "server"), "server.port", _U16_MAX),
                url=_string(_field(server, "url", "server"), "server.url"),
            ),
            gpt_answer_service_url=_string(
                _field(data, "gpt_answer_service_url", ""), "gpt_answer_service_url"
            ),
            db=_database(_field(data, "db", "")),
            exporter_endpoint=_string(_field(data, "exporter_endpoint", ""), "exporter_endpoint"),
            service_name=_string(_field(data, "service_name", ""), "service_name"),
            log=_log(data),
        )


@dataclass(frozen=True)
class AnswerServerOptions:
    """Options of the answer RPC server."""

    server_endpoint: str
    exporter_endpoint: str
    service_name: str
    redis: RedisConfig
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AnswerServerOptions:
        """Build the options from a loaded configuration; raise ConfigError if invalid."""
        redis = _table(_field(data, "redis", ""), "redis")
        return cls(
            server_endpoint=_string(_field(data, "server_endpoint", ""), "server_endpoint"),
            exporter_endpoint=_string(_field(data, "exporter_endpoint", ""), "exporter_endpoint"),
            service_name=_string(_field(data, "service_name", ""), "service_name"),
            redis=RedisConfig(
                port=_unsigned(_field(redis, "port", "redis"), "redis.port", _U16_MAX),
                host=_string(_field(redis, "host", "redis"), "redis.host"),
            ),
            log=_log(data),
        )