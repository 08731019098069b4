import asyncio

import pytest

from questionhub.answer_rpc import DEFAULT_ANSWER, GptAnswerClient
from questionhub.answer_server import _parse_socket_address, _start_rpc_server, main, serve
from questionhub.memory import InMemoryCache
from questionhub.options import AnswerServerOptions, RedisConfig
from questionhub.version import app_version

CONFIG = """
server_endpoint = "127.0.0.1:50051"
exporter_endpoint = "http://localhost:4317"
service_name = "answers"

[redis]
host = "127.0.0.1"
port = 6379
"""


def test_parse_socket_address_accepts_ipv4_and_ipv6():
    assert _parse_socket_address("127.0.0.1:50051") == "127.0.0.1:50051"
    assert _parse_socket_address("[::1]:50051") == "[::1]:50051"


@pytest.mark.parametrize("text", ["localhost:50051", "127.0.0.1", "127.0.0.1:70000", "1.2.3.4:x"])
def test_parse_socket_address_rejects(text):
    with pytest.raises(ValueError):
        _parse_socket_address(text)


@pytest.mark.asyncio
async def test_serve_rejects_bad_endpoint(capsys):
    options = AnswerServerOptions(
        server_endpoint="not-an-address",
        exporter_endpoint="http://localhost:4317",
        service_name="answers",
        redis=RedisConfig(port=6379, host="127.0.0.1"),
    )
    with pytest.raises(ValueError):
        await serve(options, asyncio.Event())
    assert "Starting GPT Answer server" not in capsys.readouterr().out


@pytest.mark.asyncio
async def test_rpc_round_trip_through_cache():
    cache = InMemoryCache()
    await cache.set("known", "cached answer")
    server, port = await _start_rpc_server("127.0.0.1:0", cache)
    try:
        client = GptAnswerClient(f"127.0.0.1:{port}")
        assert await client.get_answer("known") == "cached answer"
        assert await client.get_answer("fresh") == DEFAULT_ANSWER
    finally:
        await server.stop(None)
    assert await cache.get("fresh") == DEFAULT_ANSWER


def test_main_prints_version(capsys):
    assert main(["-v"]) == 0
    assert capsys.readouterr().out.strip() == app_version()


def test_main_prints_config(tmp_path, capsys):
    path = tmp_path / "answer.toml"
    path.write_text(CONFIG)
    assert main(["--config-path", str(path), "config"]) == 0
    out = capsys.readouterr().out
    assert "AnswerServerOptions" in out
    assert "server_endpoint='127.0.0.1:50051'" in out


def test_main_reports_config_failure_on_stderr(tmp_path, capsys):
    assert main(["-c", str(tmp_path / "none-*.toml")]) == 1
    captured = capsys.readouterr()
    assert captured.err.startswith("Failed to load config:")
    assert captured.out == ""