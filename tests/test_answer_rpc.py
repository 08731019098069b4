from datetime import timedelta

import grpc
import pytest

from questionhub.answer_rpc import (
    DEFAULT_ANSWER,
    GptAnswerClient,
    GptAnswerService,
    add_service,
    decode_text_message,
    encode_text_message,
)
from questionhub.errors import InternalError
from questionhub.memory import InMemoryCache
from questionhub.ports import CachePort


class FailingCache(CachePort):
    async def get(self, key: str) -> str:
        raise InternalError("cache down")

    async def set(self, key: str, value: str, expiration: timedelta | None = None) -> None:
        raise InternalError("cache down")

    async def delete(self, key: str) -> None:
        raise InternalError("cache down")


def test_encode_wire_bytes():
    assert encode_text_message("hi") == b"\x0a\x02hi"


def test_encode_empty_is_empty():
    assert encode_text_message("") == b""
    assert decode_text_message(b"") == ""


@pytest.mark.parametrize("text", ["what is a monad?", "ünïcödé", "x" * 300])
def test_round_trip(text):
    assert decode_text_message(encode_text_message(text)) == text


def test_decode_skips_unknown_fields():
    data = b"\x10\x05" + b"\x1d\x00\x00\x00\x00" + encode_text_message("kept")
    assert decode_text_message(data) == "kept"


@pytest.mark.parametrize("data", [b"\x0a\x05ab", b"\x0a", b"\x09\x00", b"\x0f"])
def test_decode_malformed_raises(data):
    with pytest.raises(ValueError):
        decode_text_message(data)


@pytest.mark.asyncio
async def test_service_caches_default_answer():
    cache = InMemoryCache()
    service = GptAnswerService(cache)
    assert await service.get_answer("why?") == DEFAULT_ANSWER
    assert await cache.get("why?") == DEFAULT_ANSWER


@pytest.mark.asyncio
async def test_service_returns_cached_answer():
    cache = InMemoryCache()
    await cache.set("why?", "because")
    assert await GptAnswerService(cache).get_answer("why?") == "because"


@pytest.mark.asyncio
async def test_service_propagates_cache_failure():
    with pytest.raises(InternalError):
        await GptAnswerService(FailingCache()).get_answer("why?")


@pytest.mark.parametrize("uri", ["", "http://", "ftp://host:1", "http://bad host"])
def test_client_rejects_invalid_uri(uri):
    with pytest.raises(InternalError):
        GptAnswerClient(uri)


async def _start_server(cache):
    server = grpc.aio.server()
    add_service(server, GptAnswerService(cache))
    port = server.add_insecure_port("127.0.0.1:0")
    await server.start()
    return server, port


@pytest.mark.asyncio
async def test_client_and_server_round_trip():
    cache = InMemoryCache()
    await cache.set("cached?", "yes")
    server, port = await _start_server(cache)
    try:
        client = GptAnswerClient(f"http://127.0.0.1:{port}")
        assert await client.get_answer("cached?") == "yes"
        assert await client.get_answer("new?") == DEFAULT_ANSWER
    finally:
        await server.stop(None)
    assert await cache.get("new?") == DEFAULT_ANSWER


@pytest.mark.asyncio
async def test_client_reports_server_failure():
    server, port = await _start_server(FailingCache())
    try:
        client = GptAnswerClient(f"127.0.0.1:{port}")
        with pytest.raises(InternalError) as excinfo:
            await client.get_answer("why?")
    finally:
        await server.stop(None)
    assert "failed to get answer from cache" in str(excinfo.value)