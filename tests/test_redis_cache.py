import socket
from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from questionhub.errors import InternalError, NotFound, UnexpectedResponse
from questionhub.redis_cache import RedisCache


class FakeClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.commands = []

    async def execute_command(self, *args):
        self.commands.append(args)
        if self.error is not None:
            raise self.error
        return self.reply


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_get_returns_decoded_value():
    client = FakeClient(reply=b"answer")
    cache = RedisCache(client)
    assert await cache.get("question") == "answer"
    assert client.commands == [("GET", "question")]


@pytest.mark.asyncio
async def test_get_nil_raises_not_found():
    cache = RedisCache(FakeClient(reply=None))
    with pytest.raises(NotFound):
        await cache.get("missing")


@pytest.mark.asyncio
async def test_get_invalid_utf8_is_replaced():
    cache = RedisCache(FakeClient(reply=b"ok\xff"))
    assert await cache.get("k") == "ok\ufffd"


@pytest.mark.asyncio
async def test_set_without_expiration_sends_plain_set():
    client = FakeClient(reply=True)
    await RedisCache(client).set("k", "v")
    assert client.commands == [("SET", "k", "v")]


@pytest.mark.asyncio
async def test_set_with_expiration_sends_ex_seconds():
    client = FakeClient(reply=b"OK")
    await RedisCache(client).set("k", "v", timedelta(seconds=90))
    assert client.commands == [("SET", "k", "v", "EX", "90")]


@pytest.mark.asyncio
async def test_set_truncates_fractional_seconds():
    client = FakeClient(reply="OK")
    await RedisCache(client).set("k", "v", timedelta(seconds=1, milliseconds=900))
    assert client.commands[0][-1] == "1"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [None, False, b"QUEUED"])
async def test_set_unexpected_reply_raises_not_found(reply):
    cache = RedisCache(FakeClient(reply=reply))
    with pytest.raises(NotFound):
        await cache.set("k", "v")


@pytest.mark.asyncio
async def test_delete_existing_key():
    client = FakeClient(reply=1)
    await RedisCache(client).delete("k")
    assert client.commands == [("DEL", "k")]


@pytest.mark.asyncio
async def test_delete_missing_key_raises_not_found():
    cache = RedisCache(FakeClient(reply=0))
    with pytest.raises(NotFound):
        await cache.delete("k")


@pytest.mark.asyncio
async def test_delete_non_integer_reply_raises_unexpected_response():
    cache = RedisCache(FakeClient(reply=b"weird"))
    with pytest.raises(UnexpectedResponse) as info:
        await cache.delete("k")
    assert "weird" in str(info.value)


@pytest.mark.asyncio
async def test_client_error_becomes_internal_error():
    failure = RedisConnectionError("connection lost")
    cache = RedisCache(FakeClient(error=failure))
    with pytest.raises(InternalError) as info:
        await cache.get("k")
    assert info.value.__cause__ is failure


@pytest.mark.asyncio
async def test_connect_to_closed_port_raises_internal_error():
    with pytest.raises(InternalError):
        await RedisCache.connect("127.0.0.1", _closed_port())