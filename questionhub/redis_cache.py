"""Cache backed by a Redis server."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from questionhub.errors import InternalError, NotFound, UnexpectedResponse
from questionhub.ports import CachePort


class RedisCache(CachePort):
    """Cache that sends GET, SET and DEL commands to a Redis client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    @classmethod
    async def connect(cls, host: str, port: int) -> RedisCache:
        """Connect to the server at `host`:`port`; raise InternalError on failure."""
        client = Redis(host=host, port=port)
        try:
            await client.ping()
        except (RedisError, OSError) as err:
            await client.connection_pool.disconnect()
            raise InternalError(err) from err
        return cls(client)

    async def _send(self, *args: str) -> Any:
        try:
            return await self.client.execute_command(*args)
        except (RedisError, OSError) as err:
            raise InternalError(err) from err

    async def get(self, key: str) -> str:
        """Return the stored string; raise NotFound if the key has no value."""
        reply = await self._send("GET", key)
        if isinstance(reply, (bytes, bytearray)):
            return bytes(reply).decode("utf-8", errors="replace")
        if isinstance(reply, str):
            return reply
        raise NotFound()

    async def set(self, key: str, value: str, expiration: timedelta | None = None) -> None:
        """Store the value, with an expiry in whole seconds when given."""
        args = ["SET", key, value]
        if expiration is not None:
            args += ["EX", str(int(expiration.total_seconds()))]
        reply = await self._send(*args)
        if reply is True or reply in ("OK", b"OK"):
            return
        raise NotFound()

    async def delete(self, key: str) -> None:
        """Remove the key; raise NotFound if nothing was deleted."""
        reply = await self._send("DEL", key)
        if isinstance(reply, int) and not isinstance(reply, bool):
            if reply > 0:
                return
            raise NotFound()
        raise UnexpectedResponse(f"Expect an integer reply but found {reply!r}")