"""RPC service that answers questions, and the client that calls it."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import grpc

from questionhub.errors import CoreError, InternalError, NotFound
from questionhub.ports import CachePort, GptAnswerPort

SERVICE_NAME = "gpt_answer.GptAnswerService"
METHOD_NAME = "GetAnswer"
METHOD_PATH = f"/{SERVICE_NAME}/{METHOD_NAME}"
DEFAULT_ANSWER = "This is a default answer"


def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_varint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ValueError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift >= 64:
            raise ValueError("varint too long")


def encode_text_message(text: str) -> bytes:
    """Encode a message whose only field, number 1, is a string."""
    payload = text.encode("utf-8")
    if not payload:
        return b""
    return b"\x0a" + _encode_varint(len(payload)) + payload


def decode_text_message(data: bytes) -> str:
    """Decode the string in field 1 of a message; raise ValueError if malformed."""
    data = bytes(data)
    text = ""
    pos = 0
    while pos < len(data):
        key, pos = _read_varint(data, pos)
        number, wire_type = key >> 3, key & 0x7
        if number == 0:
            raise ValueError("invalid field number 0")
        if wire_type == 0:
            _, pos = _read_varint(data, pos)
        elif wire_type == 1:
            pos += 8
        elif wire_type == 2:
            length, pos = _read_varint(data, pos)
            end = pos + length
            if end > len(data):
                raise ValueError("truncated length-delimited field")
            if number == 1:
                text = data[pos:end].decode("utf-8")
            pos = end
        elif wire_type == 5:
            pos += 4
        else:
            raise ValueError(f"unsupported wire type {wire_type}")
        if pos > len(data):
            raise ValueError("truncated fixed-width field")
    return text


class GptAnswerService:
    """Answers questions from a cache, storing a default answer on a miss."""

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    async def get_answer(self, question: str) -> str:
        """Return the cached answer, caching and returning the default on a miss."""
        try:
            return await self.cache.get(question)
        except NotFound:
            await self.cache.set(question, DEFAULT_ANSWER, None)
            return DEFAULT_ANSWER

    async def _handle(self, question: str, context: Any) -> str:
        try:
            return await self.get_answer(question)
        except CoreError as err:
            await context.abort(
                grpc.StatusCode.INTERNAL, f"failed to get answer from cache: {err}"
            )
            raise


def add_service(server: Any, service: GptAnswerService) -> None:
    """Register the answer service's handlers on an RPC server."""
    handler = grpc.method_handlers_generic_handler(
        SERVICE_NAME,
        {
            METHOD_NAME: grpc.unary_unary_rpc_method_handler(
                service._handle,
                request_deserializer=decode_text_message,
                response_serializer=encode_text_message,
            )
        },
    )
    server.add_generic_rpc_handlers((handler,))


def _parse_endpoint(uri: str) -> tuple[str, bool]:
    if not uri or any(char.isspace() for char in uri):
        raise InternalError(f"invalid uri: {uri!r}")
    if "://" in uri:
        parts = urlsplit(uri)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InternalError(f"invalid uri: {uri!r}")
        return parts.netloc, parts.scheme == "https"
    return uri, False


class GptAnswerClient(GptAnswerPort):
    """Client that asks the answer service over a fresh channel per call."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        self._target, self._secure = _parse_endpoint(uri)

    def _channel(self) -> grpc.aio.Channel:
        if self._secure:
            return grpc.aio.secure_channel(self._target, grpc.ssl_channel_credentials())
        return grpc.aio.insecure_channel(self._target)

    async def get_answer(self, question: str) -> str:
        """Send the question and return the answer; raise InternalError on failure."""
        try:
            async with self._channel() as channel:
                call = channel.unary_unary(
                    METHOD_PATH,
                    request_serializer=encode_text_message,
                    response_deserializer=decode_text_message,
                )
                return await call(question)
        except grpc.RpcError as err:
            raise InternalError(err) from err