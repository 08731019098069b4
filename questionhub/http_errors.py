"""Turning errors raised while handling a request into HTTP responses."""

from __future__ import annotations

from http import HTTPStatus

from aiohttp import web

from questionhub.errors import CoreError, MissingParameters, NotFound, ParseError


class BodyDeserializeError(Exception):
    """The request body could not be read as the expected JSON document."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"Request body deserialize error: {self.cause}"


class CorsForbidden(Exception):
    """A cross-origin request was refused."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"CORS request forbidden: {self.reason}"


class RouteNotFound(Exception):
    """No route accepts the request."""

    def __str__(self) -> str:
        return "Route not found"


def _reply(text: str, status: HTTPStatus) -> web.Response:
    return web.Response(text=text, status=int(status))


def error_response(error: BaseException) -> web.Response:
    """Return the plain-text response that reports `error` to the client."""
    if isinstance(error, CoreError):
        if isinstance(error, NotFound):
            return _reply("Not found", HTTPStatus.NOT_FOUND)
        if isinstance(error, ParseError):
            return _reply("ParseError", HTTPStatus.BAD_REQUEST)
        if isinstance(error, MissingParameters):
            return _reply("MissingParameters", HTTPStatus.BAD_REQUEST)
        return _reply("InternalError", HTTPStatus.INTERNAL_SERVER_ERROR)
    if isinstance(error, BodyDeserializeError):
        return _reply(str(error), HTTPStatus.UNPROCESSABLE_ENTITY)
    if isinstance(error, CorsForbidden):
        return _reply(str(error), HTTPStatus.FORBIDDEN)
    return _reply("Route not found", HTTPStatus.NOT_FOUND)