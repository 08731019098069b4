"""HTTP routes of the public question service."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable

from aiohttp import hdrs, web

from questionhub.controllers import (
    add_question,
    delete_question,
    get_question,
    get_question_answer,
    get_questions,
    update_question,
)
from questionhub.entities import QuestionEntity
from questionhub.errors import CoreError
from questionhub.http_errors import (
    BodyDeserializeError,
    CorsForbidden,
    RouteNotFound,
    error_response,
)
from questionhub.ports import GptAnswerPort, QuestionPort

logger = logging.getLogger(__name__)

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_ALLOWED_METHODS = ("PUT", "DELETE", "GET", "POST")
_ALLOWED_HEADERS = frozenset({"content-type"})


@web.middleware
async def _trace(request: web.Request, handler: _Handler) -> web.StreamResponse:
    response = await handler(request)
    logger.info(
        "processing request",
        extra={"method": request.method, "path": request.path, "status": response.status},
    )
    return response


@web.middleware
async def _recover(request: web.Request, handler: _Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except (CoreError, BodyDeserializeError, CorsForbidden, RouteNotFound) as err:
        return error_response(err)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        return error_response(RouteNotFound())


@web.middleware
async def _cors_preflight(request: web.Request, handler: _Handler) -> web.StreamResponse:
    origin = request.headers.get(hdrs.ORIGIN)
    if origin is None or request.method != hdrs.METH_OPTIONS:
        return await handler(request)
    requested_method = request.headers.get(hdrs.ACCESS_CONTROL_REQUEST_METHOD)
    if requested_method is None or requested_method not in _ALLOWED_METHODS:
        raise CorsForbidden("request-method not allowed")
    requested_headers = request.headers.get(hdrs.ACCESS_CONTROL_REQUEST_HEADERS)
    if requested_headers is not None:
        for header in requested_headers.split(","):
            if header.strip().lower() not in _ALLOWED_HEADERS:
                raise CorsForbidden("header not allowed")
    return web.Response(
        headers={
            hdrs.ACCESS_CONTROL_ALLOW_ORIGIN: origin,
            hdrs.ACCESS_CONTROL_ALLOW_HEADERS: ", ".join(sorted(_ALLOWED_HEADERS)),
            hdrs.ACCESS_CONTROL_ALLOW_METHODS: ", ".join(_ALLOWED_METHODS),
        }
    )


def _is_json(content_type: str) -> bool:
    mime = content_type.split(";", 1)[0].strip().lower()
    kind, _, subtype = mime.partition("/")
    return kind == "application" and (subtype == "json" or subtype.endswith("+json"))


async def _read_question(request: web.Request) -> QuestionEntity:
    content_type = request.headers.get(hdrs.CONTENT_TYPE)
    if content_type is not None and not _is_json(content_type):
        raise RouteNotFound()
    raw = await request.read()
    try:
        return QuestionEntity.from_dict(json.loads(raw))
    except ValueError as err:
        raise BodyDeserializeError(str(err)) from err


class Router:
    """Routes HTTP requests about questions to their handlers."""

    def __init__(self, question_port: QuestionPort, gpt_answer_client: GptAnswerPort) -> None:
        self.question_port = question_port
        self.gpt_answer_client = gpt_answer_client

    async def _get_questions(self, request: web.Request) -> web.StreamResponse:
        query = {key: value for key, value in request.query.items()}
        response = await get_questions(self.question_port, query)
        origin = request.headers.get(hdrs.ORIGIN)
        if origin is not None:
            response.headers[hdrs.ACCESS_CONTROL_ALLOW_ORIGIN] = origin
        return response

    async def _get_question(self, request: web.Request) -> web.StreamResponse:
        return await get_question(self.question_port, request.match_info["id"])

    async def _add_question(self, request: web.Request) -> web.StreamResponse:
        question = await _read_question(request)
        return await add_question(self.question_port, question)

    async def _update_question(self, request: web.Request) -> web.StreamResponse:
        question_id = request.match_info["id"]
        question = await _read_question(request)
        return await update_question(self.question_port, question_id, question)

    async def _delete_question(self, request: web.Request) -> web.StreamResponse:
        return await delete_question(self.question_port, request.match_info["id"])

    async def _get_question_answer(self, request: web.Request) -> web.StreamResponse:
        return await get_question_answer(
            self.question_port, self.gpt_answer_client, request.match_info["id"]
        )

    def routes(self) -> web.Application:
        """Return the application that serves every question route."""
        app = web.Application(middlewares=[_trace, _recover, _cors_preflight])
        app.router.add_route(hdrs.METH_GET, "/questions", self._get_questions)
        app.router.add_route(hdrs.METH_GET, "/questions/{id}", self._get_question)
        app.router.add_route(hdrs.METH_DELETE, "/questions/{id}", self._delete_question)
        app.router.add_route(hdrs.METH_PUT, "/questions/{id}", self._update_question)
        app.router.add_route(hdrs.METH_POST, "/questions", self._add_question)
        app.router.add_route(hdrs.METH_GET, "/questions/{id}/answer", self._get_question_answer)
        app.router.add_route(
            hdrs.METH_GET, "/questions/{id}/answer/{tail:.*}", self._get_question_answer
        )
        return app