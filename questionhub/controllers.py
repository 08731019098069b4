"""Request handlers for the question endpoints."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping

from aiohttp import web

from questionhub.entities import QuestionEntity, QuestionFilter, QuestionId
from questionhub.ports import GptAnswerPort, QuestionPort

logger = logging.getLogger(__name__)


async def get_questions(question_port: QuestionPort, query: Mapping[str, str]) -> web.Response:
    """List the questions selected by the query's pagination parameters as JSON."""
    logger.info("get_questions", extra={"query": dict(query)})
    question_filter = QuestionFilter.from_query(query)
    questions = await question_port.list(question_filter)
    return web.json_response([question.to_dict() for question in questions])


async def get_question(question_port: QuestionPort, question_id: str) -> web.Response:
    """Return one question as JSON."""
    logger.info("get_question", extra={"question_id": question_id})
    question = await question_port.get(QuestionId.parse(question_id))
    return web.json_response(question.to_dict())


async def add_question(question_port: QuestionPort, question: QuestionEntity) -> web.Response:
    """Store a new question."""
    logger.info("add_question", extra={"question_id": str(question.id)})
    await question_port.add(question)
    return web.Response(text="Question added")


async def delete_question(question_port: QuestionPort, question_id: str) -> web.Response:
    """Remove a question."""
    logger.info("delete_question", extra={"question_id": question_id})
    await question_port.delete(QuestionId.parse(question_id))
    return web.Response(text="Question deleted")


async def update_question(
    question_port: QuestionPort, question_id: str, question: QuestionEntity
) -> web.Response:
    """Replace a question, taking its identifier from `question_id`."""
    logger.info("update_question", extra={"question_id": question_id})
    updated = dataclasses.replace(question, id=QuestionId.parse(question_id))
    await question_port.update(updated)
    return web.Response(text="Question updated")


async def get_question_answer(
    question_port: QuestionPort, gpt_answer_client: GptAnswerPort, question_id: str
) -> web.Response:
    """Ask the answer service about a stored question's content and return the answer."""
    logger.info("get_question_answer", extra={"question_id": question_id})
    question = await question_port.get(QuestionId.parse(question_id))
    answer = await gpt_answer_client.get_answer(question.content)
    return web.Response(text=answer)