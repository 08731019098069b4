"""In-process storage: an expiring key-value cache and a question repository."""

from __future__ import annotations

import copy
import time
from collections.abc import Callable
from datetime import timedelta
from itertools import islice

from questionhub.entities import QuestionEntity, QuestionFilter, QuestionId
from questionhub.errors import NotFound
from questionhub.ports import CachePort, QuestionPort


class InMemoryCache(CachePort):
    """Cache held in a dictionary, with optional per-entry expiry."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}

    def _cleanup_expired_entries(self) -> None:
        now = self._clock()
        self._entries = {
            key: entry
            for key, entry in self._entries.items()
            if entry[1] is None or entry[1] > now
        }

    async def get(self, key: str) -> str:
        """Return the value for `key`; raise NotFound if absent or expired."""
        entry = self._entries.get(key)
        if entry is not None:
            value, expiry = entry
            if expiry is None or expiry > self._clock():
                return value
        raise NotFound()

    async def set(self, key: str, value: str, expiration: timedelta | None = None) -> None:
        """Store `value` under `key`, dropping expired entries first."""
        self._cleanup_expired_entries()
        expiry = None if expiration is None else self._clock() + expiration.total_seconds()
        self._entries[key] = (value, expiry)

    async def delete(self, key: str) -> None:
        """Remove `key`; raise NotFound if it is not stored."""
        try:
            del self._entries[key]
        except KeyError:
            raise NotFound() from None


class QuestionInMemoryRepository(QuestionPort):
    """Question store kept in a dictionary keyed by question identifier."""

    def __init__(self) -> None:
        self.questions: dict[QuestionId, QuestionEntity] = {}

    async def add(self, question: QuestionEntity) -> QuestionEntity:
        """Store the question, replacing any with the same identifier."""
        self.questions[question.id] = copy.deepcopy(question)
        return copy.deepcopy(question)

    async def update(self, question: QuestionEntity) -> QuestionEntity:
        """Replace an existing question; raise NotFound if absent."""
        await self.get(question.id)
        self.questions[question.id] = copy.deepcopy(question)
        return copy.deepcopy(question)

    async def delete(self, question_id: QuestionId) -> None:
        """Remove a question; raise NotFound if absent."""
        await self.get(question_id)
        del self.questions[question_id]

    async def get(self, question_id: QuestionId) -> QuestionEntity:
        """Return a copy of the stored question; raise NotFound if absent."""
        try:
            return copy.deepcopy(self.questions[question_id])
        except KeyError:
            raise NotFound() from None

    async def list(self, question_filter: QuestionFilter) -> list[QuestionEntity]:
        """Return the questions between the filter's start and end positions."""
        pagination = question_filter.pagination
        stop = max(pagination.end, pagination.start)
        return [
            copy.deepcopy(question)
            for question in islice(self.questions.values(), pagination.start, stop)
        ]