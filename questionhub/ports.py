"""Interfaces the domain depends on: caches, answer providers and question stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta

from questionhub.entities import QuestionEntity, QuestionFilter, QuestionId


class CachePort(ABC):
    """Key-value cache with optional expiry."""

    @abstractmethod
    async def get(self, key: str) -> str:
        """Return the value for `key`; raise NotFound if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, expiration: timedelta | None = None) -> None:
        """Store `value` under `key`, expiring after `expiration` if given."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key`; raise NotFound if it was not present."""


class GptAnswerPort(ABC):
    """Source of answers to questions."""

    @abstractmethod
    async def get_answer(self, question: str) -> str:
        """Return an answer to `question`."""


class QuestionPort(ABC):
    """Storage for questions."""

    @abstractmethod
    async def add(self, question: QuestionEntity) -> QuestionEntity:
        """Store a new question and return it."""

    @abstractmethod
    async def update(self, question: QuestionEntity) -> QuestionEntity:
        """Replace an existing question and return it; raise NotFound if absent."""

    @abstractmethod
    async def delete(self, question_id: QuestionId) -> None:
        """Remove a question; raise NotFound if absent."""

    @abstractmethod
    async def get(self, question_id: QuestionId) -> QuestionEntity:
        """Return a question; raise NotFound if absent."""

    @abstractmethod
    async def list(self, question_filter: QuestionFilter) -> list[QuestionEntity]:
        """Return the questions selected by the filter."""