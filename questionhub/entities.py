"""Domain entities: questions, their identifiers and query filters."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from questionhub.errors import InvalidInputError, ParseError

_USIZE_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


def _parse_unsigned(text: str) -> int:
    """Parse a non-negative integer as strictly as an unsigned machine integer."""
    if text == "":
        raise ParseError("cannot parse integer from empty string")
    if not _UNSIGNED.fullmatch(text):
        raise ParseError("invalid digit found in string")
    value = int(text)
    if value > _USIZE_MAX:
        raise ParseError("number too large to fit in target type")
    return value


@dataclass(frozen=True)
class QuestionId:
    """Identifier of a question."""

    value: str

    @classmethod
    def parse(cls, text: str) -> QuestionId:
        """Build an identifier from text, rejecting an empty string."""
        if not text:
            raise InvalidInputError("No id provided")
        return cls(text)

    def __str__(self) -> str:
        return self.value


@dataclass
class QuestionEntity:
    """A question with its title, content and optional tags."""

    id: QuestionId
    title: str
    content: str
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation of the question."""
        return {
            "id": self.id.value,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags) if self.tags is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QuestionEntity:
        """Build a question from its JSON representation; raise ValueError if malformed."""
        if not isinstance(data, Mapping):
            raise ValueError("invalid type: expected a question object")
        values: dict[str, str] = {}
        for name in ("id", "title", "content"):
            if name not in data:
                raise ValueError(f"missing field `{name}`")
            value = data[name]
            if not isinstance(value, str):
                raise ValueError(f"invalid type for field `{name}`: expected a string")
            values[name] = value
        tags = data.get("tags")
        if tags is not None:
            if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
                raise ValueError("invalid type for field `tags`: expected a sequence of strings")
            tags = list(tags)
        return cls(
            id=QuestionId(values["id"]),
            title=values["title"],
            content=values["content"],
            tags=tags,
        )


@dataclass
class PaginationEntity:
    """Pagination window given by start and end indices."""

    start: int
    end: int
    sort: list[str] | None = field(default=None)

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> PaginationEntity:
        """Read `start` (default 0) and `end` (default 10) from query parameters."""
        start = _parse_unsigned(query.get("start", "0"))
        end = _parse_unsigned(query.get("end", "10"))
        return cls(start=start, end=end, sort=None)


@dataclass
class QuestionFilter:
    """Filters applied when listing questions."""

    pagination: PaginationEntity

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> QuestionFilter:
        """Build a filter from query parameters."""
        return cls(pagination=PaginationEntity.from_query(query))