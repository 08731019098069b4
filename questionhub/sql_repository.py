"""Question repository stored in a relational database."""

from __future__ import annotations

import asyncio
import dataclasses
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from questionhub.entities import QuestionEntity, QuestionFilter, QuestionId
from questionhub.errors import InternalError, InvalidInputError, NotFound, ParseError
from questionhub.ports import QuestionPort

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1
_SIGNED = re.compile(r"[+-]?[0-9]+")

metadata = MetaData()

questions_table = Table(
    "questions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("tags", JSON().with_variant(postgresql.ARRAY(Text), "postgresql"), nullable=True),
    Column("created_on", DateTime, nullable=False),
)


def create_schema(engine: Engine) -> None:
    """Create the questions table if it does not exist."""
    metadata.create_all(engine)


def _parse_i32(text: str) -> int:
    if text == "":
        raise ParseError("cannot parse integer from empty string")
    if not _SIGNED.fullmatch(text):
        raise ParseError("invalid digit found in string")
    value = int(text)
    if value > _I32_MAX:
        raise ParseError("number too large to fit in target type")
    if value < _I32_MIN:
        raise ParseError("number too small to fit in target type")
    return value


@dataclass
class DBConfig:
    """Database connection settings."""

    url: str
    max_size: int


@dataclass
class QuestionModel:
    """A row of the questions table."""

    id: int
    title: str
    content: str
    tags: list[str | None] | None
    created_on: datetime

    @classmethod
    def from_entity(cls, entity: QuestionEntity) -> QuestionModel:
        """Build a row from a question; raise InvalidInputError for a non-numeric id."""
        try:
            row_id = _parse_i32(entity.id.value)
        except ParseError:
            raise InvalidInputError("Invalid ID") from None
        return cls(
            id=row_id,
            title=entity.title,
            content=entity.content,
            tags=list(entity.tags) if entity.tags is not None else None,
            created_on=datetime.now(),
        )

    def to_entity(self) -> QuestionEntity:
        """Return the question this row holds, dropping null tags."""
        return QuestionEntity(
            id=QuestionId(str(self.id)),
            title=self.title,
            content=self.content,
            tags=[tag for tag in self.tags if tag is not None] if self.tags is not None else None,
        )


def _model_from_row(row: Any) -> QuestionModel:
    return QuestionModel(
        id=row.id,
        title=row.title,
        content=row.content,
        tags=list(row.tags) if row.tags is not None else None,
        created_on=row.created_on,
    )


@contextmanager
def _database_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as err:
        raise InternalError(err) from err


def _fetch(conn: Connection, row_id: int) -> QuestionModel:
    row = conn.execute(select(questions_table).where(questions_table.c.id == row_id)).one_or_none()
    if row is None:
        raise NotFound()
    return _model_from_row(row)


class QuestionDBRepository(QuestionPort):
    """Question store whose blocking database work runs in worker threads."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_config(cls, config: DBConfig) -> QuestionDBRepository:
        """Create a repository with a connection pool sized by the configuration."""
        engine = create_engine(config.url, pool_size=config.max_size, max_overflow=0)
        return cls(engine)

    def _add(self, model: QuestionModel) -> QuestionEntity:
        with _database_errors(), self.engine.begin() as conn:
            conn.execute(insert(questions_table).values(**dataclasses.asdict(model)))
            return _fetch(conn, model.id).to_entity()

    def _update(self, model: QuestionModel) -> QuestionEntity:
        values = dataclasses.asdict(model)
        del values["id"]
        with _database_errors(), self.engine.begin() as conn:
            result = conn.execute(
                update(questions_table).where(questions_table.c.id == model.id).values(**values)
            )
            if result.rowcount == 0:
                raise NotFound()
            return _fetch(conn, model.id).to_entity()

    def _delete(self, row_id: int) -> None:
        with _database_errors(), self.engine.begin() as conn:
            conn.execute(delete(questions_table).where(questions_table.c.id == row_id))

    def _get(self, row_id: int) -> QuestionEntity:
        with _database_errors(), self.engine.connect() as conn:
            return _fetch(conn, row_id).to_entity()

    def _list(self) -> list[QuestionEntity]:
        with _database_errors(), self.engine.connect() as conn:
            rows = conn.execute(select(questions_table).order_by(questions_table.c.id)).all()
        return [_model_from_row(row).to_entity() for row in rows]

    @staticmethod
    def _model_for(question: QuestionEntity) -> QuestionModel:
        try:
            return QuestionModel.from_entity(question)
        except InvalidInputError as err:
            raise InternalError(err) from err

    async def add(self, question: QuestionEntity) -> QuestionEntity:
        """Insert the question; raise InternalError for a bad id or database failure."""
        return await asyncio.to_thread(self._add, self._model_for(question))

    async def update(self, question: QuestionEntity) -> QuestionEntity:
        """Update the question; raise NotFound if no row has its id."""
        return await asyncio.to_thread(self._update, self._model_for(question))

    async def delete(self, question_id: QuestionId) -> None:
        """Delete the question's row if present; raise ParseError for a non-numeric id."""
        await asyncio.to_thread(self._delete, _parse_i32(str(question_id)))

    async def get(self, question_id: QuestionId) -> QuestionEntity:
        """Return the question; raise ParseError or NotFound."""
        return await asyncio.to_thread(self._get, _parse_i32(str(question_id)))

    async def list(self, question_filter: QuestionFilter) -> list[QuestionEntity]:
        """Return every stored question; the filter is not applied."""
        return await asyncio.to_thread(self._list)