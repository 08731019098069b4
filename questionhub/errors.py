"""Errors raised by the core domain and its adapters."""

from __future__ import annotations


class CoreError(Exception):
    """Base class for every error raised by the core domain."""


class ParseError(CoreError, ValueError):
    """A numeric value could not be parsed."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"parse error {self.detail}"


class InvalidInputError(CoreError, ValueError):
    """Input was rejected before it reached a repository."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"io error {self.detail}"


class MissingParameters(CoreError):
    """A required parameter was not supplied."""

    def __str__(self) -> str:
        return "missing parameters"


class NotFound(CoreError, LookupError):
    """The requested item does not exist."""

    def __str__(self) -> str:
        return "not found"


class InternalError(CoreError):
    """An unexpected failure in a backing service."""

    def __init__(self, source: BaseException | str) -> None:
        super().__init__(source)
        self.source = source
        if isinstance(source, BaseException):
            self.__cause__ = source

    def __str__(self) -> str:
        return f"internal error {self.source}"


class UnexpectedResponse(CoreError):
    """A backing service answered with something that was not expected."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"unexpected response {self.detail}"