import pytest

from questionhub.errors import (
    CoreError,
    InternalError,
    InvalidInputError,
    MissingParameters,
    NotFound,
    ParseError,
    UnexpectedResponse,
)


def test_not_found_message_and_base():
    error = NotFound()
    assert isinstance(error, CoreError)
    assert str(error) == "not found"


def test_missing_parameters_message():
    error = MissingParameters()
    assert isinstance(error, CoreError)
    assert str(error) == "missing parameters"


def test_parse_error_keeps_detail():
    error = ParseError("bad digits")
    assert error.detail == "bad digits"
    assert str(error).endswith("bad digits")
    assert str(error).startswith("parse error")


def test_parse_error_is_value_error():
    error = ParseError("x")
    assert isinstance(error, ValueError)
    assert isinstance(error, CoreError)
    assert error.detail == "x"


def test_invalid_input_error_detail():
    error = InvalidInputError("No id provided")
    assert error.detail == "No id provided"
    assert str(error).startswith("io error")
    assert str(error).endswith("No id provided")


def test_internal_error_chains_exception():
    cause = RuntimeError("boom")
    error = InternalError(cause)
    assert error.source is cause
    assert error.__cause__ is cause
    assert str(error).startswith("internal error")
    assert "boom" in str(error)


def test_internal_error_from_text_has_no_cause():
    error = InternalError("broken pipe")
    assert error.__cause__ is None
    assert "broken pipe" in str(error)


def test_unexpected_response_detail():
    error = UnexpectedResponse("got a list")
    assert error.detail == "got a list"
    assert str(error).startswith("unexpected response")
    assert str(error).endswith("got a list")