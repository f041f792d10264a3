"""Tests for the tagged error type"""

import pytest
from pydantic import BaseModel, Field, ValidationError

from logbooks.domain.errors import ErrorKind, LogbooksError, field_errors, format_validation_error


class _Sample(BaseModel):
    name: str = Field(min_length=1)
    count: int


def _validation_error() -> ValidationError:
    with pytest.raises(ValidationError) as exc_info:
        _Sample.model_validate({"name": ""})
    return exc_info.value


class TestLogbooksError:
    def test_default_kind_is_generic(self):
        error = LogbooksError("something broke")
        assert error.kind is ErrorKind.GENERIC
        assert str(error) == "something broke"
        assert error.cause is None

    def test_db_constructor(self):
        cause = OSError("disk full")
        error = LogbooksError.db("write failed", operation="add_entry", cause=cause)

        assert error.is_db
        assert not error.is_validation
        assert error.operation == "add_entry"
        assert error.__cause__ is cause

    def test_validation_constructor(self):
        error = LogbooksError.validation("bad input", {"md": "required"})

        assert error.is_validation
        assert error.errors == {"md": "required"}

    def test_kind_accepts_string_value(self):
        assert LogbooksError("x", "db").kind is ErrorKind.DB

    def test_repr(self):
        assert repr(LogbooksError.generic("oops")) == "LogbooksError(kind='generic', message='oops')"


class TestValidationFormatting:
    def test_every_failure_is_listed(self):
        message = format_validation_error(_validation_error(), title="Input rejected")

        lines = message.splitlines()
        assert lines[0] == "Input rejected:"
        assert any(line.startswith("  - name:") for line in lines)
        assert any(line.startswith("  - count:") for line in lines)

    def test_field_errors(self):
        assert set(field_errors(_validation_error())) == {"name", "count"}
