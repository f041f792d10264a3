"""Error type shared by every logbooks layer.

A single exception class carries a closed ``ErrorKind`` tag. Callers branch on
``error.kind`` rather than on subclasses.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError


class ErrorKind(str, Enum):
    """Closed set of error categories"""

    VALIDATION = "validation"
    DB = "db"
    GENERIC = "generic"


class LogbooksError(Exception):
    """Logbooks error tagged with its kind.

    Attributes:
        kind: Error category
        cause: Underlying error, if any
        operation: Name of the failed operation (db errors)
        errors: Field path -> message mapping (validation errors)
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.GENERIC,
        *,
        cause: Optional[BaseException] = None,
        operation: Optional[str] = None,
        errors: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = ErrorKind(kind)
        self.cause = cause
        self.operation = operation
        self.errors = dict(errors or {})
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def validation(
        cls,
        message: str,
        errors: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> "LogbooksError":
        return cls(message, ErrorKind.VALIDATION, errors=errors, cause=cause)

    @classmethod
    def db(
        cls, message: str, operation: str, cause: Optional[BaseException] = None
    ) -> "LogbooksError":
        return cls(message, ErrorKind.DB, operation=operation, cause=cause)

    @classmethod
    def generic(cls, message: str, cause: Optional[BaseException] = None) -> "LogbooksError":
        return cls(message, ErrorKind.GENERIC, cause=cause)

    @property
    def is_validation(self) -> bool:
        return self.kind is ErrorKind.VALIDATION

    @property
    def is_db(self) -> bool:
        return self.kind is ErrorKind.DB

    def __repr__(self) -> str:
        return f"LogbooksError(kind={self.kind.value!r}, message={self.message!r})"


def format_validation_error(error: ValidationError, title: str = "Validation failed") -> str:
    """Render pydantic errors as one ``  - field.path: message`` line each"""
    lines = []
    for item in error.errors():
        field = ".".join(str(x) for x in item["loc"])
        lines.append(f"  - {field}: {item['msg']}" if field else f"  - {item['msg']}")
    return f"{title}:\n" + "\n".join(lines)


def field_errors(error: ValidationError) -> Dict[str, Any]:
    """Map each failing field path to its message"""
    return {".".join(str(x) for x in item["loc"]): item["msg"] for item in error.errors()}
