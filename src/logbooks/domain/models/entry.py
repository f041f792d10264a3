"""Entry models and input validation"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from logbooks.domain.errors import LogbooksError, field_errors, format_validation_error

MAX_AUTHOR_ID_LENGTH = 255
MAX_LIST_LIMIT = 100


class EntryType(str, Enum):
    """Kind of entry"""

    UPDATE = "update"
    DECISION = "decision"
    ERROR = "error"
    HANDOFF = "handoff"
    OBSERVATION = "observation"
    TASK = "task"
    CHECKPOINT = "checkpoint"


@dataclass(frozen=True)
class Entry:
    """A stored entry"""

    id: str
    author_id: str
    ts: int  # Milliseconds since the epoch
    md: str  # Markdown body
    type: EntryType = EntryType.UPDATE


class EntryInput(BaseModel):
    """Input for a new entry"""

    author_id: str = Field(min_length=1, max_length=MAX_AUTHOR_ID_LENGTH)
    md: str = Field(min_length=1)
    ts: Optional[int] = Field(None, gt=0)
    type: EntryType = EntryType.UPDATE


class ListOptions(BaseModel):
    """Filters for listing entries"""

    author_id: Optional[str] = Field(None, min_length=1, max_length=MAX_AUTHOR_ID_LENGTH)
    after: Optional[int] = Field(None, gt=0)
    before: Optional[int] = Field(None, gt=0)
    limit: int = Field(20, ge=1, le=MAX_LIST_LIMIT)
    type: Optional[EntryType] = None


def validate_entry_input(data: Dict[str, Any]) -> EntryInput:
    """Validate new-entry input

    Raises:
        LogbooksError: validation kind, with per-field errors
    """
    try:
        return EntryInput.model_validate(data)
    except ValidationError as e:
        raise LogbooksError.validation(format_validation_error(e), field_errors(e), cause=e) from e


def validate_list_options(data: Dict[str, Any]) -> ListOptions:
    """Validate list filters

    Raises:
        LogbooksError: validation kind, with per-field errors
    """
    try:
        return ListOptions.model_validate(data)
    except ValidationError as e:
        raise LogbooksError.validation(format_validation_error(e), field_errors(e), cause=e) from e
