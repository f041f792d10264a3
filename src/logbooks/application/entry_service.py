"""Entry operations on an initialized store"""

import logging
import sqlite3
import time
import uuid
from typing import Any, Dict, List, Optional

from logbooks.domain.errors import LogbooksError
from logbooks.domain.models.entry import Entry, EntryInput, EntryType, ListOptions
from logbooks.infrastructure.retry import retry_db
from logbooks.infrastructure.storage.database import LogbookDatabase

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_TYPE = "user"


def _now_ms() -> int:
    return int(time.time() * 1000)


def add_entry(
    db: LogbookDatabase,
    entry: EntryInput,
    author_type: str = DEFAULT_AUTHOR_TYPE,
    retry_overrides: Optional[Dict[str, Any]] = None,
) -> str:
    """Add an entry, registering its author if unknown

    Args:
        db: Open database handle
        entry: Validated entry input
        author_type: Type recorded for a newly seen author
        retry_overrides: Field overrides for the database retry preset

    Returns:
        ID of the new entry

    Raises:
        LogbooksError: db kind if the insert fails after retries
    """

    def _insert() -> str:
        entry_id = str(uuid.uuid4())
        ts = entry.ts if entry.ts is not None else _now_ms()
        with db.transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO authors (id, type, created_at) VALUES (?, ?, ?)",
                (entry.author_id, author_type, _now_ms()),
            )
            conn.execute(
                "INSERT INTO entries (id, author_id, type, timestamp, content) VALUES (?, ?, ?, ?, ?)",
                (entry_id, entry.author_id, EntryType(entry.type).value, ts, entry.md),
            )
        return entry_id

    try:
        entry_id = retry_db(_insert, **(retry_overrides or {}))
    except sqlite3.Error as e:
        raise LogbooksError.db(f"Failed to add entry: {e}", operation="add_entry", cause=e) from e
    logger.debug(f"Added entry {entry_id} by {entry.author_id}")
    return entry_id


def list_entries(
    db: LogbookDatabase,
    options: Optional[ListOptions] = None,
    retry_overrides: Optional[Dict[str, Any]] = None,
) -> List[Entry]:
    """List entries newest first

    Args:
        db: Open database handle
        options: Validated filters (defaults if None)
        retry_overrides: Field overrides for the database retry preset

    Returns:
        Matching entries, at most ``options.limit``

    Raises:
        LogbooksError: db kind if the query fails after retries
    """
    options = options or ListOptions()

    conditions = []
    params: List[Any] = []
    if options.author_id is not None:
        conditions.append("author_id = ?")
        params.append(options.author_id)
    if options.after is not None:
        conditions.append("timestamp > ?")
        params.append(options.after)
    if options.before is not None:
        conditions.append("timestamp < ?")
        params.append(options.before)
    if options.type is not None:
        conditions.append("type = ?")
        params.append(EntryType(options.type).value)

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    query = (
        "SELECT id, author_id, type, timestamp, content FROM entries"
        f"{where} ORDER BY timestamp DESC LIMIT ?"
    )
    params.append(options.limit)

    def _select() -> List[Entry]:
        rows = db.connection.execute(query, params).fetchall()
        return [
            Entry(
                id=row["id"],
                author_id=row["author_id"],
                ts=row["timestamp"],
                md=row["content"],
                type=EntryType(row["type"]),
            )
            for row in rows
        ]

    try:
        return retry_db(_select, **(retry_overrides or {}))
    except sqlite3.Error as e:
        raise LogbooksError.db(f"Failed to list entries: {e}", operation="list_entries", cause=e) from e
