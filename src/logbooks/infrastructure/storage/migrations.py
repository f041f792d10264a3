"""Ordered schema migrations.

Each migration is applied once and recorded by name. Append new migrations
to the end of ``MIGRATIONS``; never edit one that has shipped.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Migration:
    name: str
    statements: Tuple[str, ...]


INITIAL = Migration(
    name="0000_initial",
    statements=(
        """
        CREATE TABLE IF NOT EXISTS authors (
            id TEXT PRIMARY KEY NOT NULL,
            type TEXT NOT NULL,
            name TEXT,
            model TEXT,
            tool TEXT,
            service_type TEXT,
            created_at INTEGER NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS authors_type_idx ON authors (type)",
        "CREATE INDEX IF NOT EXISTS authors_created_at_idx ON authors (created_at)",
        "CREATE INDEX IF NOT EXISTS authors_tool_idx ON authors (tool)",
        "CREATE INDEX IF NOT EXISTS authors_model_idx ON authors (model)",
        """
        CREATE TABLE IF NOT EXISTS entries (
            id TEXT PRIMARY KEY NOT NULL,
            author_id TEXT NOT NULL,
            type TEXT DEFAULT 'update' NOT NULL,
            timestamp INTEGER NOT NULL,
            content TEXT NOT NULL,
            FOREIGN KEY (author_id) REFERENCES authors (id)
        )
        """,
        "CREATE INDEX IF NOT EXISTS entries_author_id_idx ON entries (author_id)",
        "CREATE INDEX IF NOT EXISTS entries_timestamp_idx ON entries (timestamp)",
        "CREATE INDEX IF NOT EXISTS entries_type_idx ON entries (type)",
        "CREATE INDEX IF NOT EXISTS entries_author_id_timestamp_idx ON entries (author_id, timestamp)",
        "CREATE INDEX IF NOT EXISTS entries_type_timestamp_idx ON entries (type, timestamp)",
    ),
)

MIGRATIONS: Tuple[Migration, ...] = (INITIAL,)
