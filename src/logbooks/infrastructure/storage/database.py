"""SQLite store handle"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from logbooks.infrastructure.storage.migrations import MIGRATIONS, Migration

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE = "__logbooks_migrations"


class LogbookDatabase:
    """Connection to one logbook database file.

    Foreign keys are enforced on every connection. Call ``migrate`` (or use
    ``open_database``) before handing the handle out.
    """

    def __init__(self, path: Path, timeout: float = 5.0):
        """Open (or create) the database file

        Args:
            path: Database file path
            timeout: Seconds sqlite waits on a locked database before failing
        """
        self.path = Path(path)
        # Autocommit mode; multi-statement work goes through transaction()
        self.connection = sqlite3.connect(str(self.path), timeout=timeout, isolation_level=None)
        self.connection.row_factory = sqlite3.Row
        try:
            self.connection.execute("PRAGMA foreign_keys = ON")
            self.connection.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error:
            self.connection.close()
            raise

    def __enter__(self) -> LogbookDatabase:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        try:
            self.connection.execute("SELECT 1")
        except sqlite3.ProgrammingError:
            return True
        return False

    def close(self) -> None:
        self.connection.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements in one transaction"""
        self.connection.execute("BEGIN")
        try:
            yield self.connection
        except BaseException:
            self.connection.execute("ROLLBACK")
            raise
        self.connection.execute("COMMIT")

    def foreign_keys_enabled(self) -> bool:
        return bool(self.connection.execute("PRAGMA foreign_keys").fetchone()[0])

    def applied_migrations(self) -> List[str]:
        """Names of migrations already applied, in order"""
        self._ensure_migrations_table()
        rows = self.connection.execute(
            f"SELECT name FROM {MIGRATIONS_TABLE} ORDER BY id"
        ).fetchall()
        return [row["name"] for row in rows]

    def migrate(self, migrations: Sequence[Migration] = MIGRATIONS) -> List[str]:
        """Apply pending migrations in order

        Returns:
            Names of the migrations applied by this call
        """
        applied = set(self.applied_migrations())
        newly_applied = []
        for migration in migrations:
            if migration.name in applied:
                continue
            logger.debug(f"Applying migration {migration.name} to {self.path}")
            with self.transaction():
                for statement in migration.statements:
                    self.connection.execute(statement)
                self.connection.execute(
                    f"INSERT INTO {MIGRATIONS_TABLE} (name, applied_at) VALUES (?, ?)",
                    (migration.name, int(time.time() * 1000)),
                )
            newly_applied.append(migration.name)
        if newly_applied:
            logger.info(f"Applied {len(newly_applied)} migration(s) to {self.path}")
        return newly_applied

    def _ensure_migrations_table(self) -> None:
        self.connection.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                applied_at INTEGER NOT NULL
            )
            """
        )


def open_database(path: Path, migrations: Optional[Sequence[Migration]] = None) -> LogbookDatabase:
    """Open the database at ``path`` and bring its schema up to date.

    The connection is closed again if migrating fails.
    """
    db = LogbookDatabase(path)
    try:
        db.migrate(MIGRATIONS if migrations is None else migrations)
    except BaseException:
        db.close()
        raise
    return db
