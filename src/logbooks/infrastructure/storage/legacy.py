"""Migration of single-file stores from the pre-directory layout"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from logbooks.domain.errors import LogbooksError

logger = logging.getLogger(__name__)

# Checked in this order, relative to the working directory
LEGACY_DB_NAMES = ("logbooks.sqlite", "logbook.sqlite")
DB_FILE_NAME = "logbook.sqlite"


def find_legacy_store(cwd: Path) -> Optional[Path]:
    """Return the first legacy database file in ``cwd``, if any"""
    for name in LEGACY_DB_NAMES:
        candidate = Path(cwd) / name
        if candidate.is_file():
            return candidate
    return None


def migrate_legacy_store(new_root_dir: Path, cwd: Path, enabled: bool = True) -> Optional[Path]:
    """Move a legacy database from ``cwd`` into ``new_root_dir``.

    An existing destination is never overwritten: the move is skipped with a
    warning. With ``enabled`` False a found legacy file is only reported.

    Args:
        new_root_dir: Store root receiving the database
        cwd: Directory holding legacy files
        enabled: Whether to move the file

    Returns:
        New database path if a file was moved, otherwise None

    Raises:
        LogbooksError: db kind, if the move fails for any other reason
    """
    legacy_path = find_legacy_store(cwd)
    if legacy_path is None:
        return None

    new_db_path = Path(new_root_dir) / DB_FILE_NAME
    if legacy_path.resolve() == new_db_path.resolve():
        return None

    if not enabled:
        logger.warning(
            f"Legacy database found at {legacy_path}; automatic migration is disabled. "
            f"Move it to {new_db_path} to keep using it."
        )
        return None

    if new_db_path.exists():
        logger.warning(f"Migration skipped: target file {new_db_path} already exists.")
        return None

    logger.info(f"Legacy database found at {legacy_path}. Migrating to {new_db_path}...")
    try:
        new_db_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(legacy_path), str(new_db_path))
    except FileExistsError:
        logger.warning(f"Migration skipped: target file {new_db_path} already exists.")
        return None
    except OSError as e:
        raise LogbooksError.db(
            f"Failed to migrate legacy database {legacy_path} to {new_db_path}: {e}",
            operation="migrate_legacy_store",
            cause=e,
        ) from e

    logger.info("Migration successful.")
    return new_db_path
