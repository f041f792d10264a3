"""Store initialization: config, paths, legacy migration, open and migrate"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from logbooks.domain.errors import LogbooksError
from logbooks.domain.models.paths import ResolvedPaths, StoreOptions
from logbooks.infrastructure.config.config_manager import ConfigLoader, LoadedConfig, load_config
from logbooks.infrastructure.environment import Environment
from logbooks.infrastructure.paths import ensure_database_dir, resolve_paths
from logbooks.infrastructure.retry import RetryOptions, retry, retry_db
from logbooks.infrastructure.storage.database import LogbookDatabase, open_database
from logbooks.infrastructure.storage.legacy import migrate_legacy_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreLocation:
    """Configuration and paths a store was resolved from"""

    loaded_config: Optional[LoadedConfig]
    paths: ResolvedPaths


def locate_store(
    options: Optional[StoreOptions] = None,
    env: Optional[Environment] = None,
    loader: Optional[ConfigLoader] = None,
) -> StoreLocation:
    """Load configuration and resolve store paths without touching the disk"""
    env = env or Environment.from_process()
    loaded_config = load_config(env.cwd, loader or ConfigLoader.for_environment(env))
    paths = resolve_paths(loaded_config, options, env)
    return StoreLocation(loaded_config=loaded_config, paths=paths)


def _migrate_legacy_enabled(options: StoreOptions, loaded_config: Optional[LoadedConfig]) -> bool:
    if options.migrate_legacy is not None:
        return options.migrate_legacy
    if loaded_config is not None:
        return loaded_config.config.database.migrate_legacy
    return True


def _log_setup_retry(error: BaseException, attempt: int) -> None:
    logger.warning(f"Database setup failed (attempt {attempt}): {error}. Retrying...")


def initialize_store(
    options: Optional[StoreOptions] = None,
    env: Optional[Environment] = None,
    loader: Optional[ConfigLoader] = None,
    retry_options: Optional[RetryOptions] = None,
) -> LogbookDatabase:
    """Return a ready database handle.

    Steps:
        1. Load configuration
        2. Resolve the store root and database path
        3. Create the database directory
        4. Move a legacy database into the store root
        5. Open the database and apply pending migrations (retried as a
           whole on transient errors)

    Args:
        options: Store options, e.g. ``StoreOptions(global_=True)``
        env: Environment snapshot (current process if None)
        loader: Config loader (default search places if None)
        retry_options: Retry options for step 5 (database preset if None)

    Returns:
        Open, migrated database handle

    Raises:
        LogbooksError: validation kind for bad configuration, db kind when
            the database cannot be opened or migrated, generic kind for
            filesystem failures
    """
    options = options or StoreOptions()
    env = env or Environment.from_process()

    location = locate_store(options, env, loader)
    paths = location.paths

    try:
        ensure_database_dir(paths.database)
    except OSError as e:
        raise LogbooksError.generic(
            f"Failed to create store directory {paths.database.parent}: {e}", cause=e
        ) from e

    migrate_legacy_store(
        paths.root,
        env.cwd,
        enabled=_migrate_legacy_enabled(options, location.loaded_config),
    )

    def _open() -> LogbookDatabase:
        return open_database(paths.database)

    try:
        if retry_options is not None:
            db = retry(_open, retry_options)
        else:
            db = retry_db(_open, on_retry=_log_setup_retry)
    except LogbooksError:
        raise
    except Exception as e:
        logger.error(f"Failed to initialize database at {paths.database}: {e}")
        raise LogbooksError.db(
            f"Failed to initialize database at {paths.database}: {e}",
            operation="initialize_store",
            cause=e,
        ) from e

    logger.debug(f"Database ready at {paths.database}")
    return db


class StoreSession:
    """Owner of the process's database handle.

    The handle is created on first ``get()``, reused afterwards and released
    by ``close()`` (or on leaving the ``with`` block).
    """

    def __init__(
        self,
        options: Optional[StoreOptions] = None,
        env: Optional[Environment] = None,
        loader: Optional[ConfigLoader] = None,
        retry_options: Optional[RetryOptions] = None,
    ):
        self.options = options or StoreOptions()
        self.env = env or Environment.from_process()
        self.loader = loader
        self.retry_options = retry_options
        self._db: Optional[LogbookDatabase] = None

    def __enter__(self) -> StoreSession:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._db is not None

    def get(self) -> LogbookDatabase:
        """Return the handle, initializing the store on first use"""
        if self._db is None:
            self._db = initialize_store(
                self.options, self.env, loader=self.loader, retry_options=self.retry_options
            )
        return self._db

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None
