"""Store location resolution.

Layout of a project store (``.logbook/`` next to the project):

    .logbook/
        config.json         # project config (git-tracked)
        config.local.json   # local overrides (ignored)
        logbook.sqlite      # the store (ignored)
        backups/
        exports/
        .gitignore          # auto-written

The per-user store lives in ``$XDG_CONFIG_HOME/logbooks/`` (``~/.config``
when unset) and holds ``config.json`` and ``logbook.sqlite``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from logbooks.domain.models.paths import ResolvedPaths, StoreOptions
from logbooks.infrastructure.config.config_manager import LoadedConfig
from logbooks.infrastructure.environment import DB_ENV, PATH_ENV, Environment

logger = logging.getLogger(__name__)

GLOBAL_DIR_NAME = "logbooks"
PROJECT_DIR_NAME = ".logbook"
DB_FILE_NAME = "logbook.sqlite"
DB_FILE_SUFFIX = ".sqlite"
CONFIG_FILE_NAME = "config.json"
LOCAL_CONFIG_FILE_NAME = "config.local.json"
VCS_DIR_NAME = ".git"

GITIGNORE_CONTENT = """\
# Database files
logbook.sqlite
logbook.sqlite-shm
logbook.sqlite-wal

# Local configuration
config.local.json

# Backups
backups/*.sqlite

# But keep the directory structure
!backups/.gitkeep
!exports/.gitkeep
"""


def _find_up(name: str, start: Path, stop_at: Optional[Path] = None, want_dir: bool = False) -> Optional[Path]:
    """Return the nearest ``name`` in ``start`` or its ancestors.

    The walk checks ``stop_at`` itself and goes no further.
    """
    for directory in (start, *start.parents):
        candidate = directory / name
        if candidate.is_dir() if want_dir else candidate.exists():
            return candidate
        if stop_at is not None and directory == stop_at:
            break
    return None


def find_repo_root(start: Path) -> Optional[Path]:
    """Directory containing the nearest ``.git`` above ``start``"""
    marker = _find_up(VCS_DIR_NAME, start)
    return marker.parent if marker else None


def find_store_dir(start_dir: Path) -> Optional[Path]:
    """Find the nearest ``.logbook`` directory walking up from ``start_dir``.

    The walk stops at the enclosing git repository root when there is one,
    otherwise at the filesystem root.
    """
    start = Path(start_dir).absolute()
    stop_at = find_repo_root(start)
    found = _find_up(PROJECT_DIR_NAME, start, stop_at=stop_at, want_dir=True)
    if found:
        logger.debug(f"Found store directory: {found}")
    return found


def get_global_dir(env: Environment) -> Path:
    """Per-user store root following the XDG base directory layout"""
    return env.config_home / GLOBAL_DIR_NAME


def _resolve_root(
    loaded_config: Optional[LoadedConfig],
    options: StoreOptions,
    env: Environment,
) -> Path:
    # 1. Explicit directory
    if options.path:
        return env.resolve(options.path)

    # 2. Global flag
    if options.global_:
        return get_global_dir(env)

    # 3. Full database path from the environment
    db_value = env.get(DB_ENV)
    if db_value:
        if db_value.endswith(DB_FILE_SUFFIX):
            return env.resolve(db_value).parent
        logger.debug(f"Ignoring {DB_ENV}={db_value}: not a {DB_FILE_SUFFIX} file")

    # 4. Directory from the environment
    dir_value = env.get(PATH_ENV)
    if dir_value:
        return env.resolve(dir_value)

    # 4b. Directory declared by the loaded config, relative to the config file
    if loaded_config and loaded_config.config.database.path:
        base = loaded_config.filepath.parent
        return env.with_cwd(base).resolve(loaded_config.config.database.path)

    # 5. Nearest .logbook above the working directory
    found = find_store_dir(env.cwd)
    if found:
        return found

    # 6. Fresh .logbook in the working directory
    return env.cwd / PROJECT_DIR_NAME


def resolve_paths(
    loaded_config: Optional[LoadedConfig] = None,
    options: Optional[StoreOptions] = None,
    env: Optional[Environment] = None,
) -> ResolvedPaths:
    """Resolve the store root and database path.

    Precedence (first match wins):
        1. ``options.path``
        2. ``options.global_``
        3. ``LOGBOOKS_DB`` ending in ``.sqlite`` (its directory)
        4. ``LOGBOOKS_PATH``
        5. ``database.path`` from the loaded config
        6. nearest ``.logbook`` directory (bounded by the git root)
        7. ``.logbook`` in the working directory

    Args:
        loaded_config: Result of ``load_config`` (None when no config exists)
        options: Caller options
        env: Environment snapshot (current process if None)

    Returns:
        Resolved paths
    """
    options = options or StoreOptions()
    env = env or Environment.from_process()

    root = _resolve_root(loaded_config, options, env)
    return ResolvedPaths(
        root=root,
        database=root / DB_FILE_NAME,
        project_config_path=root / CONFIG_FILE_NAME,
        global_config_path=get_global_dir(env) / CONFIG_FILE_NAME,
    )


def ensure_database_dir(database: Path) -> None:
    """Create the directory holding ``database`` if missing"""
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def init_store_dir(root: Path) -> Path:
    """Create the store directory skeleton (subdirectories, .gitignore, .gitkeep).

    Existing files are left untouched.
    """
    root = Path(root)
    for sub in ("backups", "exports"):
        (root / sub).mkdir(parents=True, exist_ok=True)
        gitkeep = root / sub / ".gitkeep"
        if not gitkeep.exists():
            gitkeep.write_text("", encoding="utf-8")

    gitignore = root / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")
    return root
