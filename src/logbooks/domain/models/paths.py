"""Store location models"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class StoreOptions:
    """Caller options for locating and opening a store"""

    global_: bool = False  # Target the per-user store instead of a project one
    path: Optional[Path] = None  # Explicit store root directory
    migrate_legacy: Optional[bool] = None  # None = follow database.migrateLegacy


@dataclass(frozen=True)
class ResolvedPaths:
    """Final locations for one store.

    ``database`` always lives directly in ``root``. Both config paths are
    reported whichever rule selected the root.
    """

    root: Path
    database: Path
    project_config_path: Optional[Path]
    global_config_path: Optional[Path]
