"""Process environment snapshot used by path resolution.

Environment variables, the working directory and the home directory are read
through this object so resolution can be exercised without touching
``os.environ``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

# Environment variable names
PATH_ENV = "LOGBOOKS_PATH"
DB_ENV = "LOGBOOKS_DB"
AUTHOR_ENV = "LOGBOOKS_AUTHOR_ID"
XDG_CONFIG_HOME_ENV = "XDG_CONFIG_HOME"


@dataclass(frozen=True)
class Environment:
    """Immutable view of the variables and directories a resolution depends on"""

    cwd: Path
    home: Path
    variables: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_process(cls) -> Environment:
        """Snapshot the current process environment"""
        variables = dict(os.environ)
        home = variables.get("HOME") or str(Path.home())
        return cls(cwd=Path.cwd(), home=Path(home), variables=variables)

    def get(self, name: str) -> Optional[str]:
        """Return a non-empty variable value or None"""
        value = self.variables.get(name)
        return value or None

    @property
    def config_home(self) -> Path:
        """XDG config home (``$XDG_CONFIG_HOME`` or ``~/.config``)"""
        xdg = self.get(XDG_CONFIG_HOME_ENV)
        if xdg:
            return Path(xdg)
        return self.home / ".config"

    def resolve(self, value: str | os.PathLike) -> Path:
        """Resolve a possibly relative path against this environment's cwd"""
        raw = os.fspath(value)
        if raw == "~" or raw.startswith("~/"):
            raw = str(self.home) + raw[1:]
        path = Path(raw)
        if not path.is_absolute():
            path = self.cwd / path
        return Path(os.path.normpath(path))

    def with_cwd(self, cwd: Path) -> Environment:
        return Environment(cwd=cwd, home=self.home, variables=self.variables)
