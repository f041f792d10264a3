"""Database and backup configuration models."""

from typing import Literal, Optional

from pydantic import Field

from logbooks.domain.config.base import ConfigSection


class BackupConfig(ConfigSection):
    """Backup settings.

    Attributes:
        enabled: Whether periodic backups are on
        interval: Backup frequency
        retention: Number of backups to keep (None = keep all)
        location: Backup directory, relative to the store root
    """

    enabled: bool = False
    interval: Literal["hourly", "daily", "weekly"] = "daily"
    retention: Optional[int] = Field(None, gt=0)
    location: str = "./backups/"


class DatabaseConfig(ConfigSection):
    """Database settings.

    Attributes:
        path: Store root directory, relative to the config file
        migrate_legacy: Move a legacy ``logbook(s).sqlite`` found in the
            working directory into the store root
        backup: Backup settings
    """

    path: Optional[str] = None
    migrate_legacy: bool = True
    backup: BackupConfig = Field(default_factory=BackupConfig)
