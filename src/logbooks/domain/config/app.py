"""Root logbook configuration model."""

from typing import Literal

from pydantic import ConfigDict, Field

from logbooks.domain.config.author import AuthorConfig
from logbooks.domain.config.base import ConfigSection
from logbooks.domain.config.cli import CliConfig
from logbooks.domain.config.database import DatabaseConfig
from logbooks.domain.config.entries import EntriesConfig
from logbooks.domain.config.export import ExportConfig
from logbooks.domain.config.hooks import HooksConfig

SCHEMA_VERSION = "1.0.0"


class LogbookConfig(ConfigSection):
    """Root configuration model.

    Aggregates every configuration group. Missing groups are filled with their
    defaults. Unknown top-level keys are ignored; values of known keys are
    validated strictly.

    Attributes:
        version: Schema revision, pinned for future migrations
        author: Author defaults
        database: Database location and backups
        cli: CLI behaviour
        entries: Defaults for new entries
        hooks: Lifecycle hook scripts
        export: Automatic export settings
    """

    version: Literal["1.0.0"] = SCHEMA_VERSION
    author: AuthorConfig = Field(default_factory=AuthorConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cli: CliConfig = Field(default_factory=CliConfig)
    entries: EntriesConfig = Field(default_factory=EntriesConfig)
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "version": "1.0.0",
                "author": {"defaultId": "alice", "defaultType": "user"},
                "database": {
                    "backup": {"enabled": True, "interval": "daily", "retention": 7},
                },
                "cli": {"listLimit": 20, "timestampFormat": "relative"},
                "export": {"auto": {"onCommit": False, "format": "markdown"}},
            }
        },
    )
