"""Configuration models with Pydantic validation."""

from logbooks.domain.config.app import SCHEMA_VERSION, LogbookConfig
from logbooks.domain.config.author import AuthorConfig
from logbooks.domain.config.cli import CliConfig
from logbooks.domain.config.database import BackupConfig, DatabaseConfig
from logbooks.domain.config.entries import EntriesConfig, EntryMetadataConfig
from logbooks.domain.config.export import AutoExportConfig, ExportConfig
from logbooks.domain.config.hooks import HooksConfig

__all__ = [
    "SCHEMA_VERSION",
    "LogbookConfig",
    "AuthorConfig",
    "DatabaseConfig",
    "BackupConfig",
    "CliConfig",
    "EntriesConfig",
    "EntryMetadataConfig",
    "HooksConfig",
    "ExportConfig",
    "AutoExportConfig",
]
