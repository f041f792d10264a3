"""Export configuration model."""

from typing import Literal, Optional

from pydantic import Field

from logbooks.domain.config.base import ConfigSection


class AutoExportConfig(ConfigSection):
    """Automatic export settings.

    Attributes:
        on_commit: Export whenever a commit is made
        format: Export file format
        location: Export directory (None = ``exports/`` in the store root)
    """

    on_commit: bool = False
    format: Literal["markdown", "json", "csv"] = "markdown"
    location: Optional[str] = None


class ExportConfig(ConfigSection):
    """Export settings."""

    auto: AutoExportConfig = Field(default_factory=AutoExportConfig)
