"""CLI behaviour configuration model."""

from typing import Literal, Optional

from pydantic import Field

from logbooks.domain.config.base import ConfigSection


class CliConfig(ConfigSection):
    """Configuration for the command line interface.

    Attributes:
        default_command: Command run when none is given
        list_limit: Default number of entries shown by ``list``
        rich_output: Whether to use styled terminal output
        timestamp_format: How timestamps are rendered
        editor: Editor command for composing entries
    """

    default_command: Literal["list", "add"] = "list"
    list_limit: int = Field(20, gt=0)
    rich_output: bool = True
    timestamp_format: Literal["iso", "relative", "local"] = "relative"
    editor: Optional[str] = None
