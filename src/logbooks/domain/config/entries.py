"""Entry defaults configuration model."""

from pydantic import Field

from logbooks.domain.config.base import ConfigSection


class EntryMetadataConfig(ConfigSection):
    """Context captured alongside new entries."""

    include_git_branch: bool = False
    include_hostname: bool = False
    include_working_directory: bool = False


class EntriesConfig(ConfigSection):
    """Defaults for new entries.

    Attributes:
        default_type: Entry type used when none is given
        metadata: Context captured with each entry
    """

    default_type: str = "update"
    metadata: EntryMetadataConfig = Field(default_factory=EntryMetadataConfig)
