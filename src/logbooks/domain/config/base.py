"""Shared settings for configuration sections."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ConfigSection(BaseModel):
    """Base for config groups.

    Config files are written in camelCase (``listLimit``); attributes are
    snake_case (``list_limit``). Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
