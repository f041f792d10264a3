"""Author configuration model."""

from typing import Literal, Optional

from logbooks.domain.config.base import ConfigSection

AuthorType = Literal["user", "agent", "service"]


class AuthorConfig(ConfigSection):
    """Defaults for the author of new entries.

    Attributes:
        default_id: Author ID used when none is given
        default_type: Kind of author (user, agent, service)
        default_name: Display name
        model: Model identifier for agent authors
        tool: Tool name for agent authors
        service_type: Service kind for service authors
    """

    default_id: Optional[str] = None
    default_type: Optional[AuthorType] = None
    default_name: Optional[str] = None
    model: Optional[str] = None
    tool: Optional[str] = None
    service_type: Optional[str] = None
