"""Lifecycle hooks configuration model."""

from typing import Optional

from logbooks.domain.config.base import ConfigSection


class HooksConfig(ConfigSection):
    """Scripts run at lifecycle events."""

    pre_add: Optional[str] = None
    post_add: Optional[str] = None
    pre_commit: Optional[str] = None
