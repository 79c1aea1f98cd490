"""Main configuration model for the quire package."""

from __future__ import annotations

from pydantic import BaseModel, Field

from quire.config.backend import BackendConfig
from quire.config.identity import IdentityConfig
from quire.config.logging import LoggingConfig
from quire.config.session import AllocationConfig, ThrottleConfig


class QuireConfig(BaseModel):
    """Main configuration for the quire package.

    Parameters
    ----------
    backend : BackendConfig
        Remote backend binding.
    identity : IdentityConfig
        Local participant identity store.
    throttle : ThrottleConfig
        Throttled answer persistence.
    allocation : AllocationConfig
        Sequence allocation.
    logging : LoggingConfig
        Logging configuration.

    Examples
    --------
    >>> config = QuireConfig()
    >>> config.backend.backend
    'memory'
    >>> config.throttle.window_seconds
    3.0
    >>> config.allocation.policy
    'least_assigned'
    """

    backend: BackendConfig = Field(
        default_factory=BackendConfig, description="Backend configuration"
    )
    identity: IdentityConfig = Field(
        default_factory=IdentityConfig, description="Identity store configuration"
    )
    throttle: ThrottleConfig = Field(
        default_factory=ThrottleConfig, description="Throttle configuration"
    )
    allocation: AllocationConfig = Field(
        default_factory=AllocationConfig, description="Allocation configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
