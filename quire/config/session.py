"""Participant session configuration models for the quire package."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ThrottleConfig(BaseModel):
    """Configuration for throttled answer persistence.

    Parameters
    ----------
    window_seconds : float
        Length of the coalescing window.

    Examples
    --------
    >>> ThrottleConfig().window_seconds
    3.0
    """

    window_seconds: float = Field(
        default=3.0, ge=0, description="Coalescing window in seconds"
    )


class AllocationConfig(BaseModel):
    """Configuration for sequence allocation.

    Parameters
    ----------
    policy : str
        Slot selection policy ("least_assigned" or "first").
    max_update_attempts : int
        Conditional registry updates to try before giving up.

    Examples
    --------
    >>> config = AllocationConfig()
    >>> config.policy
    'least_assigned'
    >>> config.max_update_attempts
    5
    """

    policy: Literal["least_assigned", "first"] = Field(
        default="least_assigned", description="Slot selection policy"
    )
    max_update_attempts: int = Field(
        default=5, ge=1, description="Attempts for guarded registry updates"
    )
