"""Repository configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_SHARE_DURATION = timedelta(hours=24)
"""Expiry applied to shares created without an explicit ``until``."""

DEFAULT_EXPIRY_GRANULARITY = timedelta(seconds=1)
"""Expiries closer than this are treated as the same share group on decode."""


@dataclass
class RepositoryConfig:
    """Settings for a ``GrantRepository``."""

    default_share_duration: timedelta = DEFAULT_SHARE_DURATION
    """Added to the clock's "now" when a share has no ``until``."""

    expiry_granularity: timedelta = DEFAULT_EXPIRY_GRANULARITY
    """Truncation step used when comparing expiries during decode."""

    operation_timeout: float | None = None
    """Seconds allowed per repository call. ``None`` leaves deadlines to the caller."""

    def __post_init__(self) -> None:
        if self.default_share_duration <= timedelta(0):
            raise ValueError(
                f"default_share_duration must be positive, got {self.default_share_duration!r}"
            )
        if self.expiry_granularity <= timedelta(0):
            raise ValueError(
                f"expiry_granularity must be positive, got {self.expiry_granularity!r}"
            )
        if self.operation_timeout is not None and self.operation_timeout <= 0:
            raise ValueError(
                f"operation_timeout must be positive, got {self.operation_timeout!r}"
            )
