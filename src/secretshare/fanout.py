"""Fan-out: expand one logical share into one grant row per target."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .clock import utc_now
from .codec import as_utc
from .config import DEFAULT_SHARE_DURATION
from .types import GrantRow

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from .clock import Clock
    from .types import Share


def resolve_until(
    until: datetime | None,
    *,
    clock: Clock = utc_now,
    default_duration: timedelta = DEFAULT_SHARE_DURATION,
) -> datetime:
    """Return *until*, or ``clock() + default_duration`` when it is unset."""
    if until is None:
        return clock() + default_duration
    return until


def encode(
    share: Share,
    *,
    clock: Clock = utc_now,
    default_duration: timedelta = DEFAULT_SHARE_DURATION,
) -> list[GrantRow]:
    """Expand *share* into grant rows, one per distinct target, in target order.

    Every row carries the same resolved expiry. An empty target list
    yields an empty list. ``id`` and ``created_at`` stay unset.
    """
    if not share.target:
        return []

    until = as_utc(resolve_until(share.until, clock=clock, default_duration=default_duration))
    rows: list[GrantRow] = []
    seen: set[str] = set()
    for target in share.target:
        if target in seen:
            continue
        seen.add(target)
        rows.append(
            GrantRow(
                secret_key=share.secret_key,
                owner=share.owner,
                target=target,
                until=until,
            )
        )
    return rows
