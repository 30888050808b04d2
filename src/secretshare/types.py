"""Domain types: Share, GrantRow and the service result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass
class Share:
    """A logical share: one secret, one owner, one expiry, many targets.

    ``id`` and ``created_at`` on a decoded share come from the first grant
    row seen for the group. They are informational, not a handle for the
    group as a whole.
    """

    secret_key: str
    owner: str
    target: list[str] = field(default_factory=list)
    until: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class GrantRow:
    """One (owner, secret, target) sharing edge as seen by the domain layer."""

    secret_key: str
    owner: str
    target: str
    until: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class ShareResult:
    """Result of a share/unshare operation."""

    success: bool
    message: str
    share: Share | None = None
    last_id: int | None = None


@dataclass
class ListSharesResult:
    """Result of a share listing operation."""

    success: bool
    message: str
    shares: list[Share] = field(default_factory=list)
