"""Row codec: storage grant records to and from ``GrantRow`` values.

``NULL`` in the ``until`` column means "unset" and decodes to ``None``.
SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
columns; those are read as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .types import GrantRow

if TYPE_CHECKING:
    from collections.abc import Sequence

    from secretshare.models.grants import GrantBase


def as_utc(value: datetime | None) -> datetime | None:
    """Return *value* as an aware UTC datetime, or ``None`` when unset."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def decode_row(
    grant: GrantBase,
    owner: str,
    secret_key: str,
    target: str,
) -> GrantRow:
    """Build a ``GrantRow`` from a grant record and its resolved names."""
    return GrantRow(
        id=grant.id,
        secret_key=secret_key,
        owner=owner,
        target=target,
        until=as_utc(grant.until),
        created_at=as_utc(grant.created_at),
    )


def decode_rows(records: Sequence[Sequence[object]]) -> list[GrantRow]:
    """Decode ``(grant, owner, secret_key, target)`` result tuples in order."""
    return [
        decode_row(grant, owner, secret_key, target)  # type: ignore[arg-type]
        for grant, owner, secret_key, target in records
    ]


def encode_row(
    row: GrantRow,
    grant_model: type[GrantBase],
    *,
    owner_id: int,
    secret_id: int,
    shared_with_id: int,
) -> GrantBase:
    """Build an unsaved grant record for *row* using resolved storage ids.

    ``id`` and ``created_at`` are left for storage to assign.
    """
    return grant_model(
        owner_id=owner_id,
        secret_id=secret_id,
        shared_with_id=shared_with_id,
        until=as_utc(row.until),
    )
