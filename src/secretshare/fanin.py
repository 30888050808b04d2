"""Fan-in: regroup flat grant rows into logical shares.

Rows belong to the same share when they agree on owner, secret key and
expiry. Expiries are compared after truncation to a granularity (one
second by default), so two rows whose ``until`` values fall in the same
Unix second are one group. Rows created by separate share calls that
happen to share owner and secret but not expiry stay separate.

Each decoded share takes ``id``, ``until`` and ``created_at`` from the
first row seen for its group. Output order is the order in which groups
first appear in the input.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .codec import as_utc
from .config import DEFAULT_EXPIRY_GRANULARITY
from .types import Share

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import timedelta

    from .types import GrantRow

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

GroupKey = tuple[str, str, int | None]


def expiry_bucket(
    until: datetime | None,
    granularity: timedelta = DEFAULT_EXPIRY_GRANULARITY,
) -> int | None:
    """Truncate *until* to a whole number of *granularity* steps since the epoch."""
    aware = as_utc(until)
    if aware is None:
        return None
    return (aware - _EPOCH) // granularity


def same_expiry(
    a: datetime | None,
    b: datetime | None,
    granularity: timedelta = DEFAULT_EXPIRY_GRANULARITY,
) -> bool:
    return expiry_bucket(a, granularity) == expiry_bucket(b, granularity)


def group_key(row: GrantRow, granularity: timedelta = DEFAULT_EXPIRY_GRANULARITY) -> GroupKey:
    return (row.owner, row.secret_key, expiry_bucket(row.until, granularity))


def decode(
    rows: Iterable[GrantRow],
    *,
    granularity: timedelta = DEFAULT_EXPIRY_GRANULARITY,
) -> list[Share]:
    """Merge *rows* into the minimal list of shares.

    Duplicate targets within a group are dropped, keeping first-seen
    order. Empty input gives an empty list.
    """
    groups: dict[GroupKey, Share] = {}
    targets: dict[GroupKey, set[str]] = {}
    count = 0

    for row in rows:
        count += 1
        key = group_key(row, granularity)
        share = groups.get(key)
        if share is None:
            groups[key] = Share(
                id=row.id,
                secret_key=row.secret_key,
                owner=row.owner,
                target=[row.target],
                until=row.until,
                created_at=row.created_at,
            )
            targets[key] = {row.target}
            continue
        if row.target in targets[key]:
            continue
        targets[key].add(row.target)
        share.target.append(row.target)

    logger.debug("Decoded %d grant row(s) into %d share(s)", count, len(groups))
    return list(groups.values())
