"""ShareService: async facade over the grant repository.

Engine-based setup (primary API)::

    engine = create_engine("postgresql+asyncpg://...")
    service = await ShareService.from_engine(engine)
    await service.share("alice", "db-pass", ["bob", "carol"])

Expected failures (unknown user or secret, duplicate share, missing
share) come back as unsuccessful results. ``StorageError`` propagates so
callers can decide to retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .clock import utc_now
from .codec import as_utc
from .db import init_schema, make_session_factory
from .exceptions import ConstraintViolationError, InvalidInputError, NotFoundError
from .fanout import encode
from .repository import GrantRepository
from .types import ListSharesResult, Share, ShareResult

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncEngine

    from .clock import Clock
    from .config import RepositoryConfig

logger = logging.getLogger(__name__)


class ShareService:
    """Share, unshare, reshare and list secrets between users."""

    def __init__(self, repository: GrantRepository) -> None:
        self._repository = repository

    @classmethod
    async def from_engine(
        cls,
        engine: AsyncEngine,
        *,
        config: RepositoryConfig | None = None,
        clock: Clock = utc_now,
    ) -> ShareService:
        """Create the tables on *engine* and build a service over them."""
        await init_schema(engine)
        repository = GrantRepository(make_session_factory(engine), config=config, clock=clock)
        return cls(repository)

    @property
    def repository(self) -> GrantRepository:
        return self._repository

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def share(
        self,
        owner: str,
        secret_key: str,
        targets: list[str],
        *,
        until: datetime | None = None,
    ) -> ShareResult:
        """Share *secret_key* owned by *owner* with every user in *targets*.

        The returned share carries the resolved expiry and the targets as
        stored, with duplicates removed.
        """
        rows = encode(
            Share(secret_key=secret_key, owner=owner, target=list(targets), until=until),
            clock=self._repository.clock,
            default_duration=self._repository.config.default_share_duration,
        )
        share = Share(
            secret_key=secret_key,
            owner=owner,
            target=[r.target for r in rows],
            until=rows[0].until if rows else until,
        )
        try:
            last_id = await self._repository.create(share)
        except (NotFoundError, ConstraintViolationError, InvalidInputError) as e:
            return ShareResult(success=False, message=str(e))

        return ShareResult(
            success=True,
            message=f"Shared {owner}/{secret_key} with {', '.join(share.target)}",
            share=share,
            last_id=last_id,
        )

    async def unshare(self, owner: str, secret_key: str, targets: list[str]) -> ShareResult:
        """Revoke *owner*'s grants on *secret_key* for every user in *targets*."""
        share = Share(secret_key=secret_key, owner=owner, target=list(targets))
        try:
            await self._repository.delete(share)
        except (NotFoundError, InvalidInputError) as e:
            return ShareResult(success=False, message=str(e))

        return ShareResult(
            success=True,
            message=f"Removed share on {owner}/{secret_key} for {', '.join(share.target)}",
        )

    async def reshare(
        self,
        owner: str,
        secret_key: str,
        targets: list[str],
        *,
        until: datetime | None = None,
    ) -> ShareResult:
        """Replace the grants for *targets* with a new generation.

        Existing grants for any of *targets* are deleted first, then the
        share is created again with the new expiry. The two steps are
        separate transactions: if the create fails, the old grants are
        already gone.
        """
        try:
            current = await self._repository.get(owner, secret_key)
        except NotFoundError:
            current = []

        wanted = set(targets)
        existing = [t for s in current for t in s.target if t in wanted]
        if existing:
            removed = await self.unshare(owner, secret_key, existing)
            if not removed.success:
                return removed
            logger.debug("Reshare removed %d grant(s) on %s/%s", len(existing), owner, secret_key)

        return await self.share(owner, secret_key, targets, until=until)

    async def prune_expired(self) -> int:
        return await self._repository.prune_expired()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_shares(
        self,
        owner: str,
        secret_key: str,
        *,
        include_expired: bool = True,
    ) -> ListSharesResult:
        """List the shares of one secret."""
        try:
            shares = await self._repository.get(owner, secret_key)
        except NotFoundError as e:
            return ListSharesResult(success=False, message=str(e))
        return self._listing(shares, include_expired)

    async def list_shares(self, owner: str, *, include_expired: bool = True) -> ListSharesResult:
        """List every share *owner* has created."""
        shares = await self._repository.list(owner)
        return self._listing(shares, include_expired)

    async def list_shared_with_me(
        self,
        user: str,
        *,
        include_expired: bool = True,
    ) -> ListSharesResult:
        """List every share naming *user* as a recipient."""
        shares = await self._repository.list_by_target(user)
        return self._listing(shares, include_expired)

    def _listing(self, shares: list[Share], include_expired: bool) -> ListSharesResult:
        if not include_expired:
            now = self._repository.clock()
            shares = [s for s in shares if s.until is None or as_utc(s.until) > now]  # type: ignore[operator]
        return ListSharesResult(
            success=True,
            message=f"Found {len(shares)} share(s)",
            shares=shares,
        )
