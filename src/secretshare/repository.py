"""GrantRepository: transactional create/read/delete of logical shares.

Stateless: holds only configuration, the models and its collaborators.
Every call opens its own session from the session factory, so a single
repository is safe to share between concurrent tasks.

Create and delete run their per-target row operations sequentially,
in target order, inside one transaction. Any failure, including task
cancellation or an expired deadline, rolls the whole batch back before
the error reaches the caller.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import aliased
from sqlmodel import select

from .clock import utc_now
from .codec import as_utc, decode_rows, encode_row
from .config import RepositoryConfig
from .exceptions import (
    ConstraintViolationError,
    InvalidInputError,
    NotFoundError,
    SecretShareError,
    StorageError,
)
from .fanin import decode
from .fanout import encode
from .lookups import SecretService, UserService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from secretshare.models.grants import GrantBase
    from secretshare.models.secrets import SecretBase
    from secretshare.models.users import UserBase

    from .clock import Clock
    from .protocols import SecretLookup, UserLookup
    from .types import GrantRow, Share

logger = logging.getLogger(__name__)


class GrantRepository:
    """Persists logical shares as grant rows and reads them back grouped.

    Constructor receives the concrete models so callers can use custom
    SQLModel subclasses with different table names. Lookups default to
    the SQL-backed ``UserService`` and ``SecretService``.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncSession],
        *,
        config: RepositoryConfig | None = None,
        clock: Clock = utc_now,
        users: UserLookup | None = None,
        secrets: SecretLookup | None = None,
        user_model: type[UserBase] | None = None,
        secret_model: type[SecretBase] | None = None,
        grant_model: type[GrantBase] | None = None,
    ) -> None:
        from secretshare.models import Grant, Secret, User

        self._session_factory = session_factory
        self._config = config or RepositoryConfig()
        self._clock = clock
        self._user_model: type[UserBase] = user_model or User  # type: ignore[assignment]
        self._secret_model: type[SecretBase] = secret_model or Secret  # type: ignore[assignment]
        self._grant_model: type[GrantBase] = grant_model or Grant  # type: ignore[assignment]
        self._users: UserLookup = users or UserService(self._user_model)
        self._secrets: SecretLookup = secrets or SecretService(self._secret_model)

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Session management (one transaction per call)
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self, operation: str, context: str) -> AsyncGenerator[AsyncSession]:
        """Yield a session; commit on success, roll back on any failure.

        Storage errors are re-raised as ``ConstraintViolationError`` or
        ``StorageError`` carrying *operation* and *context*. Errors raised by
        the lookups propagate unchanged with the context added as a note.
        """
        session = self._session_factory()
        try:
            async with asyncio.timeout(self._config.operation_timeout):
                yield session
                await session.commit()
        except IntegrityError as exc:
            await self._rollback(session, operation, context)
            raise ConstraintViolationError(f"{operation} {context}: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            await self._rollback(session, operation, context)
            raise StorageError(f"{operation} {context}: {exc}") from exc
        except SecretShareError as exc:
            await self._rollback(session, operation, context)
            exc.add_note(f"during {operation} {context}")
            raise
        except BaseException:
            # Cancellation and deadline expiry land here.
            await self._rollback(session, operation, context)
            raise
        finally:
            await session.close()

    async def _rollback(self, session: AsyncSession, operation: str, context: str) -> None:
        logger.warning("Rolling back %s %s", operation, context)
        await session.rollback()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, share: Share) -> int:
        """Insert one grant row per target of *share* in one transaction.

        Returns the id of the last inserted row. The id is advisory: it
        does not identify the share as a whole.
        """
        if not share.target:
            raise InvalidInputError(
                f"create {share.owner}/{share.secret_key}: share has no targets"
            )
        rows = encode(
            share,
            clock=self._clock,
            default_duration=self._config.default_share_duration,
        )
        context = f"{share.owner}/{share.secret_key}"
        last_id = 0

        async with self._transaction("create", context) as session:
            owner_id = await self._users.user_id(session, share.owner)
            secret_id = await self._secrets.secret_id(session, owner_id, share.secret_key)
            for row in rows:
                target_id = await self._users.user_id(session, row.target)
                grant = encode_row(
                    row,
                    self._grant_model,
                    owner_id=owner_id,
                    secret_id=secret_id,
                    shared_with_id=target_id,
                )
                session.add(grant)
                await session.flush()
                last_id = grant.id or last_id

        logger.debug("Created %d grant row(s) for %s", len(rows), context)
        return last_id

    async def delete(self, share: Share) -> None:
        """Delete the grant row of every target of *share* in one transaction.

        Only (owner, secret, target) is matched; ``share.until`` is ignored.
        If any target has no grant, nothing is deleted and
        ``NotFoundError`` is raised.
        """
        if not share.target:
            raise InvalidInputError(
                f"delete {share.owner}/{share.secret_key}: share has no targets"
            )
        rows = encode(
            share,
            clock=self._clock,
            default_duration=self._config.default_share_duration,
        )
        context = f"{share.owner}/{share.secret_key}"
        model = self._grant_model

        async with self._transaction("delete", context) as session:
            owner_id = await self._users.user_id(session, share.owner)
            secret_id = await self._secrets.secret_id(session, owner_id, share.secret_key)
            for row in rows:
                target_id = await self._users.user_id(session, row.target)
                result = await session.execute(
                    select(model).where(
                        model.owner_id == owner_id,
                        model.secret_id == secret_id,
                        model.shared_with_id == target_id,
                    )
                )
                grant = result.scalar_one_or_none()
                if grant is None:
                    raise NotFoundError(f"No share for {row.target!r}")
                await session.delete(grant)
                await session.flush()

        logger.debug("Deleted %d grant row(s) for %s", len(rows), context)

    async def prune_expired(self, now: datetime | None = None) -> int:
        """Delete every grant whose expiry is at or before *now*.

        *now* defaults to the repository clock. Returns the number of rows
        removed.
        """
        cutoff = as_utc(now or self._clock())
        assert cutoff is not None
        model = self._grant_model
        count = 0

        async with self._transaction("prune", f"until<={cutoff.isoformat()}") as session:
            result = await session.execute(
                select(model).where(
                    model.until.is_not(None),  # type: ignore[union-attr]
                    model.until <= cutoff,  # type: ignore[operator]
                )
            )
            for grant in result.scalars().all():
                await session.delete(grant)
                count += 1
            await session.flush()

        logger.debug("Pruned %d expired grant row(s)", count)
        return count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, owner: str, secret_key: str) -> list[Share]:
        """Shares of one secret, across all targets and expiries.

        Raises ``NotFoundError`` when the owner has no grants for the secret.
        """
        context = f"{owner}/{secret_key}"
        rows = await self._fetch(
            "get",
            context,
            owner=owner,
            secret_key=secret_key,
        )
        if not rows:
            raise NotFoundError(f"get {context}: no shares found")
        return decode(rows, granularity=self._config.expiry_granularity)

    async def list(self, owner: str) -> list[Share]:
        """Every share created by *owner*, across all of their secrets."""
        rows = await self._fetch("list", owner, owner=owner)
        return decode(rows, granularity=self._config.expiry_granularity)

    async def list_by_target(self, target: str) -> list[Share]:
        """Every share that names *target* as a recipient."""
        rows = await self._fetch("list_by_target", target, target=target)
        return decode(rows, granularity=self._config.expiry_granularity)

    async def _fetch(
        self,
        operation: str,
        context: str,
        *,
        owner: str | None = None,
        secret_key: str | None = None,
        target: str | None = None,
    ) -> list[GrantRow]:
        """Run one joined query over grants and return rows in insertion order."""
        grant = self._grant_model
        secret = self._secret_model
        owner_user = aliased(self._user_model, name="owner_user")
        target_user = aliased(self._user_model, name="target_user")

        query = (
            select(grant, owner_user.name, secret.key, target_user.name)
            .join(owner_user, grant.owner_id == owner_user.id)  # type: ignore[arg-type]
            .join(secret, grant.secret_id == secret.id)  # type: ignore[arg-type]
            .join(target_user, grant.shared_with_id == target_user.id)  # type: ignore[arg-type]
        )
        if owner is not None:
            query = query.where(owner_user.name == owner)
        if secret_key is not None:
            query = query.where(secret.key == secret_key)
        if target is not None:
            query = query.where(target_user.name == target)
        query = query.order_by(grant.id)  # type: ignore[arg-type]

        async with self._transaction(operation, context) as session:
            result = await session.execute(query)
            records = result.all()

        return decode_rows(records)
