"""Lookup protocols: runtime-checkable interfaces for id resolution.

The grant repository never reads the user or secret tables directly. It
resolves names to storage ids through these collaborators, inside the
session (and so the transaction) of the calling operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@runtime_checkable
class UserLookup(Protocol):
    """Resolves usernames to user ids."""

    async def user_id(self, session: AsyncSession, name: str) -> int:
        """Return the id for *name*. Raises ``NotFoundError`` when unknown."""
        ...


@runtime_checkable
class SecretLookup(Protocol):
    """Resolves an owner's secret key to a secret id."""

    async def secret_id(self, session: AsyncSession, owner_id: int, key: str) -> int:
        """Return the id for *key* owned by *owner_id*. Raises ``NotFoundError`` when absent."""
        ...
