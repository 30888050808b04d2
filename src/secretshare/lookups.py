"""SQL-backed lookup collaborators for users and secrets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import select

from .exceptions import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from secretshare.models.secrets import SecretBase
    from secretshare.models.users import UserBase


class UserService:
    """Stateless username to id resolution.

    Receives the concrete user model at construction so callers can use
    custom SQLModel subclasses.
    """

    def __init__(self, user_model: type[UserBase] | None = None) -> None:
        from secretshare.models.users import User

        self._user_model: type[UserBase] = user_model or User  # type: ignore[assignment]

    @property
    def user_model(self) -> type[UserBase]:
        return self._user_model

    async def user_id(self, session: AsyncSession, name: str) -> int:
        model = self._user_model
        result = await session.execute(
            select(model.id).where(model.name == name)  # type: ignore[arg-type]
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            raise NotFoundError(f"User not found: {name!r}")
        return user_id


class SecretService:
    """Stateless (owner, key) to secret id resolution."""

    def __init__(self, secret_model: type[SecretBase] | None = None) -> None:
        from secretshare.models.secrets import Secret

        self._secret_model: type[SecretBase] = secret_model or Secret  # type: ignore[assignment]

    @property
    def secret_model(self) -> type[SecretBase]:
        return self._secret_model

    async def secret_id(self, session: AsyncSession, owner_id: int, key: str) -> int:
        model = self._secret_model
        result = await session.execute(
            select(model.id).where(  # type: ignore[arg-type]
                model.owner_id == owner_id,
                model.key == key,
            )
        )
        secret_id = result.scalar_one_or_none()
        if secret_id is None:
            raise NotFoundError(f"Secret not found: {key!r} (owner id {owner_id})")
        return secret_id
