"""User model: the principals that own and receive secrets."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class UserBase(SQLModel):
    """Base fields for a user record. Subclass with ``table=True`` for a concrete table."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class User(UserBase, table=True):
    """Default user table: ``secretshare_users``."""

    __tablename__ = "secretshare_users"
