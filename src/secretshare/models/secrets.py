"""Secret metadata model.

Only the name and ownership of a secret live here. Encrypted values are
held by the key-storage service and never touch this table.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class SecretBase(SQLModel):
    """Base fields for a secret metadata record."""

    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="secretshare_users.id", index=True)
    key: str = Field(index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class Secret(SecretBase, table=True):
    """Default secret table: ``secretshare_secrets``. Keys are unique per owner."""

    __tablename__ = "secretshare_secrets"
    __table_args__ = (UniqueConstraint("owner_id", "key", name="uq_secret_owner_key"),)
