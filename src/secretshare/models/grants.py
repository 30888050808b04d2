"""Grant model: one persisted (owner, secret, target) sharing edge.

A logical share with N targets is stored as N grant rows that agree on
owner, secret and expiry. See ``secretshare.fanout`` and
``secretshare.fanin`` for the mapping in each direction.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, UniqueConstraint, func
from sqlmodel import Field, SQLModel


class GrantBase(SQLModel):
    """Base fields for a grant row."""

    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="secretshare_users.id", index=True)
    secret_id: int = Field(foreign_key="secretshare_secrets.id", index=True)
    shared_with_id: int = Field(foreign_key="secretshare_users.id", index=True)
    # Nullable at the column level; the row codec decides what NULL means.
    until: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    # Assigned by the database on insert.
    created_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": func.now(), "nullable": False},
    )


class Grant(GrantBase, table=True):
    """Default grant table: ``secretshare_grants``.

    ``(secret_id, shared_with_id)`` is unique: re-sharing a secret with the
    same user requires deleting the previous grant first.
    """

    __tablename__ = "secretshare_grants"
    __table_args__ = (
        UniqueConstraint("secret_id", "shared_with_id", name="uq_grant_secret_target"),
    )
