"""Engine and session helpers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from secretshare.models.grants import GrantBase
    from secretshare.models.secrets import SecretBase
    from secretshare.models.users import UserBase

logger = logging.getLogger(__name__)


def create_engine(url: str = "sqlite+aiosqlite://", *, echo: bool = False) -> AsyncEngine:
    """Create an async engine for *url*.

    SQLite connections get ``PRAGMA foreign_keys=ON`` so grant rows cannot
    point at missing users or secrets.
    """
    engine = create_async_engine(url, echo=echo)
    if engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: object, connection_record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[union-attr]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def init_schema(
    engine: AsyncEngine,
    *,
    user_model: type[UserBase] | None = None,
    secret_model: type[SecretBase] | None = None,
    grant_model: type[GrantBase] | None = None,
) -> None:
    """Create the user, secret and grant tables if they do not exist."""
    from secretshare.models import Grant, Secret, User

    tables = [
        (user_model or User).__table__,  # type: ignore[unresolved-attribute]
        (secret_model or Secret).__table__,  # type: ignore[unresolved-attribute]
        (grant_model or Grant).__table__,  # type: ignore[unresolved-attribute]
    ]
    async with engine.begin() as conn:
        for table in tables:
            await conn.run_sync(lambda c, t=table: t.create(c, checkfirst=True))
    logger.debug("Schema ready on %s", engine.dialect.name)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
