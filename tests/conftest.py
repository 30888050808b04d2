"""Shared fixtures for secretshare tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from secretshare.db import create_engine, init_schema, make_session_factory
from secretshare.models import Secret, User
from secretshare.repository import GrantRepository

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

T0 = datetime(2026, 1, 15, 12, 0, 0, 250_000, tzinfo=UTC)

USERS = ["alice", "bob", "carol", "dave", "erin", "frank"]
SECRETS = {"alice": ["db-pass", "api-token"], "bob": ["ssh-key"]}


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Fixed clock at ``T0``."""
    return lambda: T0


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite engine with foreign keys on and all tables created."""
    eng = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'shares.db'}")
    await init_schema(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(async_engine)


@pytest.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    """Insert the standard users and secrets. Returns user ids by name."""
    async with session_factory() as session:
        users = {name: User(name=name) for name in USERS}
        session.add_all(users.values())
        await session.flush()
        for owner, keys in SECRETS.items():
            for key in keys:
                session.add(Secret(owner_id=users[owner].id, key=key))
        await session.commit()
        return {name: user.id for name, user in users.items()}  # type: ignore[misc]


@pytest.fixture
def repo(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Callable[[], datetime],
    seeded: dict[str, int],
) -> GrantRepository:
    return GrantRepository(session_factory, clock=clock)
