"""Shared fixtures: a per-test SQLite database, the ledger, and an API client.

Each test gets its own database file so the ledger can open real concurrent
connections against it. Write transactions are serialized (BEGIN IMMEDIATE),
so tests must ``await db.commit()`` after seeding before calling the API.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import backend.app.models  # noqa: F401 — ensure models are registered
from backend.app.db import Base, build_engine, get_db
from backend.app.main import app
from backend.app.models.feature import Feature, Vote
from backend.app.models.user import User
from backend.app.services.identity import get_ledger
from backend.app.services.ledger import VotingLedger


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger(session_factory) -> VotingLedger:
    return VotingLedger(session_factory, max_attempts=3)


@pytest.fixture
async def client(session_factory, ledger: VotingLedger) -> AsyncGenerator[AsyncClient, None]:
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_ledger] = lambda: ledger
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------


def _now() -> str:
    return datetime.now(UTC).isoformat()


async def create_user(
    db: AsyncSession,
    name: str = "yash",
    display_name: str | None = None,
) -> User:
    user = User(
        id=str(uuid.uuid4()),
        name=name,
        display_name=display_name,
        created_at=_now(),
    )
    db.add(user)
    await db.flush()
    return user


async def create_feature(
    db: AsyncSession,
    created_by: str,
    title: str = "Tone Presets",
    description: str = "Pick a brand voice",
    category: str = "ai",
    status: str = "voting",
    created_at: str | None = None,
    deleted_at: str | None = None,
) -> Feature:
    feature = Feature(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        category=category,
        icon="💡",
        status=status,
        created_by=created_by,
        created_at=created_at or _now(),
        deleted_at=deleted_at,
    )
    db.add(feature)
    await db.flush()
    return feature


async def create_vote(
    db: AsyncSession,
    feature_id: str,
    voter_id: str,
    direction: str = "up",
    deleted_at: str | None = None,
) -> Vote:
    now = _now()
    vote = Vote(
        id=str(uuid.uuid4()),
        feature_id=feature_id,
        voter_id=voter_id,
        direction=direction,
        created_at=now,
        updated_at=now,
        deleted_at=deleted_at,
    )
    db.add(vote)
    await db.flush()
    return vote


async def live_votes(
    session_factory: async_sessionmaker[AsyncSession],
    feature_id: str,
    voter_id: str | None = None,
) -> list[Vote]:
    """Read live vote rows in a fresh, short transaction."""
    query = select(Vote).where(Vote.feature_id == feature_id, Vote.deleted_at.is_(None))
    if voter_id is not None:
        query = query.where(Vote.voter_id == voter_id)
    async with session_factory() as session, session.begin():
        result = await session.execute(query)
        return list(result.scalars().all())


async def count_vote_rows(
    session_factory: async_sessionmaker[AsyncSession], feature_id: str
) -> int:
    """All vote rows for a feature, retracted ones included."""
    async with session_factory() as session, session.begin():
        result = await session.execute(
            select(func.count()).select_from(Vote).where(Vote.feature_id == feature_id)
        )
        return result.scalar_one()
