import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

from sqlalchemy import event, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from backend.app.config import settings


class Base(DeclarativeBase):
    pass


# SQLite performance & safety pragmas, applied to every new connection
_SQLITE_PRAGMAS = (
    "PRAGMA busy_timeout = 5000",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA cache_size = -64000",
    "PRAGMA temp_store = MEMORY",
)


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine; SQLite connections get serialized write transactions.

    aiosqlite's implicit BEGIN is deferred, so two sessions can both read a
    vote and then race to write it. Emitting ``BEGIN IMMEDIATE`` ourselves
    takes the write lock up front and ``busy_timeout`` makes the loser wait.
    """
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    engine = create_async_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )

    if is_sqlite:

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record) -> None:
            # Disable the driver's own BEGIN; we emit it in _on_begin
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            for pragma in _SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _on_begin(conn) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = build_engine(settings.database_url)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(
    bind: AsyncEngine | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    seed: bool | None = None,
) -> None:
    """Create all tables and optionally seed the starter feature list."""
    import backend.app.models  # noqa: F401 — ensure models are registered

    if bind is None:
        bind = engine
        if not settings.db_url:
            settings.data_dir.mkdir(parents=True, exist_ok=True)

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_features if seed is None else seed:
        await _seed_defaults(session_factory or async_session)


SYSTEM_USER_NAME = "featureboard"

_SEED_FEATURES = [
    (
        "Bulk Description Generation",
        "Generate descriptions for a whole product catalog from a CSV upload.",
        "productivity",
    ),
    (
        "Tone Presets",
        "Pick a brand voice (playful, luxury, technical) before generating copy.",
        "ai",
    ),
    (
        "Shopify Export",
        "Push generated descriptions straight into a Shopify store.",
        "integration",
    ),
    (
        "Dark Mode",
        "A dark theme for late-night listing sessions.",
        "ui",
    ),
    (
        "Team Workspaces",
        "Share saved descriptions and presets with the rest of your team.",
        "business",
    ),
]


async def _seed_defaults(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Create the system user and starter features on an empty board."""
    from backend.app.models.feature import Feature
    from backend.app.models.user import User

    async with session_factory() as session, session.begin():
        feature_check = await session.execute(select(Feature.id).limit(1))
        if feature_check.scalar_one_or_none() is not None:
            return

        now = datetime.now(UTC).isoformat()
        result = await session.execute(select(User).where(User.name == SYSTEM_USER_NAME))
        system_user = result.scalar_one_or_none()
        if system_user is None:
            system_user = User(
                id=str(uuid.uuid4()),
                name=SYSTEM_USER_NAME,
                display_name="Featureboard",
                created_at=now,
            )
            session.add(system_user)
            await session.flush()

        for title, desc, category in _SEED_FEATURES:
            session.add(
                Feature(
                    id=str(uuid.uuid4()),
                    title=title,
                    description=desc,
                    category=category,
                    status="voting",
                    created_by=system_user.id,
                    created_at=now,
                )
            )
