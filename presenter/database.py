"""
presenter/database.py
Async database engine, session factory and schema bootstrap.

Services never import the engine: they receive an AsyncSession argument
(injected by FastAPI through get_db, or by tests through their own factory).
"""
import logging
from typing import Any, Dict

from sqlalchemy import event, inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from presenter.config.settings import settings
from presenter.orm.base import Base
import presenter.orm  # noqa: F401  registers every model on Base.metadata

logger = logging.getLogger(__name__)


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an engine with settings suited to the dialect.
    SQLite has different pool needs than PostgreSQL.
    """
    if "sqlite" in database_url.lower():
        options: Dict[str, Any] = {
            "echo": settings.DATABASE_ECHO,
            "connect_args": {"timeout": 30.0},  # SQLite busy timeout in seconds
        }
    else:
        options = {
            "echo": settings.DATABASE_ECHO,
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
            "pool_recycle": 3600,
        }
    options.update(overrides)
    engine = create_async_engine(database_url, **options)
    if engine.url.get_backend_name() == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db():
    """Dependency for getting async database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(target: AsyncEngine = None):
    """Create missing tables. Idempotent: safe to run on every startup."""
    target = target or engine
    logger.info("Initializing database...")
    logger.info(f"Database dialect: {target.url.get_backend_name()}")
    try:
        async with target.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✓ Database initialization complete")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


async def close_db():
    """Close database connection"""
    await engine.dispose()
    logger.info("Database connection closed")


async def check_connection(db: AsyncSession) -> Dict[str, Any]:
    """Connectivity probe: list tables and count users."""
    conn = await db.connection()
    tables = await conn.run_sync(lambda sync_conn: sorted(inspect(sync_conn).get_table_names()))
    user_count = 0
    if "users" in tables:
        result = await conn.execute(text("SELECT COUNT(*) FROM users"))
        user_count = result.scalar() or 0
    return {
        "connected": True,
        "dialect": conn.dialect.name,
        "tables": tables,
        "userCount": user_count,
    }
