"""Database connection and session management using SQLAlchemy async ORM"""
import asyncio
import logging
import weakref
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncGenerator, AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from student_dashboard import config

logger = logging.getLogger(__name__)


def build_engine(url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite URLs (demo mode and tests) get a single shared connection so an
    in-memory database survives across sessions, and foreign keys switched on.
    Server databases get a connection pool.
    """
    if make_url(url).get_backend_name() == "sqlite":
        sqlite_engine = create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(sqlite_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    # pool_size=10: Keep 10 connections alive in the pool
    # max_overflow=20: Allow 20 additional connections under load
    # pool_recycle=3600: Recycle connections every hour to prevent stale connections
    return create_async_engine(
        url,
        echo=False,  # Set to True for SQL query logging during development
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True,  # Verify connection health before using
    )


engine = build_engine(config.DATABASE_URL)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Base class for declarative models
Base = declarative_base()


async def init_models(bind: AsyncEngine = None) -> None:
    """Create any missing tables (demo and test stores; production uses Alembic)"""
    # Register every model on Base.metadata before create_all
    import student_dashboard.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


# One lock per SQLite engine; every session on such an engine shares the same connection
_unit_locks: "weakref.WeakKeyDictionary" = weakref.WeakKeyDictionary()


def unit_lock(bind: AsyncEngine) -> Optional[asyncio.Lock]:
    """
    Lock that serializes units of work on a single-connection (SQLite) engine.

    Sessions of a StaticPool engine share one connection and one transaction,
    so a unit must hold the lock from its first statement to its commit or
    rollback. Pooled engines return None.
    """
    if bind.dialect.name != "sqlite":
        return None

    lock = _unit_locks.get(bind.sync_engine)
    if lock is None:
        lock = _unit_locks[bind.sync_engine] = asyncio.Lock()
    return lock


@asynccontextmanager
async def unit_of_work(session_factory: async_sessionmaker = None) -> AsyncIterator[AsyncSession]:
    """
    One session, one transaction: committed on success, rolled back on error.

    On SQLite the whole unit, rollback included, runs under unit_lock.
    """
    session_factory = session_factory or AsyncSessionLocal
    async with unit_lock(session_factory.kw["bind"]) or nullcontext():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    One unit of work per request, so a rejected or failed request leaves no
    partial writes.

    Usage in FastAPI:
        @router.get("/items")
        async def read_items(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    async with unit_of_work() as session:
        yield session
