"""Database engine and session management: no global state."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from keymint.core.errors import StorageError


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async SQLite engine with write-ahead logging enabled.

    Every new connection is switched to WAL so readers never block on the
    single writer and never observe a half-written row.
    """
    engine = create_async_engine(
        database_url,
        echo=False,
        poolclass=StaticPool if ":memory:" in database_url else NullPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def get_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Get an async database session (context manager for service/controller logic).

    Database errors are rolled back and re-raised as StorageError.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            await session.rollback()
            raise
