"""
VIA Backend — Database Session Management
===========================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   Repositories receive the per-request session through FastAPI's
       dependency injection; nothing else touches the engine directly.
When:  Engine is created at module import; sessions are created per-request.

Unit of Work:
    One request = one transaction. Route ingestion writes the route row and
    its points through the same session, so a failure while inserting points
    rolls the route row back with it. Best-effort writes (tag associations)
    use a SAVEPOINT inside the repository so their failure cannot abort the
    surrounding transaction.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from via_api.config import settings


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.log_level == "DEBUG",
)

# expire_on_commit=False: attributes stay readable after the commit that
# happens when the request dependency exits.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object so Alembic can autogenerate migrations
    for every table registered in `via_api.models`.
    """
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the repository built for this request
        3. On success: commits the transaction
        4. On error: rolls back, so no partially ingested route survives
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes all pooled connections; called from the lifespan shutdown hook."""
    await engine.dispose()
