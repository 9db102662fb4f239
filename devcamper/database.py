"""
DevCamper API — Database Session Management
============================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (tests, local experiments) use the driver's own pool, which
    rejects sizing arguments, so those are only passed for server databases.
"""

import logging
from typing import Any, AsyncGenerator, Dict, Iterable, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from devcamper.config import settings
from devcamper.exceptions import DuplicateError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool sizing applies to server databases only."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit. Async
# sessions cannot lazy-load, so an expired attribute would raise.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Besides registering models with the shared metadata (used by Alembic),
    it knows how to turn a loaded row into a plain JSON-ready dict.

    Models list columns that must never leave the server (password hashes,
    reset tokens) in `__hidden__`.
    """

    __hidden__: frozenset = frozenset()

    def to_dict(
        self,
        fields: Optional[Iterable[str]] = None,
        relations: Optional[Dict[str, Optional[Iterable[str]]]] = None,
    ) -> Dict[str, Any]:
        """
        Serialize loaded column attributes (and selected relations) to a dict.

        Args:
            fields:    Restrict output to these column names. `id` is always kept.
                       None means every public column.
            relations: Relation name → fields to keep on each related record
                       (None = all public columns). Only relations that are
                       already loaded are serialized; nothing is lazy-loaded.

        Why skip unloaded attributes:
            Async sessions cannot lazy-load. Columns deferred by a projection
            (load_only) are simply absent from the output.
        """
        state = inspect(self)
        wanted = None if fields is None else set(fields) | {"id"}
        data: Dict[str, Any] = {}
        for attr in state.mapper.column_attrs:
            key = attr.key
            if key in self.__hidden__ or key in state.unloaded:
                continue
            if wanted is not None and key not in wanted:
                continue
            data[key] = getattr(self, key)

        for name, rel_fields in (relations or {}).items():
            if name in state.unloaded:
                continue
            value = getattr(self, name)
            if value is None:
                data[name] = None
            elif isinstance(value, (list, tuple, set)):
                data[name] = [item.to_dict(rel_fields) for item in value]
            else:
                data[name] = value.to_dict(rel_fields)
        return data


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/bootcamps/{bootcamp_id}")
        async def get_bootcamp(bootcamp_id: UUID, db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            # Rollback for ANY failure, including non-DB errors raised after a write
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()


async def flush_unique(db: AsyncSession, resource: str) -> None:
    """Flush pending writes, turning a unique-constraint violation into DuplicateError."""
    try:
        await db.flush()
    except IntegrityError as e:
        logger.info("Duplicate %s rejected: %s", resource, str(e.orig))
        raise DuplicateError(context={"resource": resource})
