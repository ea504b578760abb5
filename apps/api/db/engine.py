"""Async database engine using asyncpg connection pool."""

import asyncpg

import settings

_pool: asyncpg.Pool | None = None


async def init_db() -> asyncpg.Pool:
    """Create the connection pool. Called once at app startup."""
    global _pool
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable is not set")
    _pool = await asyncpg.create_pool(
        settings.DATABASE_URL,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
    )
    return _pool


async def close_db() -> None:
    """Close the connection pool. Called at app shutdown."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None


def get_pool() -> asyncpg.Pool:
    """Return the current connection pool. Raises if not initialized."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_db() first.")
    return _pool
