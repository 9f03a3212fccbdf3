"""
Async engine, session factory and the per-request session dependency.

One request is one transaction: the session commits when the endpoint
returns and rolls back when anything raises, so multi-step operations
(check-in, reschedule) are applied all-or-nothing.

Work that must only see committed data (clearing the search cache) is
registered with `call_after_commit` and runs once the commit succeeds.
"""

from typing import AsyncGenerator, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from falconair.core.config import get_settings

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_kwargs(settings.DATABASE_URL),
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

AFTER_COMMIT_KEY = "after_commit"


def call_after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """Run `callback` once the session's current transaction has committed."""
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def commit_session(session: AsyncSession) -> None:
    await session.commit()
    for callback in session.info.pop(AFTER_COMMIT_KEY, []):
        await callback()


async def rollback_session(session: AsyncSession) -> None:
    session.info.pop(AFTER_COMMIT_KEY, None)
    await session.rollback()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await commit_session(session)
        except Exception:
            await rollback_session(session)
            raise
