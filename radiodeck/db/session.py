from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from radiodeck.db.engine import async_session_factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session. Store operations commit their own writes."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
