import logging
import time

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from radiodeck.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD = 0.5  # seconds


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        new_engine = create_async_engine(url, echo=echo)

        @event.listens_for(new_engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        new_engine = create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_recycle=300,
            connect_args={"statement_cache_size": 0, "prepared_statement_cache_size": 0},
        )

    # Slow query logging, anything over SLOW_QUERY_THRESHOLD
    @event.listens_for(new_engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info["query_start_time"] = time.monotonic()

    @event.listens_for(new_engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = conn.info.pop("query_start_time", None)
        if start is None:
            return
        elapsed = time.monotonic() - start
        if elapsed >= SLOW_QUERY_THRESHOLD:
            logger.warning(
                "SLOW QUERY (%.3fs): %s | params=%s",
                elapsed,
                statement[:500],
                str(parameters)[:200] if parameters else None,
            )

    return new_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.APP_DEBUG)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
