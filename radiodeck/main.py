import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from radiodeck import __version__
from radiodeck.config import settings
from radiodeck.core.exceptions import AppError
from radiodeck.core.middleware import setup_middleware
from radiodeck.services.directory_client import DirectoryClient

logger = logging.getLogger(__name__)

_tables_created = False


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def ensure_tables():
    """Create the store tables if they haven't been created yet."""
    global _tables_created
    if _tables_created:
        return
    try:
        from radiodeck.db.engine import engine
        from radiodeck.db.base import Base
        import radiodeck.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        _tables_created = True
    except Exception as e:
        logger.warning("Table creation skipped: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await ensure_tables()

    # Warm the mirror cache so the first search does not pay for discovery
    directory = DirectoryClient()
    app.state.directory_client = directory
    mirrors = await directory.resolve_mirrors()
    logger.info("Directory client ready with %d mirrors", len(mirrors))

    yield


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("query", "body", "path"))
    return f"Invalid {field or 'request'}: {first.get('msg', 'invalid value')}"


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="RadioDeck API",
        version=__version__,
        description="Internet radio directory search, click tracking and favorites",
        debug=settings.APP_DEBUG,
        lifespan=lifespan,
    )

    setup_middleware(app)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": _validation_message(exc)}, status_code=422)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    from radiodeck.api.v1 import router as api_v1_router
    app.include_router(api_v1_router, prefix="/api/v1")

    # Fallback for environments without lifespan support (serverless hosts)
    @app.middleware("http")
    async def auto_create_tables(request, call_next):
        await ensure_tables()
        return await call_next(request)

    return app


app = create_app()
