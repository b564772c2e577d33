import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from radiodeck.config import settings
from radiodeck.core.dependencies import get_directory_client
from radiodeck.core.exceptions import ValidationError
from radiodeck.db.session import get_db
from radiodeck.schemas.station import (
    ClickResponse,
    StationCreate,
    StationFilters,
    StationRecord,
    SyncResponse,
)
from radiodeck.services.directory_client import DirectoryClient
from radiodeck.services.station_service import (
    search_cached_stations,
    sync_from_directory,
    upsert_station,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stations", tags=["stations"])


@router.get("", response_model=None)
async def list_all(
    page: int | None = Query(None, ge=1),
    offset: int | None = Query(None, ge=0),
    limit: int | None = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    page_size: int | None = Query(None, alias="pageSize", ge=1, le=settings.MAX_PAGE_SIZE),
    query: str | None = Query(None, max_length=200),
    search: str | None = Query(None, max_length=200),
    tag: str | None = Query(None, max_length=100),
    country: str | None = Query(None, max_length=100),
    source: Literal["directory", "cached"] | None = Query(None),
    action: str | None = Query(None),
    station_id: str | None = Query(None, alias="stationId"),
    db: AsyncSession = Depends(get_db),
    directory: DirectoryClient = Depends(get_directory_client),
):
    """Search stations, or report a listen when called with ``action=click``.

    Searches answer ``{stations, hasMore}``; clicks always answer ``{success: true}``
    because reporting is best-effort. ``page``/``limit`` win over their aliases
    ``offset``/``pageSize``; an offset selects the page that contains it.
    """
    if action is not None:
        if action != "click":
            raise ValidationError(f"Unknown action: {action}")
        if not station_id:
            raise ValidationError("stationId is required")
        await directory.report_click(station_id)
        return ClickResponse(success=True)

    size = limit or page_size or settings.DEFAULT_PAGE_SIZE
    if page is None:
        page = offset // size + 1 if offset is not None else 1

    filters = StationFilters(query=query or search, tag=tag, country=country)
    if (source or settings.STATION_SOURCE) == "cached":
        return await search_cached_stations(db, filters, page=page, page_size=size)
    return await directory.search_stations(filters, page=page, page_size=size)


@router.post("", response_model=StationRecord, status_code=201)
async def create(body: StationCreate, db: AsyncSession = Depends(get_db)):
    station = await upsert_station(db, body)
    return StationRecord.from_model(station)


@router.post("/sync", response_model=SyncResponse)
async def sync(
    pages: int = Query(settings.SYNC_PAGES, ge=1, le=20),
    limit: int = Query(settings.SYNC_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    directory: DirectoryClient = Depends(get_directory_client),
):
    synced = await sync_from_directory(db, directory, pages=pages, page_size=limit)
    return SyncResponse(synced=synced)
