import asyncio
import logging
import uuid
import weakref

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from radiodeck.config import settings
from radiodeck.core.exceptions import NotFoundError, PersistenceError, ValidationError
from radiodeck.models.favorite import Favorite
from radiodeck.models.station import Station
from radiodeck.schemas.station import StationCreate, StationFilters, StationPage, StationRecord
from radiodeck.services.directory_client import DirectoryClient
from radiodeck.services.station_filter import filter_stations

logger = logging.getLogger(__name__)

# Serializes favorite toggles per station id within this process
_favorite_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _favorite_lock(station_id: str) -> asyncio.Lock:
    lock = _favorite_locks.get(station_id)
    if lock is None:
        lock = asyncio.Lock()
        _favorite_locks[station_id] = lock
    return lock


async def list_stations(db: AsyncSession) -> list[Station]:
    try:
        result = await db.execute(select(Station).order_by(Station.name, Station.id))
    except SQLAlchemyError as e:
        logger.error("Listing cached stations failed: %s", e)
        raise PersistenceError("Failed to fetch stations") from e
    return list(result.scalars().all())


async def get_station(db: AsyncSession, station_id: str) -> Station:
    try:
        result = await db.execute(select(Station).where(Station.external_id == station_id))
    except SQLAlchemyError as e:
        logger.error("Loading station %s failed: %s", station_id, e)
        raise PersistenceError("Failed to fetch station") from e
    station = result.scalar_one_or_none()
    if not station:
        raise NotFoundError(f"Station {station_id} not found")
    return station


async def upsert_station(db: AsyncSession, data: StationCreate, commit: bool = True) -> Station:
    """Insert a station, or refresh the stored copy when its id is already known."""
    if not data.name.strip() or not data.stream_url.strip():
        raise ValidationError("A station needs a name and a stream URL")

    external_id = data.id or str(uuid.uuid4())
    fields = {
        "name": data.name.strip(),
        "url": data.stream_url.strip(),
        "favicon": data.favicon_url,
        "tags": data.tags,
        "country_code": data.country_code,
        "codec": data.codec,
        "votes": data.votes,
        "clickcount": data.clickcount,
    }
    try:
        result = await db.execute(select(Station).where(Station.external_id == external_id))
        station = result.scalar_one_or_none()
        if station is None:
            station = Station(external_id=external_id, **fields)
            db.add(station)
        else:
            for field, value in fields.items():
                setattr(station, field, value)
        await db.flush()
        if commit:
            await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Saving station %s failed: %s", external_id, e)
        raise PersistenceError("Failed to save station") from e
    return station


async def list_favorites(db: AsyncSession) -> list[Station]:
    """Favorited stations, most recently favorited first."""
    try:
        result = await db.execute(
            select(Station)
            .join(Favorite, Favorite.station_id == Station.id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
    except SQLAlchemyError as e:
        logger.error("Listing favorites failed: %s", e)
        raise PersistenceError("Failed to fetch favorites") from e
    return list(result.scalars().all())


async def toggle_favorite(db: AsyncSession, station_id: str) -> bool:
    """Flip the favorite flag of a stored station. Returns the new state."""
    async with _favorite_lock(station_id):
        station = await get_station(db, station_id)
        try:
            result = await db.execute(select(Favorite).where(Favorite.station_id == station.id))
            favorite = result.scalar_one_or_none()
            if favorite:
                await db.delete(favorite)
                favorited = False
            else:
                db.add(Favorite(station_id=station.id))
                favorited = True
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Toggling favorite for station %s failed: %s", station_id, e)
            raise PersistenceError("Failed to update favorite") from e

    logger.info("Station %s %s", station_id, "favorited" if favorited else "unfavorited")
    return favorited


async def search_cached_stations(
    db: AsyncSession,
    filters: StationFilters,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
) -> StationPage:
    """Answer a station search from the local store. ``has_more`` is exact here."""
    stations = [StationRecord.from_model(s) for s in await list_stations(db)]
    matched = filter_stations(stations, filters)
    start = (max(page, 1) - 1) * page_size
    end = start + page_size
    return StationPage(stations=matched[start:end], has_more=end < len(matched))


async def sync_from_directory(
    db: AsyncSession,
    directory: DirectoryClient,
    pages: int = settings.SYNC_PAGES,
    page_size: int = settings.SYNC_PAGE_SIZE,
) -> int:
    """Copy the most popular directory stations into the store. Returns how many were stored."""
    synced = 0
    for page in range(1, pages + 1):
        result = await directory.search_stations(StationFilters(), page=page, page_size=page_size)
        try:
            for record in result.stations:
                await upsert_station(db, record, commit=False)
            await db.commit()
        except (PersistenceError, SQLAlchemyError) as e:
            await db.rollback()
            logger.warning("Station sync stopped at page %d: %s", page, e)
            break
        synced += len(result.stations)
        if not result.has_more:
            break

    logger.info("Synced %d stations from the directory", synced)
    return synced
