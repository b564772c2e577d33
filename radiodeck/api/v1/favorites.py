from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from radiodeck.db.session import get_db
from radiodeck.schemas.favorite import FavoriteListResponse, FavoriteToggleResponse
from radiodeck.schemas.station import StationCreate, StationRecord
from radiodeck.services.station_service import list_favorites, toggle_favorite, upsert_station

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=FavoriteListResponse)
async def list_all(db: AsyncSession = Depends(get_db)):
    stations = await list_favorites(db)
    return FavoriteListResponse(stations=[StationRecord.from_model(s) for s in stations])


@router.post("", response_model=FavoriteToggleResponse)
async def toggle_with_station(body: StationCreate, db: AsyncSession = Depends(get_db)):
    """Store the given station (from the directory, usually) and flip its favorite."""
    station = await upsert_station(db, body)
    favorited = await toggle_favorite(db, station.external_id)
    return FavoriteToggleResponse(station_id=station.external_id, favorited=favorited)


@router.post("/{station_id}/toggle", response_model=FavoriteToggleResponse)
async def toggle(station_id: str, db: AsyncSession = Depends(get_db)):
    favorited = await toggle_favorite(db, station_id)
    return FavoriteToggleResponse(station_id=station_id, favorited=favorited)
