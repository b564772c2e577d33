from fastapi import APIRouter

from radiodeck.api.v1.stations import router as stations_router
from radiodeck.api.v1.favorites import router as favorites_router

router = APIRouter()
router.include_router(stations_router)
router.include_router(favorites_router)
