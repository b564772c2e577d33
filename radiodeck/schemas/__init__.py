# Schemas package
from radiodeck.schemas.station import (
    StationCreate,
    StationFilters,
    StationPage,
    StationRecord,
    ClickResponse,
    SyncResponse,
)
from radiodeck.schemas.favorite import FavoriteListResponse, FavoriteToggleResponse

__all__ = [
    "StationCreate",
    "StationFilters",
    "StationPage",
    "StationRecord",
    "ClickResponse",
    "SyncResponse",
    "FavoriteListResponse",
    "FavoriteToggleResponse",
]
