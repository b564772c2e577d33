from radiodeck.schemas.station import CamelModel, StationRecord


class FavoriteToggleResponse(CamelModel):
    station_id: str
    favorited: bool


class FavoriteListResponse(CamelModel):
    stations: list[StationRecord]
