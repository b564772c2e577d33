from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from radiodeck.models.station import Station


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class StationCreate(CamelModel):
    """A station as offered to the store. ``id`` is generated when absent."""

    id: str | None = None
    name: str
    stream_url: str
    favicon_url: str | None = None
    tags: str | None = None
    country_code: str | None = None
    codec: str | None = None
    votes: int | None = None
    clickcount: int | None = None

    @field_validator("name", "stream_url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("favicon_url", "tags", "country_code", "codec")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class StationRecord(StationCreate):
    """Canonical station shape returned to every caller."""

    id: str

    @classmethod
    def from_model(cls, station: Station) -> "StationRecord":
        return cls(
            id=station.external_id,
            name=station.name,
            stream_url=station.url,
            favicon_url=station.favicon,
            tags=station.tags,
            country_code=station.country_code,
            codec=station.codec,
            votes=station.votes,
            clickcount=station.clickcount,
        )


class StationFilters(CamelModel):
    query: str | None = None
    tag: str | None = None
    country: str | None = None

    @field_validator("query", "tag", "country")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @property
    def is_empty(self) -> bool:
        return not (self.query or self.tag or self.country)


class StationPage(CamelModel):
    stations: list[StationRecord] = []
    has_more: bool = False


class ClickResponse(CamelModel):
    success: bool


class SyncResponse(CamelModel):
    synced: int
