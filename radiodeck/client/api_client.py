import logging
from typing import Any

import httpx
from pydantic import ValidationError as SchemaError

from radiodeck.config import settings
from radiodeck.core.exceptions import ApiError
from radiodeck.schemas.station import StationFilters, StationPage, StationRecord

logger = logging.getLogger(__name__)


class StationsApi:
    """HTTP client for the RadioDeck server's /api/v1 surface."""

    def __init__(
        self,
        base_url: str = settings.API_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError("Failed to reach the station service") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            raise ApiError(str(data["error"]))
        if resp.is_error:
            raise ApiError(f"Station service answered {resp.status_code}")
        if not isinstance(data, dict):
            raise ApiError("Unexpected response from the station service")
        return data

    async def fetch_stations(
        self,
        filters: StationFilters,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        source: str | None = None,
    ) -> StationPage:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if filters.query:
            params["query"] = filters.query
        if filters.tag:
            params["tag"] = filters.tag
        if filters.country:
            params["country"] = filters.country
        if source:
            params["source"] = source

        data = await self._request("GET", "/stations", params=params)
        try:
            return StationPage.model_validate(data)
        except SchemaError as e:
            raise ApiError("Unexpected station list from the station service") from e

    async def report_click(self, station_id: str) -> bool:
        data = await self._request(
            "GET", "/stations", params={"action": "click", "stationId": station_id}
        )
        return data.get("success") is True

    async def list_favorites(self) -> list[StationRecord]:
        data = await self._request("GET", "/favorites")
        try:
            return [StationRecord.model_validate(s) for s in data.get("stations", [])]
        except SchemaError as e:
            raise ApiError("Unexpected favorites list from the station service") from e

    async def toggle_favorite(self, station: StationRecord) -> bool:
        data = await self._request(
            "POST", "/favorites", json=station.model_dump(mode="json", by_alias=True)
        )
        return bool(data.get("favorited"))
