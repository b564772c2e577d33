"""Radio Browser directory client.

Discovers mirror hosts through the directory's DNS SRV record, runs paged
station searches against a randomly chosen mirror and reports listen
clicks. Nothing here raises on upstream trouble: discovery falls back to a
static host list and searches degrade to an empty page.
"""
import asyncio
import logging
import random
import time
import uuid
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import aiodns
import httpx

from radiodeck.config import settings
from radiodeck.schemas.station import StationFilters, StationPage, StationRecord

logger = logging.getLogger(__name__)


class MirrorCache:
    """Mirror host list with an expiry, plus the lock concurrent resolvers share."""

    def __init__(
        self,
        ttl_seconds: float = settings.MIRROR_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.hosts: list[str] = []
        self.expires_at: float = 0.0
        self.lock = asyncio.Lock()
        # completed discovery attempts, successful or not
        self.lookups = 0

    def get(self) -> list[str] | None:
        if self.hosts and self._clock() < self.expires_at:
            return list(self.hosts)
        return None

    def set(self, hosts: list[str]) -> None:
        self.hosts = list(hosts)
        self.expires_at = self._clock() + self.ttl_seconds

    def clear(self) -> None:
        self.hosts = []
        self.expires_at = 0.0


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def to_station(raw: Any) -> StationRecord | None:
    """Map one upstream record to a StationRecord, or None when it has no usable name or URL."""
    if not isinstance(raw, dict):
        return None
    name = _text(raw.get("name"))
    url = _text(raw.get("url_resolved")) or _text(raw.get("url"))
    if not name or not url:
        return None
    station_id = _text(raw.get("stationuuid")) or str(uuid.uuid5(uuid.NAMESPACE_URL, url))
    return StationRecord(
        id=station_id,
        name=name,
        stream_url=url,
        favicon_url=_text(raw.get("favicon")) or None,
        tags=_text(raw.get("tags")) or None,
        country_code=_text(raw.get("countrycode")) or None,
        codec=_text(raw.get("codec")) or None,
        votes=_as_int(raw.get("votes")),
        clickcount=_as_int(raw.get("clickcount")),
    )


def build_search_params(filters: StationFilters, page: int, page_size: int) -> dict[str, str]:
    params = {
        "offset": str((page - 1) * page_size),
        "limit": str(page_size),
        "hidebroken": "true",
        "order": "clickcount",
        "reverse": "true",
    }
    if filters.query:
        params["name"] = filters.query
    if filters.tag:
        params["tag"] = filters.tag
    if filters.country:
        # Two letters is an ISO code, anything longer is a country name
        key = "countrycode" if len(filters.country) == 2 else "country"
        params[key] = filters.country
    return params


class DirectoryClient:
    def __init__(
        self,
        *,
        mirror_cache: MirrorCache | None = None,
        resolver: Any = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
        srv_record: str = settings.RADIO_BROWSER_SRV_RECORD,
        fallback_hosts: list[str] | None = None,
        timeout: float = settings.DIRECTORY_TIMEOUT_SECONDS,
        dns_timeout: float = settings.DNS_TIMEOUT_SECONDS,
        user_agent: str = settings.DIRECTORY_USER_AGENT,
        max_attempts: int = settings.DIRECTORY_MAX_ATTEMPTS,
    ):
        self.mirror_cache = mirror_cache or MirrorCache()
        self._resolver = resolver
        self._transport = transport
        self._rng = rng or random.Random()
        self.srv_record = srv_record
        self.fallback_hosts = list(fallback_hosts or settings.RADIO_BROWSER_FALLBACK_HOSTS)
        self.timeout = timeout
        self.dns_timeout = dns_timeout
        self.user_agent = user_agent
        self.max_attempts = max(1, max_attempts)

    async def resolve_mirrors(self) -> list[str]:
        """Return the mirror hosts, from cache when fresh. Never raises."""
        cached = self.mirror_cache.get()
        if cached:
            return cached

        seen_lookups = self.mirror_cache.lookups
        async with self.mirror_cache.lock:
            # Another caller may have finished discovery while we waited
            cached = self.mirror_cache.get()
            if cached:
                return cached
            if self.mirror_cache.lookups != seen_lookups:
                # ...and it failed; share its fallback instead of asking DNS again
                return list(self.fallback_hosts)
            try:
                hosts = await self._lookup_mirrors()
            except (aiodns.error.DNSError, asyncio.TimeoutError, OSError) as e:
                logger.warning("Mirror discovery via %s failed: %s", self.srv_record, e)
                return list(self.fallback_hosts)
            finally:
                self.mirror_cache.lookups += 1
            if not hosts:
                logger.warning("Mirror discovery via %s returned no hosts", self.srv_record)
                return list(self.fallback_hosts)
            self.mirror_cache.set(hosts)
            logger.info("Discovered %d directory mirrors", len(hosts))
            return list(hosts)

    async def _lookup_mirrors(self) -> list[str]:
        resolver = self._resolver or aiodns.DNSResolver()
        records = await asyncio.wait_for(
            resolver.query(self.srv_record, "SRV"), timeout=self.dns_timeout
        )
        return sorted({r.host.rstrip(".") for r in records if getattr(r, "host", None)})

    async def _get_json(self, host: str, path: str, params: dict | None = None) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"User-Agent": self.user_agent},
        ) as client:
            resp = await client.get(f"https://{host}{path}", params=params)
            resp.raise_for_status()
            return resp.json()

    async def search_stations(
        self,
        filters: StationFilters,
        page: int = 1,
        page_size: int = settings.DEFAULT_PAGE_SIZE,
    ) -> StationPage:
        """One page of stations, most clicked first. Degrades to an empty page on failure.

        ``has_more`` is a heuristic: true when the mirror returned a full page.
        """
        page = max(page, 1)
        params = build_search_params(filters, page, page_size)
        mirrors = await self.resolve_mirrors()
        attempts = self._rng.sample(mirrors, k=min(self.max_attempts, len(mirrors)))

        for host in attempts:
            try:
                raw = await self._get_json(host, "/json/stations/search", params)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Station search on %s failed: %s", host, e)
                continue
            if not isinstance(raw, list):
                logger.warning("Unexpected station payload from %s: %s", host, type(raw).__name__)
                continue
            stations = [s for s in (to_station(item) for item in raw) if s is not None]
            return StationPage(stations=stations, has_more=len(raw) >= page_size)

        return StationPage(stations=[], has_more=False)

    async def report_click(self, station_id: str) -> bool:
        """Tell the directory a station was played. Failures are logged and swallowed."""
        mirrors = await self.resolve_mirrors()
        if not mirrors:
            logger.warning("No directory mirror to report station %s to", station_id)
            return False
        host = self._rng.choice(mirrors)
        try:
            await self._get_json(host, f"/json/url/{quote(station_id, safe='')}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Click report for station %s failed: %s", station_id, e)
            return False
        return True
