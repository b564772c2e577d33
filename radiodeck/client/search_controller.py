"""Search box, filters and "load more" paging over the station list.

Two modes:

* ``server``: every committed filter change and every ``load_more`` asks
  the server for one page; the server filters.
* ``client``: the controller pulls one large batch once, then filters and
  pages it in memory with the same matcher the server uses for its store.

A generation counter orders fetches: each new fetch cancels the previous
one, and a result from an older generation is dropped on arrival.
"""
import asyncio
import enum
import logging
from collections.abc import Callable
from typing import Literal

from radiodeck.client.api_client import StationsApi
from radiodeck.client.debounce import Debouncer
from radiodeck.config import settings
from radiodeck.core.exceptions import ApiError
from radiodeck.schemas.station import StationFilters, StationRecord
from radiodeck.services.station_filter import filter_stations

logger = logging.getLogger(__name__)

STATIONS_PER_PAGE = settings.DEFAULT_PAGE_SIZE
FETCH_FAILED = "Failed to fetch stations"


class SearchState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


def _unique(stations: list[StationRecord], seen: set[str] | None = None) -> list[StationRecord]:
    seen = set() if seen is None else seen
    result = []
    for station in stations:
        if station.id not in seen:
            seen.add(station.id)
            result.append(station)
    return result


class SearchController:
    def __init__(
        self,
        api: StationsApi,
        *,
        mode: Literal["server", "client"] = "server",
        page_size: int = STATIONS_PER_PAGE,
        debounce_seconds: float = settings.search_debounce_seconds,
        fetch_limit: int = settings.CLIENT_FETCH_LIMIT,
        on_change: Callable[["SearchController"], None] | None = None,
    ):
        self._api = api
        self.mode = mode
        self.page_size = page_size
        self.fetch_limit = fetch_limit
        self._on_change = on_change

        self.state = SearchState.IDLE
        self.raw_query = ""
        self.filters = StationFilters()
        self.page = 1
        self.stations: list[StationRecord] = []
        self.has_more = False
        self.error: str | None = None

        self._all_stations: list[StationRecord] | None = None
        self._generation = 0
        self._fetch_task: asyncio.Task | None = None
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self._commit_query)

    @property
    def committed_query(self) -> str:
        return self.filters.query or ""

    @property
    def is_searching(self) -> bool:
        """Raw input is waiting out the debounce period."""
        return self._debouncer.pending

    @property
    def is_loading(self) -> bool:
        return self._fetch_task is not None and not self._fetch_task.done()

    # -- inputs -------------------------------------------------------------

    def mount(self) -> None:
        if self.state is not SearchState.IDLE:
            return
        self._start(page=1)

    def set_query(self, text: str) -> None:
        self.raw_query = text
        self._debouncer.push(text)

    def clear_query(self) -> None:
        self.raw_query = ""
        self._debouncer.cancel()
        self._commit_query("")

    def set_tag(self, tag: str | None) -> None:
        self._commit(StationFilters(query=self.filters.query, tag=tag, country=self.filters.country))

    def set_country(self, country: str | None) -> None:
        self._commit(StationFilters(query=self.filters.query, tag=self.filters.tag, country=country))

    def load_more(self) -> bool:
        """Fetch or reveal the next page. Returns False when there is nothing to do."""
        if self.state is not SearchState.LOADED or not self.has_more or self.is_loading:
            return False
        self._start(page=self.page + 1)
        return True

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or fetch is outstanding."""
        while True:
            pending = [
                t for t in (self._debouncer.task, self._fetch_task)
                if t is not None and not t.done()
            ]
            if not pending:
                return
            await asyncio.wait(pending)

    async def close(self) -> None:
        self._debouncer.cancel()
        task = self._fetch_task
        self._cancel_fetch()
        if task is not None:
            await asyncio.wait([task])

    # -- transitions --------------------------------------------------------

    def _commit_query(self, text: str) -> None:
        self._commit(StationFilters(query=text, tag=self.filters.tag, country=self.filters.country))

    def _commit(self, filters: StationFilters) -> None:
        if filters == self.filters and self.state in (SearchState.LOADING, SearchState.LOADED):
            return
        self.filters = filters
        self.stations = []
        self.has_more = False
        self._start(page=1)

    def _start(self, page: int) -> None:
        if self.mode == "client":
            self._start_local(page)
            return
        generation = self._next_generation()
        self._fetch_task = asyncio.create_task(self._fetch_page(generation, self.filters, page))

    def _start_local(self, page: int) -> None:
        self.page = page
        if self._all_stations is not None:
            self._apply_local()
            return
        if self.is_loading:
            # the batch in flight applies whatever filters are current when it lands
            return
        generation = self._next_generation()
        self._fetch_task = asyncio.create_task(self._load_all(generation))

    def _next_generation(self) -> int:
        self._generation += 1
        self._cancel_fetch()
        self.state = SearchState.LOADING
        self.error = None
        self._notify()
        return self._generation

    def _cancel_fetch(self) -> None:
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()

    async def _fetch_page(self, generation: int, filters: StationFilters, page: int) -> None:
        try:
            result = await self._api.fetch_stations(filters, page=page, limit=self.page_size)
        except ApiError as e:
            self._fail(generation, e.message)
            return
        except Exception:
            logger.exception("Unexpected error while fetching stations")
            self._fail(generation, FETCH_FAILED)
            return
        if generation != self._generation:
            return

        if page > 1:
            seen = {s.id for s in self.stations}
            self.stations = self.stations + _unique(result.stations, seen)
        else:
            self.stations = _unique(result.stations)
        self.page = page
        self.has_more = result.has_more
        self.state = SearchState.LOADED
        self._notify()

    async def _load_all(self, generation: int) -> None:
        try:
            result = await self._api.fetch_stations(StationFilters(), page=1, limit=self.fetch_limit)
        except ApiError as e:
            self._fail(generation, e.message)
            return
        except Exception:
            logger.exception("Unexpected error while fetching stations")
            self._fail(generation, FETCH_FAILED)
            return
        if generation != self._generation:
            return
        self._all_stations = _unique(result.stations)
        self._apply_local()

    def _apply_local(self) -> None:
        filtered = filter_stations(self._all_stations or [], self.filters)
        end = self.page * self.page_size
        self.stations = filtered[:end]
        self.has_more = end < len(filtered)
        self.state = SearchState.LOADED
        self.error = None
        self._notify()

    def _fail(self, generation: int, message: str) -> None:
        if generation != self._generation:
            return
        logger.warning("Station fetch failed: %s", message)
        self.state = SearchState.ERROR
        self.error = message
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
