"""In-memory station matching.

Used by the server when it answers from the local store and by the client
controller in client-filter mode, so both agree on what a query matches.
"""
import unicodedata
from collections.abc import Iterable

from radiodeck.schemas.station import StationFilters, StationRecord


def normalize_text(text: str) -> str:
    """Lowercase, trim and strip diacritics ("Café" -> "cafe")."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


def split_terms(query: str | None) -> list[str]:
    if not query:
        return []
    return normalize_text(query).split()


def matches_terms(station: StationRecord, terms: list[str]) -> bool:
    """Every term must appear in the name or in the tags (not necessarily the same one)."""
    if not terms:
        return True
    name = normalize_text(station.name)
    tags = normalize_text(station.tags) if station.tags else ""
    return all(term in name or term in tags for term in terms)


def matches_query(station: StationRecord, query: str | None) -> bool:
    return matches_terms(station, split_terms(query))


def matches_tag(station: StationRecord, tag: str | None) -> bool:
    if not tag:
        return True
    if not station.tags:
        return False
    wanted = normalize_text(tag)
    return any(normalize_text(t) == wanted for t in station.tags.split(","))


def matches_country(station: StationRecord, country: str | None) -> bool:
    if not country:
        return True
    return (station.country_code or "").lower() == country.strip().lower()


def filter_stations(stations: Iterable[StationRecord], filters: StationFilters) -> list[StationRecord]:
    terms = split_terms(filters.query)
    return [
        s for s in stations
        if matches_terms(s, terms)
        and matches_tag(s, filters.tag)
        and matches_country(s, filters.country)
    ]


def format_tags(tags: str | None, limit: int = 3) -> str:
    if not tags:
        return ""
    parts = [t.strip() for t in tags.split(",") if t.strip()]
    return ", ".join(parts[:limit])
