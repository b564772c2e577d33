from radiodeck.schemas.station import StationFilters, StationRecord
from radiodeck.services.station_filter import (
    filter_stations,
    format_tags,
    matches_query,
    normalize_text,
)


def make_station(station_id, name, tags=None, country_code=None) -> StationRecord:
    return StationRecord(
        id=station_id,
        name=name,
        stream_url=f"http://streams.example/{station_id}",
        tags=tags,
        country_code=country_code,
    )


STATIONS = [
    make_station("1", "Smooth Jazz FM", tags="jazz,smooth jazz", country_code="US"),
    make_station("2", "Café Bossa", tags="bossa nova", country_code="BR"),
    make_station("3", "Rock Antenne", tags="rock,classic rock", country_code="DE"),
    make_station("4", "Capital London", tags="pop,rock", country_code="GB"),
    make_station("5", "Cafe Lounge", tags=None, country_code=None),
]


def ids(stations):
    return [s.id for s in stations]


def test_normalize_text():
    assert normalize_text("  Café Crème ") == "cafe creme"
    assert normalize_text("ÖSTERREICH") == "osterreich"


def test_name_match_is_case_insensitive():
    assert ids(filter_stations(STATIONS, StationFilters(query="JAZZ"))) == ["1"]


def test_diacritics_match_both_ways():
    assert ids(filter_stations(STATIONS, StationFilters(query="cafe"))) == ["2", "5"]
    assert ids(filter_stations(STATIONS, StationFilters(query="café"))) == ["2", "5"]


def test_terms_match_name_or_tags():
    # "rock" only appears in the tags of station 4
    assert ids(filter_stations(STATIONS, StationFilters(query="rock london"))) == ["4"]


def test_every_term_must_match():
    assert ids(filter_stations(STATIONS, StationFilters(query="jazz london"))) == []


def test_empty_query_matches_everything():
    assert ids(filter_stations(STATIONS, StationFilters(query="   "))) == ids(STATIONS)
    assert matches_query(STATIONS[0], None)


def test_tag_filter_is_exact():
    assert ids(filter_stations(STATIONS, StationFilters(tag="rock"))) == ["3", "4"]
    assert ids(filter_stations(STATIONS, StationFilters(tag="Classic Rock"))) == ["3"]
    assert ids(filter_stations(STATIONS, StationFilters(tag="roc"))) == []


def test_country_filter():
    assert ids(filter_stations(STATIONS, StationFilters(country="gb"))) == ["4"]


def test_filters_combine():
    filters = StationFilters(query="a", tag="rock", country="DE")
    assert ids(filter_stations(STATIONS, filters)) == ["3"]


def test_format_tags():
    assert format_tags("jazz, smooth jazz,,lounge,chill") == "jazz, smooth jazz, lounge"
    assert format_tags("news") == "news"
    assert format_tags(None) == ""
    assert format_tags("a,b,c,d", limit=2) == "a, b"
