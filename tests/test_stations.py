import pytest
from httpx import AsyncClient

from tests.fakes import MIRROR


@pytest.mark.asyncio
async def test_list_stations_from_directory(client: AsyncClient, fake_directory):
    response = await client.get("/api/v1/stations", params={"limit": 2})
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"stations", "hasMore"}
    assert len(data["stations"]) == 2
    assert data["hasMore"] is True

    station = data["stations"][0]
    assert station["id"] == "u-jazz"
    assert station["name"] == "Smooth Jazz FM"
    assert station["streamUrl"] == "http://streams.example/u-jazz"
    assert station["countryCode"] == "US"

    params = fake_directory.search_requests()[-1].url.params
    assert params["offset"] == "0"
    assert params["limit"] == "2"
    assert params["order"] == "clickcount"
    assert params["reverse"] == "true"
    assert params["hidebroken"] == "true"


@pytest.mark.asyncio
async def test_short_page_has_no_more(client: AsyncClient):
    response = await client.get("/api/v1/stations")
    data = response.json()
    assert len(data["stations"]) == 5
    assert data["hasMore"] is False


@pytest.mark.asyncio
async def test_page_maps_to_offset(client: AsyncClient, fake_directory):
    response = await client.get("/api/v1/stations", params={"page": 2, "limit": 2})
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["stations"]] == ["u-rock", "u-ldn"]
    assert fake_directory.search_requests()[-1].url.params["offset"] == "2"


@pytest.mark.asyncio
async def test_offset_and_page_size_aliases(client: AsyncClient, fake_directory):
    response = await client.get("/api/v1/stations", params={"offset": 2, "pageSize": 2})
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["stations"]] == ["u-rock", "u-ldn"]
    params = fake_directory.search_requests()[-1].url.params
    assert params["offset"] == "2"
    assert params["limit"] == "2"


@pytest.mark.asyncio
async def test_page_and_limit_win_over_aliases(client: AsyncClient, fake_directory):
    await client.get("/api/v1/stations", params={"page": 1, "offset": 4, "limit": 3, "pageSize": 2})
    params = fake_directory.search_requests()[-1].url.params
    assert params["offset"] == "0"
    assert params["limit"] == "3"


@pytest.mark.asyncio
async def test_query_is_forwarded_as_name(client: AsyncClient, fake_directory):
    response = await client.get("/api/v1/stations", params={"query": "jazz"})
    assert [s["name"] for s in response.json()["stations"]] == ["Smooth Jazz FM"]
    assert fake_directory.search_requests()[-1].url.params["name"] == "jazz"


@pytest.mark.asyncio
async def test_search_is_an_alias_for_query(client: AsyncClient, fake_directory):
    await client.get("/api/v1/stations", params={"search": "rock"})
    assert fake_directory.search_requests()[-1].url.params["name"] == "rock"


@pytest.mark.asyncio
async def test_tag_and_country_filters(client: AsyncClient, fake_directory):
    await client.get("/api/v1/stations", params={"tag": "jazz", "country": "GB"})
    params = fake_directory.search_requests()[-1].url.params
    assert params["tag"] == "jazz"
    assert params["countrycode"] == "GB"

    await client.get("/api/v1/stations", params={"country": "Germany"})
    params = fake_directory.search_requests()[-1].url.params
    assert params["country"] == "Germany"
    assert "countrycode" not in params


@pytest.mark.asyncio
async def test_directory_outage_returns_empty_page(client: AsyncClient, fake_directory):
    fake_directory.failing_hosts.add(MIRROR)
    response = await client.get("/api/v1/stations")
    assert response.status_code == 200
    assert response.json() == {"stations": [], "hasMore": False}


@pytest.mark.asyncio
async def test_invalid_limit_uses_error_body(client: AsyncClient):
    response = await client.get("/api/v1/stations", params={"limit": 0})
    assert response.status_code == 422
    assert "limit" in response.json()["error"]


@pytest.mark.asyncio
async def test_click_is_reported(client: AsyncClient, fake_directory):
    response = await client.get("/api/v1/stations", params={"action": "click", "stationId": "u-jazz"})
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert fake_directory.requests[-1].url.path == "/json/url/u-jazz"


@pytest.mark.asyncio
async def test_click_succeeds_when_directory_fails(client: AsyncClient, fake_directory):
    fake_directory.failing_hosts.add(MIRROR)
    response = await client.get("/api/v1/stations", params={"action": "click", "stationId": "u-jazz"})
    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.asyncio
async def test_click_requires_station_id(client: AsyncClient):
    response = await client.get("/api/v1/stations", params={"action": "click"})
    assert response.status_code == 422
    assert response.json() == {"error": "stationId is required"}


@pytest.mark.asyncio
async def test_unknown_action(client: AsyncClient):
    response = await client.get("/api/v1/stations", params={"action": "vote", "stationId": "u-jazz"})
    assert response.status_code == 422
    assert response.json() == {"error": "Unknown action: vote"}


@pytest.mark.asyncio
async def test_create_station(client: AsyncClient):
    response = await client.post(
        "/api/v1/stations",
        json={"id": "s-1", "name": "  Test Station ", "streamUrl": "http://test/stream", "tags": ""},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["id"] == "s-1"
    assert data["name"] == "Test Station"
    assert data["streamUrl"] == "http://test/stream"
    assert data["tags"] is None


@pytest.mark.asyncio
async def test_create_station_generates_id(client: AsyncClient):
    response = await client.post(
        "/api/v1/stations", json={"name": "No Id", "streamUrl": "http://test/no-id"}
    )
    assert response.status_code == 201
    assert response.json()["id"]


@pytest.mark.asyncio
async def test_create_station_twice_updates(client: AsyncClient):
    await client.post("/api/v1/stations", json={"id": "s-1", "name": "Old", "streamUrl": "http://a"})
    await client.post("/api/v1/stations", json={"id": "s-1", "name": "New", "streamUrl": "http://b"})

    response = await client.get("/api/v1/stations", params={"source": "cached"})
    stations = response.json()["stations"]
    assert len(stations) == 1
    assert stations[0]["name"] == "New"
    assert stations[0]["streamUrl"] == "http://b"


@pytest.mark.asyncio
async def test_create_station_rejects_blank_name(client: AsyncClient):
    response = await client.post("/api/v1/stations", json={"name": "   ", "streamUrl": "http://a"})
    assert response.status_code == 422
    assert "name" in response.json()["error"]


@pytest.mark.asyncio
async def test_cached_search(client: AsyncClient):
    for i, name in enumerate(["Café Del Mar", "Rock FM", "Cafe Jazz"]):
        await client.post(
            "/api/v1/stations", json={"id": f"c-{i}", "name": name, "streamUrl": f"http://c/{i}"}
        )

    response = await client.get("/api/v1/stations", params={"source": "cached", "query": "cafe"})
    data = response.json()
    assert [s["name"] for s in data["stations"]] == ["Cafe Jazz", "Café Del Mar"]
    assert data["hasMore"] is False

    response = await client.get("/api/v1/stations", params={"source": "cached", "limit": 2})
    assert response.json()["hasMore"] is True


@pytest.mark.asyncio
async def test_sync_from_directory(client: AsyncClient):
    response = await client.post("/api/v1/stations/sync", params={"pages": 1, "limit": 24})
    assert response.status_code == 200
    assert response.json() == {"synced": 5}

    response = await client.get("/api/v1/stations", params={"source": "cached"})
    assert len(response.json()["stations"]) == 5
