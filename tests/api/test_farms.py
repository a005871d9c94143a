from datetime import date, timedelta

from httpx import AsyncClient

from app.services.daily_recommendations import today_utc


async def _create_farm(client: AsyncClient, headers: dict, **overrides) -> dict:
    payload = {
        "farm_name": "North field",
        "crop": "maize",
        "planting_date": (today_utc() - timedelta(days=55)).isoformat(),
        "state": "Kaduna",
        "country": "Nigeria",
        "latitude": 10.52,
        "longitude": 7.44,
        "budget": 500,
        **overrides,
    }
    res = await client.post("/api/v1/farms", json=payload, headers=headers)
    assert res.status_code == 201
    return res.json()


async def test_create_farm(client: AsyncClient, auth_headers: dict):
    data = await _create_farm(client, auth_headers, planting_date="2024-01-01")
    assert data["owner_id"] == "owner-1"
    assert data["expected_harvest_date"] == "2024-03-31"
    assert data["current_growth_stage"] == "pre-planting"
    assert data["status"] == "active"
    assert data["budget_spent"] == 0


async def test_create_farm_requires_auth(client: AsyncClient):
    res = await client.post("/api/v1/farms", json={"farm_name": "x", "crop": "maize", "planting_date": "2024-01-01"})
    assert res.status_code == 401


async def test_farms_are_scoped_to_owner(client: AsyncClient, auth_headers: dict, other_auth_headers: dict):
    farm = await _create_farm(client, auth_headers)

    res = await client.get("/api/v1/farms", headers=other_auth_headers)
    assert res.json() == []

    res = await client.get(f"/api/v1/farms/{farm['id']}", headers=other_auth_headers)
    assert res.status_code == 404

    res = await client.get("/api/v1/farms", headers=auth_headers)
    assert [f["id"] for f in res.json()] == [farm["id"]]


async def test_update_status(client: AsyncClient, auth_headers: dict):
    farm = await _create_farm(client, auth_headers)

    res = await client.patch(f"/api/v1/farms/{farm['id']}/status", json={"status": "harvested"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "harvested"

    res = await client.patch(f"/api/v1/farms/{farm['id']}/status", json={"status": "deleted"}, headers=auth_headers)
    assert res.status_code == 422


async def test_stage(client: AsyncClient, auth_headers: dict):
    farm = await _create_farm(client, auth_headers)

    res = await client.get(f"/api/v1/farms/{farm['id']}/stage", headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["days_since_planting"] == 55
    assert data["stage"] == "silking"
    assert data["next_stage"] == "grain_filling"
    assert data["next_stage_in_days"] == 16


async def test_stage_before_planting(client: AsyncClient, auth_headers: dict):
    farm = await _create_farm(client, auth_headers, planting_date=(today_utc() + timedelta(days=3)).isoformat())

    res = await client.get(f"/api/v1/farms/{farm['id']}/stage", headers=auth_headers)
    data = res.json()
    assert data["stage"] == "pre-planting"
    assert data["next_stage"] == "germination"
    assert data["next_stage_in_days"] == 3


async def test_harvest_window(client: AsyncClient, auth_headers: dict):
    planted = today_utc() - timedelta(days=100)
    farm = await _create_farm(client, auth_headers, planting_date=planted.isoformat())

    res = await client.get(f"/api/v1/farms/{farm['id']}/harvest-window", headers=auth_headers)
    data = res.json()
    assert data["biological_maturity"] == "ready"
    assert data["urgency"] == "medium"
    assert data["days_to_expected_harvest"] == -10
    assert data["optimal_window_start"] == (planted + timedelta(days=90)).isoformat()


async def test_harvest_advisory_uses_prices_and_weather(
    client: AsyncClient, auth_headers: dict, weather_provider
):
    farm = await _create_farm(client, auth_headers, planting_date=(today_utc() - timedelta(days=120)).isoformat())
    weather_provider.weather = {"forecast": [{"date": "2024-06-02", "rainfallProbability": 80}]}
    start = date(2024, 5, 1)
    for i, price in enumerate([100] * 7 + [120] * 7):
        res = await client.post("/api/v1/market-prices", json={
            "crop_name": "Maize",
            "state": "Kaduna",
            "price": price,
            "price_date": (start + timedelta(days=i)).isoformat(),
        }, headers=auth_headers)
        assert res.status_code == 201

    res = await client.get(
        f"/api/v1/farms/{farm['id']}/harvest-advisory",
        params={"observations": "Husks brown"},
        headers=auth_headers,
    )
    assert res.status_code == 200
    data = res.json()
    assert data["readiness"]["biological_maturity"] == "overdue"
    assert data["timing"]["urgency"] == "high"
    assert data["timing"]["weather_considerations"] == "Rain expected - plan harvest around dry days"
    assert data["selling_strategy"]["recommendation"] == "store_short"
    assert data["selling_strategy"]["price_analysis"]["current_price"] == 120


async def test_harvest_advisory_survives_weather_outage(client: AsyncClient, auth_headers: dict, weather_provider):
    farm = await _create_farm(client, auth_headers)
    weather_provider.error = RuntimeError("down")

    res = await client.get(f"/api/v1/farms/{farm['id']}/harvest-advisory", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["timing"]["weather_considerations"] == "Weather looks favorable for harvesting"
    assert res.json()["selling_strategy"]["recommendation"] == "sell_immediately"
