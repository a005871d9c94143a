import json

from httpx import AsyncClient

from app.services.exceptions import TextGenerationError


def _reply(n_items: int) -> str:
    return json.dumps({
        "briefing": "Scout for armyworm this morning.",
        "recommendations": [{"type": "inspection", "action": f"Check row {i}"} for i in range(n_items)],
    })


async def test_health(client: AsyncClient):
    res = await client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


# ── Daily recommendations ─────────────────────────────────────────────────────


async def test_generate_and_read_today(client: AsyncClient, auth_headers: dict, make_farm, text_generator):
    farm = await make_farm()
    text_generator.reply = _reply(7)

    res = await client.post("/api/v1/recommendations/daily", json={"farm_id": farm.id}, headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["error"] is None
    assert len(body["data"]["recommendations"]) == 5
    assert body["data"]["current_stage"] == "vegetative"
    assert body["data"]["days_to_harvest"] == 60

    res = await client.get(f"/api/v1/farms/{farm.id}/recommendations/today", headers=auth_headers)
    assert res.status_code == 200
    first = res.json()
    assert first["user_viewed"] is True
    assert first["briefing"] == "Scout for armyworm this morning."

    res = await client.get(f"/api/v1/farms/{farm.id}/recommendations/today", headers=auth_headers)
    assert res.json()["viewed_at"] == first["viewed_at"]


async def test_generate_for_inactive_farm(client: AsyncClient, auth_headers: dict, make_farm):
    farm = await make_farm(status="archived")

    res = await client.post("/api/v1/recommendations/daily", json={"farm_id": farm.id}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"success": False, "data": None, "error": "Farm not found or not active"}

    res = await client.get(f"/api/v1/farms/{farm.id}/recommendations/today", headers=auth_headers)
    assert res.status_code == 404


async def test_generate_for_someone_elses_farm(
    client: AsyncClient, other_auth_headers: dict, make_farm, text_generator
):
    farm = await make_farm()

    res = await client.post("/api/v1/recommendations/daily", json={"farm_id": farm.id}, headers=other_auth_headers)
    assert res.status_code == 400
    assert text_generator.prompts == []


async def test_generator_outage_is_reported(client: AsyncClient, auth_headers: dict, make_farm, text_generator):
    farm = await make_farm()
    text_generator.error = TextGenerationError("Gemini API error: 503")

    res = await client.post("/api/v1/recommendations/daily", json={"farm_id": farm.id}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "Gemini API error: 503"


# ── Feedback ──────────────────────────────────────────────────────────────────


async def test_feedback_round_trip(client: AsyncClient, auth_headers: dict, make_farm):
    farm = await make_farm()

    res = await client.post("/api/v1/feedback", json={
        "farm_id": farm.id,
        "feedback_type": "activity_completion",
        "response": {"recommendation_id": "r-1", "completed": True, "cost": 40, "notes": "Weeded"},
    }, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["data"]["feedback_id"]

    res = await client.get(f"/api/v1/farms/{farm.id}/activities", headers=auth_headers)
    activities = res.json()
    assert len(activities) == 1
    assert activities[0]["status"] == "completed"
    assert activities[0]["cost"] == 40

    res = await client.get(f"/api/v1/farms/{farm.id}/feedback", headers=auth_headers)
    entries = res.json()
    assert [e["feedback_type"] for e in entries] == ["activity_completion"]

    res = await client.get(f"/api/v1/farms/{farm.id}", headers=auth_headers)
    assert res.json()["budget_spent"] == 40


async def test_feedback_validation_error(client: AsyncClient, auth_headers: dict, make_farm):
    farm = await make_farm()

    res = await client.post("/api/v1/feedback", json={
        "farm_id": farm.id,
        "feedback_type": "growth_milestone",
        "response": {"expected_stage": "silking", "actual_status": "sideways"},
    }, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["success"] is False

    res = await client.get(f"/api/v1/farms/{farm.id}/feedback", headers=auth_headers)
    assert res.json() == []


async def test_feedback_unknown_type_rejected(client: AsyncClient, auth_headers: dict, make_farm):
    farm = await make_farm()

    res = await client.post("/api/v1/feedback", json={
        "farm_id": farm.id, "feedback_type": "rumour", "response": {},
    }, headers=auth_headers)
    assert res.status_code == 422
