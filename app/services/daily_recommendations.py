"""
Daily recommendation trigger.

Produces one DailyRecommendation per active farm per calendar day:
    farm snapshot + weather + recent activity/feedback → text generator → upsert.

Weather is best-effort (empty dict on failure). A failed generator call aborts
the run with nothing written; an unparseable reply still produces a record with
a deterministic fallback briefing.
"""
import json
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import LifecycleConfig, lifecycle_config
from app.models.farm import Farm
from app.models.recommendation import DailyRecommendation
from app.schemas.common import ApiResponse
from app.schemas.recommendation import DailyRecommendationRead, FarmStatusReport, RecommendationItem
from app.services.crop_catalog import PRE_PLANTING_STAGE, next_stage, resolve_stage
from app.services.exceptions import FarmNotFoundError, LifecycleError
from app.services.farm_service import (
    get_active_farm,
    recent_activities,
    recent_feedback,
    touch_last_activity,
)
from app.services.harvest import days_between
from app.services.text_generation import TextGenerator, parse_json_payload
from app.services.weather import WeatherProvider, fetch_farm_weather

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an intelligent farm advisor providing daily contextual guidance.
You have access to LIVE weather data - use it exactly as provided, do not modify.
Base all recommendations on the specific farm situation and current conditions.
Focus on actionable, practical advice for smallholder farmers."""

RESPONSE_FORMAT = """{
  "briefing": "2-3 sentence summary of farm status and today's focus",
  "recommendations": [
    {
      "id": "unique-id",
      "type": "irrigation" | "fertilization" | "inspection" | "pest_treatment" | "disease_treatment" | "weeding" | "planting" | "other",
      "priority": "critical" | "high" | "normal" | "low",
      "action": "Specific action in simple language",
      "reasoning": "Why this is needed now (reference specific data)",
      "resources": ["list of materials needed"],
      "estimatedCost": 0,
      "estimatedTime": "X hours"
    }
  ],
  "farmStatus": {
    "isOnTrack": true,
    "statusSummary": "Brief assessment",
    "concerns": ["Any issues to watch"],
    "positives": ["What's going well"]
  },
  "nextMilestone": {
    "milestone": "Next significant event",
    "expectedDate": "YYYY-MM-DD",
    "daysAway": 0
  }
}"""


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


# ── Content shaping ───────────────────────────────────────────────────────────


def fallback_briefing(crop: str, days_since_planting: int) -> str:
    if days_since_planting < 0:
        return (
            f"Your {crop} farm will be planted in {-days_since_planting} days. "
            "Prepare your land and inputs."
        )
    return f"Your {crop} farm is on day {days_since_planting}. Monitor conditions and follow your plan."


def harvest_milestone(farm: Farm, today: date) -> dict:
    return {
        "milestone": "Harvest",
        "expectedDate": farm.expected_harvest_date.isoformat(),
        "daysAway": days_between(today, farm.expected_harvest_date),
    }


def next_milestone(farm: Farm, days_since_planting: int, today: date) -> dict:
    """The next stage transition, or harvest once the final stage is reached."""
    upcoming = next_stage(farm.crop, days_since_planting)
    if upcoming is None:
        return harvest_milestone(farm, today)
    expected = farm.planting_date + timedelta(days=upcoming.start_day)
    return {
        "milestone": upcoming.name,
        "expectedDate": expected.isoformat(),
        "daysAway": upcoming.start_day - days_since_planting,
    }


def normalize_recommendations(raw: Any, limit: int) -> list[dict]:
    """Keep at most `limit` well-formed items, each with a non-empty id."""
    if not isinstance(raw, list):
        return []

    items: list[dict] = []
    for entry in raw[:limit]:
        if not isinstance(entry, dict):
            logger.debug("dropping non-object recommendation entry: %r", entry)
            continue
        try:
            item = RecommendationItem.model_validate(entry)
        except ValidationError as exc:
            logger.debug("dropping malformed recommendation entry: %s", exc)
            continue
        if not item.id.strip():
            item.id = str(uuid.uuid4())
        items.append(item.to_payload())
    return items


def interpret_generated(
    text: str,
    farm: Farm,
    days_since_planting: int,
    today: date,
    limit: int,
) -> dict:
    """Turn generator text into briefing/recommendations/status, falling back on parse failure."""
    try:
        payload = parse_json_payload(text)
    except ValueError:
        logger.warning("daily recommendation: unparseable generator reply for farm %d", farm.id)
        payload = {"nextMilestone": harvest_milestone(farm, today)}
        status = FarmStatusReport(status_summary="Unable to generate detailed assessment")
    else:
        raw_status = payload.get("farmStatus")
        try:
            status = FarmStatusReport.model_validate(raw_status if isinstance(raw_status, dict) else {})
        except ValidationError:
            status = FarmStatusReport(status_summary="Unable to generate detailed assessment")

    briefing = payload.get("briefing")
    if not isinstance(briefing, str) or not briefing.strip():
        briefing = fallback_briefing(farm.crop, days_since_planting)

    milestone = payload.get("nextMilestone")
    if not isinstance(milestone, dict):
        milestone = next_milestone(farm, days_since_planting, today)

    return {
        "briefing": briefing,
        "recommendations": normalize_recommendations(payload.get("recommendations"), limit),
        "farm_status": status.model_dump(by_alias=True),
        "next_milestone": milestone,
    }


def build_prompt(
    farm: Farm,
    today: date,
    days_since_planting: int,
    current_stage: str,
    weather: dict,
    activities: list,
    feedback: list,
) -> str:
    farm_context = {
        "farm_name": farm.farm_name,
        "location": {"country": farm.country, "state": farm.state, "lga": farm.lga},
        "farm_size": farm.farm_size,
        "size_unit": farm.size_unit,
        "crop": farm.crop,
        "crop_variety": farm.crop_variety,
        "planting_date": farm.planting_date,
        "days_since_planting": days_since_planting,
        "current_stage": current_stage,
        "expected_harvest_date": farm.expected_harvest_date,
        "water_access": farm.water_access,
        "irrigation_method": farm.irrigation_method,
        "soil_profile": farm.soil_profile,
        "budget": farm.budget,
        "budget_spent": farm.budget_spent,
    }
    activity_rows = [
        {
            "activity_type": a.activity_type,
            "activity_date": a.activity_date,
            "status": a.status,
            "notes": a.notes,
            "cost": a.cost,
        }
        for a in activities
    ]
    feedback_rows = [
        {
            "feedback_type": f.feedback_type,
            "feedback_date": f.feedback_date,
            "interpretation": f.ai_interpretation,
            "plan_adjusted": f.plan_adjusted,
        }
        for f in feedback
    ]

    def dump(value: Any) -> str:
        return json.dumps(value, indent=2, default=str)

    days_to_harvest = days_between(today, farm.expected_harvest_date)
    return f"""Generate today's farm briefing and recommendations.

FARM CONTEXT:
{dump(farm_context)}

WEATHER DATA (LIVE - DO NOT MODIFY):
{dump(weather) if weather else "Weather data unavailable"}

RECENT ACTIVITIES (Last {len(activity_rows)}):
{dump(activity_rows)}

RECENT FEEDBACK:
{dump(feedback_rows)}

FARM PLAN REFERENCE:
{dump(farm.plan_reference) if farm.plan_reference else "No plan available"}

TODAY'S DATE: {today.isoformat()}
DAYS SINCE PLANTING: {days_since_planting}
CURRENT STAGE: {current_stage}
DAYS TO HARVEST: {days_to_harvest}

Generate a JSON response with this exact structure:
{RESPONSE_FORMAT}

IMPORTANT:
- If no actions are needed today, return empty recommendations array
- Maximum 5 recommendations
- Prioritize truly critical actions
- Reference the live weather data provided
- Consider what activities have already been done recently"""


# ── Persistence ───────────────────────────────────────────────────────────────


def _insert_for(db: AsyncSession):
    return pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert


async def upsert_daily_recommendation(db: AsyncSession, values: dict) -> None:
    """Insert or overwrite the (farm_id, recommendation_date) row. Caller must commit."""
    insert = _insert_for(db)
    now = datetime.now(timezone.utc)
    row = {**values, "user_viewed": False, "viewed_at": None, "updated_at": now}
    stmt = insert(DailyRecommendation).values(**row, created_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=["farm_id", "recommendation_date"],
        set_={key: stmt.excluded[key] for key in row if key not in ("farm_id", "recommendation_date")},
    )
    await db.execute(stmt)


async def get_daily_recommendation(
    db: AsyncSession, farm_id: int, day: date
) -> Optional[DailyRecommendation]:
    result = await db.execute(
        select(DailyRecommendation)
        .where(
            DailyRecommendation.farm_id == farm_id,
            DailyRecommendation.recommendation_date == day,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def mark_recommendation_viewed(
    db: AsyncSession, rec: DailyRecommendation
) -> DailyRecommendation:
    """Set user_viewed/viewed_at on first read only."""
    if not rec.user_viewed:
        rec.user_viewed = True
        rec.viewed_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(rec)
    return rec


# ── Trigger ───────────────────────────────────────────────────────────────────


async def _generate(
    db: AsyncSession,
    farm_id: int,
    weather_provider: WeatherProvider,
    text_generator: TextGenerator,
    config: LifecycleConfig,
    today: date,
    owner_id: Optional[str],
) -> dict:
    farm = await get_active_farm(db, farm_id, owner_id)
    if farm is None:
        raise FarmNotFoundError()

    days = days_between(farm.planting_date, today)
    stage = PRE_PLANTING_STAGE if days < 0 else resolve_stage(farm.crop, days)

    weather = await fetch_farm_weather(weather_provider, farm)
    activities = await recent_activities(db, farm.id, config.recent_activity_limit)
    feedback = await recent_feedback(db, farm.id, config.recent_feedback_limit)

    prompt = build_prompt(farm, today, days, stage, weather, activities, feedback)
    text = await text_generator.generate(
        prompt, system_prompt=SYSTEM_PROMPT, temperature=0.7, max_output_tokens=4096
    )
    content = interpret_generated(text, farm, days, today, config.max_daily_recommendations)

    await upsert_daily_recommendation(db, {
        "farm_id": farm.id,
        "recommendation_date": today,
        "days_since_planting": days,
        "current_stage": stage,
        "weather_data": weather,
        **content,
    })
    await touch_last_activity(db, farm.id, current_growth_stage=stage)
    await db.commit()

    record = await get_daily_recommendation(db, farm.id, today)
    data = DailyRecommendationRead.model_validate(record).model_dump(mode="json")
    data["days_to_harvest"] = days_between(today, farm.expected_harvest_date)
    logger.info(
        "daily recommendation: farm %d day %d stage %s (%d items)",
        farm.id, days, stage, len(content["recommendations"]),
    )
    return data


async def generate_daily_recommendation(
    db: AsyncSession,
    farm_id: int,
    *,
    weather_provider: WeatherProvider,
    text_generator: TextGenerator,
    config: LifecycleConfig = lifecycle_config,
    today: Optional[date] = None,
    owner_id: Optional[str] = None,
) -> ApiResponse:
    """Generate and persist today's recommendation for one farm.

    Returns an ApiResponse; farm-not-found and generator failures come back as
    success=False with nothing written.
    """
    try:
        data = await _generate(
            db, farm_id, weather_provider, text_generator, config, today or today_utc(), owner_id
        )
    except LifecycleError as exc:
        logger.warning("daily recommendation failed for farm %d: %s", farm_id, exc)
        return ApiResponse.fail(str(exc))
    return ApiResponse.ok(data)
