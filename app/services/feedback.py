"""
Feedback reconciliation.

Applies one user-submitted feedback event to farm state:

    weather_confirmation  — irrigation nudge when forecast rain did not fall
    growth_milestone      — stage override ("<stage> (delayed)" when behind)
    issue_report          — diagnosis via the text generator, degrades to a generic note
    activity_completion   — FarmActivity row + atomic budget_spent increment
    observation           — logged verbatim

The payload is validated against its declared type before anything is written,
and every accepted event appends exactly one FarmFeedback row.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.farm import Farm
from app.models.logs import FarmActivity, FarmFeedback
from app.schemas.common import ApiResponse
from app.schemas.feedback import (
    PAYLOAD_MODELS,
    ActivityCompletion,
    FeedbackType,
    GrowthMilestone,
    IssueDiagnosis,
    IssueReport,
    WeatherConfirmation,
)
from app.schemas.recommendation import RecommendationItem
from app.services.exceptions import FarmNotFoundError, FeedbackValidationError, LifecycleError, TextGenerationError
from app.services.farm_service import get_active_farm, increment_budget_spent, touch_last_activity
from app.services.text_generation import TextGenerator, parse_json_payload

logger = logging.getLogger(__name__)

ISSUE_RECOMMENDATION_TYPE = {"pest": "pest_treatment", "disease": "disease_treatment"}
URGENCY_PRIORITY = {"high": "critical", "medium": "high"}


@dataclass
class Reconciliation:
    interpretation: str = ""
    plan_adjusted: bool = False
    adjustments: Optional[dict] = None
    immediate_recommendations: list[dict] = field(default_factory=list)


def _recommendation(**fields) -> dict:
    return RecommendationItem(id=str(uuid.uuid4()), **fields).to_payload()


def validate_payload(feedback_type: FeedbackType, response: dict) -> BaseModel:
    try:
        return PAYLOAD_MODELS[feedback_type].model_validate(response)
    except ValidationError as exc:
        raise FeedbackValidationError(
            f"Invalid {feedback_type.value} payload: {exc.error_count()} error(s)"
        ) from exc


# ── Branches ──────────────────────────────────────────────────────────────────


def reconcile_weather(data: WeatherConfirmation) -> Reconciliation:
    result = Reconciliation()
    if data.was_forecasted == data.rain_occurred:
        result.interpretation = "Weather confirmation received. Forecast was accurate."
        return result

    result.interpretation = (
        f"Weather forecast was inaccurate. Forecasted {'rain' if data.was_forecasted else 'no rain'}, "
        f"but user reported {'rain' if data.rain_occurred else 'no rain'}."
    )
    if data.was_forecasted and not data.rain_occurred:
        result.immediate_recommendations.append(_recommendation(
            type="irrigation",
            priority="high",
            action="Consider irrigating today as expected rain did not occur",
            reasoning="Forecast predicted rain but it did not fall. Your crops may need water.",
            estimated_time="1-2 hours",
        ))
        result.plan_adjusted = True
        result.adjustments = {"irrigation_needed": True, "reason": "forecast_miss"}
    return result


def reconcile_growth(farm: Farm, data: GrowthMilestone) -> Reconciliation:
    result = Reconciliation()

    if data.actual_status == "behind":
        result.interpretation = f"Crop growth is behind schedule. Expected stage: {data.expected_stage}."
        result.plan_adjusted = True
        result.adjustments = {
            "growth_delay": True,
            "original_stage": data.expected_stage,
            "needs_investigation": True,
        }
        result.immediate_recommendations.append(_recommendation(
            type="inspection",
            priority="high",
            action="Inspect plants for potential issues causing growth delay",
            reasoning="Growth is behind schedule. Check for water stress, nutrient deficiency, or pest damage.",
            estimated_time="30 minutes",
        ))
        farm.current_growth_stage = f"{data.expected_stage} (delayed)"

    elif data.actual_status == "ahead":
        result.interpretation = "Crop growth is ahead of schedule. Consider advancing harvest timeline."
        result.plan_adjusted = True
        result.adjustments = {"growth_ahead": True, "harvest_timeline_adjusted": True}

    else:
        result.interpretation = f"Crop growth confirmed on track at {data.expected_stage} stage."
        farm.current_growth_stage = data.expected_stage

    return result


def _issue_prompt(farm: Farm, data: IssueReport) -> str:
    return f"""
A farmer reports an issue with their {farm.crop} farm:
- Issue Type: {data.issue_type}
- Description: {data.description}
- Severity: {data.severity}
- Affected Area: {data.affected_area or "not specified"}
- Location: {farm.state or "unknown"}, {farm.country or "unknown"}
- Current Stage: {farm.current_growth_stage}

Provide a brief diagnosis and treatment recommendation in JSON format:
{{
  "diagnosis": "Brief diagnosis",
  "likely_cause": "Most likely cause",
  "immediate_action": "What to do immediately",
  "treatment": "Recommended treatment",
  "prevention": "How to prevent in future",
  "urgency": "low" | "medium" | "high"
}}"""


async def reconcile_issue(
    farm: Farm, data: IssueReport, text_generator: TextGenerator
) -> Reconciliation:
    result = Reconciliation()
    generic = f"Issue reported: {data.issue_type} - {data.description}. Severity: {data.severity}."

    try:
        text = await text_generator.generate(
            _issue_prompt(farm, data), temperature=0.5, max_output_tokens=1024
        )
    except TextGenerationError as exc:
        logger.warning("issue diagnosis failed for farm %d: %s", farm.id, exc)
        result.interpretation = f"{generic} Investigate further."
        return result

    try:
        diagnosis = IssueDiagnosis.model_validate(parse_json_payload(text))
    except (ValueError, ValidationError):
        logger.warning("issue diagnosis for farm %d was not structured", farm.id)
        result.interpretation = f"{generic} Requires attention."
        return result

    result.interpretation = diagnosis.diagnosis
    result.plan_adjusted = True
    result.adjustments = {"issue_diagnosed": True, "diagnosis": diagnosis.model_dump()}
    result.immediate_recommendations.append(_recommendation(
        type=ISSUE_RECOMMENDATION_TYPE.get(data.issue_type, "inspection"),
        priority=URGENCY_PRIORITY.get(diagnosis.urgency, "normal"),
        action=diagnosis.immediate_action,
        reasoning=diagnosis.treatment,
    ))
    return result


async def reconcile_activity(
    db: AsyncSession, farm: Farm, data: ActivityCompletion, today: date
) -> Reconciliation:
    db.add(FarmActivity(
        farm_id=farm.id,
        activity_type="other",
        activity_date=today,
        recommendation_id=data.recommendation_id,
        status="completed" if data.completed else "skipped",
        completion_date=datetime.now(timezone.utc) if data.completed else None,
        notes=data.notes,
        cost=data.cost,
    ))
    if data.cost and data.cost > 0:
        await increment_budget_spent(db, farm.id, data.cost)

    suffix = f": {data.notes}" if data.notes else ""
    verb = "Activity marked as completed" if data.completed else "Activity skipped"
    return Reconciliation(interpretation=f"{verb}{suffix}")


# ── Entry point ───────────────────────────────────────────────────────────────


async def _reconcile(
    db: AsyncSession,
    farm_id: int,
    feedback_type: FeedbackType,
    response: dict,
    text_generator: TextGenerator,
    owner_id: Optional[str],
    today: date,
) -> dict:
    payload = validate_payload(feedback_type, response)

    farm = await get_active_farm(db, farm_id, owner_id)
    if farm is None:
        raise FarmNotFoundError("Farm not found or access denied")

    if feedback_type is FeedbackType.weather_confirmation:
        result = reconcile_weather(payload)
    elif feedback_type is FeedbackType.growth_milestone:
        result = reconcile_growth(farm, payload)
    elif feedback_type is FeedbackType.issue_report:
        result = await reconcile_issue(farm, payload, text_generator)
    elif feedback_type is FeedbackType.activity_completion:
        result = await reconcile_activity(db, farm, payload, today)
    else:
        result = Reconciliation(interpretation=f"Observation recorded: {json.dumps(response, default=str)}")

    entry = FarmFeedback(
        farm_id=farm.id,
        feedback_type=feedback_type.value,
        feedback_date=today,
        user_response=response,
        ai_interpretation=result.interpretation,
        plan_adjusted=result.plan_adjusted,
        adjustments_made=result.adjustments,
    )
    db.add(entry)
    await db.flush()
    await touch_last_activity(db, farm.id)
    await db.commit()

    logger.info(
        "feedback %s recorded for farm %d (plan_adjusted=%s)",
        feedback_type.value, farm.id, result.plan_adjusted,
    )
    return {
        "feedback_id": entry.id,
        "interpretation": result.interpretation,
        "plan_adjusted": result.plan_adjusted,
        "adjustments": result.adjustments,
        "immediate_recommendations": result.immediate_recommendations,
    }


async def reconcile_feedback(
    db: AsyncSession,
    farm_id: int,
    feedback_type: FeedbackType | str,
    response: dict,
    *,
    text_generator: TextGenerator,
    owner_id: Optional[str] = None,
    today: Optional[date] = None,
) -> ApiResponse:
    """Apply one feedback event. Invalid payloads and unknown farms return success=False unwritten."""
    try:
        kind = FeedbackType(feedback_type)
    except ValueError:
        return ApiResponse.fail(f"Unknown feedback type: {feedback_type}")

    try:
        data = await _reconcile(
            db, farm_id, kind, response, text_generator, owner_id,
            today or datetime.now(timezone.utc).date(),
        )
    except LifecycleError as exc:
        logger.warning("feedback for farm %d rejected: %s", farm_id, exc)
        return ApiResponse.fail(str(exc))
    return ApiResponse.ok(data)
