from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import lifecycle_config
from app.core.deps import CurrentUser, get_db, get_weather_provider
from app.models.farm import Farm
from app.schemas.farm import ActivityRead, FarmCreate, FarmRead, FarmStatusUpdate, StageRead
from app.services import farm_service
from app.services.crop_catalog import PRE_PLANTING_STAGE, next_stage, resolve_stage
from app.services.daily_recommendations import today_utc
from app.services.harvest import build_harvest_advisory, compute_harvest_window, days_between
from app.services.market import get_recent_prices, summarize_prices
from app.services.weather import WeatherProvider, fetch_farm_weather

router = APIRouter(prefix="/farms", tags=["farms"])


# ── Farms ─────────────────────────────────────────────────────────────────────


@router.get("", response_model=list[FarmRead])
async def list_farms(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await farm_service.list_farms(db, current_user)


@router.post("", response_model=FarmRead, status_code=status.HTTP_201_CREATED)
async def create_farm(data: FarmCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await farm_service.create_farm(db, data, current_user)


@router.get("/{farm_id}", response_model=FarmRead)
async def get_farm(farm_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await _get_owned_farm(db, farm_id, current_user)


@router.patch("/{farm_id}/status", response_model=FarmRead)
async def update_farm_status(
    farm_id: int, data: FarmStatusUpdate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    farm = await _get_owned_farm(db, farm_id, current_user)
    return await farm_service.update_status(db, farm, data.status.value)


# ── Lifecycle position ────────────────────────────────────────────────────────


@router.get("/{farm_id}/stage", response_model=StageRead)
async def get_farm_stage(farm_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    farm = await _get_owned_farm(db, farm_id, current_user)
    days = days_between(farm.planting_date, today_utc())
    if days < 0:
        return StageRead(
            farm_id=farm.id,
            crop=farm.crop,
            days_since_planting=days,
            stage=PRE_PLANTING_STAGE,
            next_stage=resolve_stage(farm.crop, 0),
            next_stage_in_days=-days,
        )
    upcoming = next_stage(farm.crop, days)
    return StageRead(
        farm_id=farm.id,
        crop=farm.crop,
        days_since_planting=days,
        stage=resolve_stage(farm.crop, days),
        next_stage=upcoming.name if upcoming else None,
        next_stage_in_days=upcoming.start_day - days if upcoming else None,
    )


@router.get("/{farm_id}/harvest-window")
async def get_harvest_window(farm_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    farm = await _get_owned_farm(db, farm_id, current_user)
    window = compute_harvest_window(
        farm.crop,
        farm.planting_date,
        today_utc(),
        grace_days=lifecycle_config.harvest_grace_days,
        approaching_days=lifecycle_config.harvest_approaching_days,
    )
    return window.as_dict()


@router.get("/{farm_id}/harvest-advisory")
async def get_harvest_advisory(
    farm_id: int,
    current_user: CurrentUser,
    observations: str | None = Query(default=None, max_length=2000),
    db: AsyncSession = Depends(get_db),
    weather_provider: WeatherProvider = Depends(get_weather_provider),
):
    farm = await _get_owned_farm(db, farm_id, current_user)
    window = compute_harvest_window(
        farm.crop,
        farm.planting_date,
        today_utc(),
        grace_days=lifecycle_config.harvest_grace_days,
        approaching_days=lifecycle_config.harvest_approaching_days,
    )

    weather = await fetch_farm_weather(weather_provider, farm)
    prices = summarize_prices(await get_recent_prices(db, farm.crop, farm.state))
    return build_harvest_advisory(farm.crop, window, weather, prices, observations)


# ── Logs ──────────────────────────────────────────────────────────────────────


@router.get("/{farm_id}/activities", response_model=list[ActivityRead])
async def list_activities(
    farm_id: int,
    current_user: CurrentUser,
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    await _get_owned_farm(db, farm_id, current_user)
    return await farm_service.recent_activities(db, farm_id, limit)


@router.get("/{farm_id}/feedback")
async def list_feedback(
    farm_id: int,
    current_user: CurrentUser,
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list:
    await _get_owned_farm(db, farm_id, current_user)
    rows = await farm_service.recent_feedback(db, farm_id, limit)
    return [
        {
            "id": f.id,
            "feedback_type": f.feedback_type,
            "feedback_date": f.feedback_date.isoformat(),
            "user_response": f.user_response,
            "ai_interpretation": f.ai_interpretation,
            "plan_adjusted": f.plan_adjusted,
            "adjustments_made": f.adjustments_made,
        }
        for f in rows
    ]


# ── Helpers ───────────────────────────────────────────────────────────────────


async def _get_owned_farm(db: AsyncSession, farm_id: int, owner_id: str) -> Farm:
    farm = await farm_service.get_farm(db, farm_id, owner_id)
    if not farm:
        raise HTTPException(status_code=404, detail="Farm not found")
    return farm
