from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.farm import Farm
from app.models.logs import FarmActivity, FarmFeedback
from app.schemas.farm import FarmCreate
from app.services.crop_catalog import PRE_PLANTING_STAGE
from app.services.harvest import expected_harvest_date


async def get_farm(
    db: AsyncSession, farm_id: int, owner_id: Optional[str] = None
) -> Optional[Farm]:
    q = select(Farm).where(Farm.id == farm_id)
    if owner_id is not None:
        q = q.where(Farm.owner_id == owner_id)
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def get_active_farm(
    db: AsyncSession, farm_id: int, owner_id: Optional[str] = None
) -> Optional[Farm]:
    farm = await get_farm(db, farm_id, owner_id)
    if farm is None or farm.status != "active":
        return None
    return farm


async def list_farms(db: AsyncSession, owner_id: str) -> list[Farm]:
    result = await db.execute(
        select(Farm).where(Farm.owner_id == owner_id).order_by(Farm.created_at)
    )
    return list(result.scalars().all())


async def list_active_farm_ids(db: AsyncSession) -> list[int]:
    result = await db.execute(select(Farm.id).where(Farm.status == "active").order_by(Farm.id))
    return list(result.scalars().all())


async def create_farm(db: AsyncSession, data: FarmCreate, owner_id: str) -> Farm:
    farm = Farm(
        **data.model_dump(),
        owner_id=owner_id,
        expected_harvest_date=expected_harvest_date(data.crop, data.planting_date),
        current_growth_stage=PRE_PLANTING_STAGE,
        status="active",
        budget_spent=0.0,
    )
    db.add(farm)
    await db.commit()
    await db.refresh(farm)
    return farm


async def update_status(db: AsyncSession, farm: Farm, status: str) -> Farm:
    farm.status = status
    await db.commit()
    await db.refresh(farm)
    return farm


async def increment_budget_spent(db: AsyncSession, farm_id: int, cost: float) -> None:
    """Add cost to budget_spent in SQL so concurrent increments never overwrite each other.

    Caller must commit.
    """
    if cost <= 0:
        return
    await db.execute(
        update(Farm)
        .where(Farm.id == farm_id)
        .values(budget_spent=Farm.budget_spent + cost)
        .execution_options(synchronize_session="fetch")
    )


async def touch_last_activity(db: AsyncSession, farm_id: int, **values) -> None:
    """Stamp last_activity (plus any extra column values). Caller must commit."""
    await db.execute(
        update(Farm)
        .where(Farm.id == farm_id)
        .values(last_activity=datetime.now(timezone.utc), **values)
        .execution_options(synchronize_session="fetch")
    )


async def recent_activities(db: AsyncSession, farm_id: int, limit: int) -> list[FarmActivity]:
    result = await db.execute(
        select(FarmActivity)
        .where(FarmActivity.farm_id == farm_id)
        .order_by(FarmActivity.activity_date.desc(), FarmActivity.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def recent_feedback(db: AsyncSession, farm_id: int, limit: int) -> list[FarmFeedback]:
    result = await db.execute(
        select(FarmFeedback)
        .where(FarmFeedback.farm_id == farm_id)
        .order_by(FarmFeedback.created_at.desc(), FarmFeedback.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
