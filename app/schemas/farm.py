from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FarmStatus(str, Enum):
    active = "active"
    harvested = "harvested"
    archived = "archived"
    paused = "paused"


class FarmCreate(BaseModel):
    farm_name: str = Field(min_length=1)
    crop: str = Field(min_length=1)
    crop_variety: Optional[str] = None
    planting_date: date
    country: Optional[str] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    farm_size: Optional[float] = Field(default=None, gt=0)
    size_unit: str = "hectares"
    water_access: Optional[str] = None
    irrigation_method: Optional[str] = None
    soil_profile: Optional[dict] = None
    plan_reference: Optional[dict] = None
    budget: Optional[float] = Field(default=None, ge=0)
    expected_yield: Optional[float] = None
    notes: Optional[str] = None


class FarmStatusUpdate(BaseModel):
    status: FarmStatus


class FarmRead(BaseModel):
    id: int
    owner_id: str
    farm_name: str
    crop: str
    crop_variety: Optional[str] = None
    planting_date: date
    expected_harvest_date: date
    current_growth_stage: str
    status: str
    country: Optional[str] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    farm_size: Optional[float] = None
    size_unit: str
    budget: Optional[float] = None
    budget_spent: float
    created_at: datetime
    updated_at: datetime
    last_activity: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StageRead(BaseModel):
    farm_id: int
    crop: str
    days_since_planting: int
    stage: str
    next_stage: Optional[str] = None
    next_stage_in_days: Optional[int] = None


class ActivityRead(BaseModel):
    id: int
    farm_id: int
    activity_type: str
    activity_date: date
    recommendation_id: Optional[str] = None
    status: str
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None
    cost: Optional[float] = None
    created_at: datetime

    model_config = {"from_attributes": True}
