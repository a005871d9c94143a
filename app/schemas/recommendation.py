from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecommendationType(str, Enum):
    irrigation = "irrigation"
    fertilization = "fertilization"
    inspection = "inspection"
    pest_treatment = "pest_treatment"
    disease_treatment = "disease_treatment"
    weeding = "weeding"
    planting = "planting"
    other = "other"


class Priority(str, Enum):
    critical = "critical"
    high = "high"
    normal = "normal"
    low = "low"


class RecommendationItem(BaseModel):
    """One actionable item. Serialized with camelCase keys (estimatedCost, estimatedTime)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    type: RecommendationType = RecommendationType.other
    priority: Priority = Priority.normal
    action: str = ""
    reasoning: str = ""
    resources: list[str] = Field(default_factory=list)
    estimated_cost: Optional[float] = Field(default=None, alias="estimatedCost")
    estimated_time: Optional[str] = Field(default=None, alias="estimatedTime")
    deadline: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, v: Any) -> Any:
        return v if isinstance(v, str) and v in RecommendationType._value2member_map_ else RecommendationType.other

    @field_validator("priority", mode="before")
    @classmethod
    def _known_priority(cls, v: Any) -> Any:
        return v if isinstance(v, str) and v in Priority._value2member_map_ else Priority.normal

    @field_validator("resources", mode="before")
    @classmethod
    def _resources_list(cls, v: Any) -> list:
        if v is None:
            return []
        return [str(r) for r in v] if isinstance(v, list) else [str(v)]

    @field_validator("estimated_cost", mode="before")
    @classmethod
    def _cost_number(cls, v: Any) -> Optional[float]:
        try:
            return float(v) if v is not None else None
        except (TypeError, ValueError):
            return None

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FarmStatusReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_on_track: bool = Field(default=True, alias="isOnTrack")
    status_summary: str = Field(default="", alias="statusSummary")
    concerns: list[str] = Field(default_factory=list)
    positives: list[str] = Field(default_factory=list)


class DailyRecommendationRequest(BaseModel):
    farm_id: int


class DailyRecommendationRead(BaseModel):
    id: int
    farm_id: int
    recommendation_date: date
    days_since_planting: int
    current_stage: str
    briefing: str
    recommendations: list[dict]
    weather_data: dict
    farm_status: dict
    next_milestone: Optional[dict] = None
    user_viewed: bool
    viewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
