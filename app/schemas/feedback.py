from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FeedbackType(str, Enum):
    weather_confirmation = "weather_confirmation"
    growth_milestone = "growth_milestone"
    issue_report = "issue_report"
    activity_completion = "activity_completion"
    observation = "observation"


class WeatherConfirmation(BaseModel):
    rain_occurred: bool
    rain_amount: Optional[Literal["none", "light", "moderate", "heavy"]] = None
    was_forecasted: bool


class GrowthMilestone(BaseModel):
    expected_stage: str = Field(min_length=1)
    actual_status: Literal["on_track", "ahead", "behind"]
    observations: Optional[str] = None
    photo_url: Optional[str] = None


class IssueReport(BaseModel):
    issue_type: Literal["pest", "disease", "nutrient", "water", "weather", "other"]
    description: str
    severity: Literal["minor", "moderate", "severe"]
    affected_area: Optional[str] = None
    photo_url: Optional[str] = None


class ActivityCompletion(BaseModel):
    recommendation_id: str
    completed: bool
    notes: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)


class Observation(BaseModel):
    model_config = ConfigDict(extra="allow")


PAYLOAD_MODELS: dict[FeedbackType, type[BaseModel]] = {
    FeedbackType.weather_confirmation: WeatherConfirmation,
    FeedbackType.growth_milestone: GrowthMilestone,
    FeedbackType.issue_report: IssueReport,
    FeedbackType.activity_completion: ActivityCompletion,
    FeedbackType.observation: Observation,
}


class FeedbackRequest(BaseModel):
    farm_id: int
    feedback_type: FeedbackType
    response: dict


class IssueDiagnosis(BaseModel):
    """Structured diagnosis expected back from the text generator."""

    model_config = ConfigDict(extra="ignore")

    diagnosis: str
    likely_cause: Optional[str] = None
    immediate_action: str = ""
    treatment: str = ""
    prevention: Optional[str] = None
    urgency: str = "low"
