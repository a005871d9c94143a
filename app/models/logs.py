from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, Enum, Float, ForeignKey,
    Integer, String, Text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

ACTIVITY_TYPES = (
    "irrigation", "fertilization", "inspection", "planting", "weeding",
    "pest_treatment", "disease_treatment", "pruning", "thinning", "mulching",
    "staking", "harvesting", "post_harvest", "soil_preparation", "other",
)

FEEDBACK_TYPES = (
    "weather_confirmation", "growth_milestone", "issue_report",
    "activity_completion", "observation",
)


class FarmActivity(Base):
    """Append-only record of an action taken (or skipped) on a farm."""

    __tablename__ = "farm_activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    farm_id: Mapped[int] = mapped_column(ForeignKey("farms.id", ondelete="CASCADE"), index=True)
    activity_type: Mapped[str] = mapped_column(
        Enum(*ACTIVITY_TYPES, name="activity_type_enum"), default="other"
    )
    activity_date: Mapped[date] = mapped_column(Date, index=True)
    recommendation_id: Mapped[Optional[str]] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(
        Enum("pending", "completed", "skipped", "delayed", name="activity_status_enum")
    )
    completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    cost: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    farm: Mapped["Farm"] = relationship(back_populates="activities")


class FarmFeedback(Base):
    """Immutable audit entry for one user-submitted observation."""

    __tablename__ = "farm_feedback"

    id: Mapped[int] = mapped_column(primary_key=True)
    farm_id: Mapped[int] = mapped_column(ForeignKey("farms.id", ondelete="CASCADE"), index=True)
    feedback_type: Mapped[str] = mapped_column(Enum(*FEEDBACK_TYPES, name="feedback_type_enum"))
    feedback_date: Mapped[date] = mapped_column(Date)
    user_response: Mapped[dict] = mapped_column(JSON)
    ai_interpretation: Mapped[Optional[str]] = mapped_column(Text)
    plan_adjusted: Mapped[bool] = mapped_column(Boolean, default=False)
    adjustments_made: Mapped[Optional[dict]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    farm: Mapped["Farm"] = relationship(back_populates="feedback")


class PipelineRun(Base):
    __tablename__ = "pipeline_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    pipeline_name: Mapped[str] = mapped_column(String(100), index=True)
    status: Mapped[str] = mapped_column(
        Enum("running", "success", "failed", "skipped", name="pipeline_status_enum")
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer)
    records_processed: Mapped[Optional[int]] = mapped_column(Integer)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
