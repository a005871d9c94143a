from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class DailyRecommendation(Base):
    __tablename__ = "daily_recommendations"
    __table_args__ = (
        UniqueConstraint("farm_id", "recommendation_date", name="uq_daily_recommendations_farm_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    farm_id: Mapped[int] = mapped_column(ForeignKey("farms.id", ondelete="CASCADE"), index=True)
    recommendation_date: Mapped[date] = mapped_column(Date, index=True)

    # Snapshot of the farm's position at generation time
    days_since_planting: Mapped[int] = mapped_column(Integer)
    current_stage: Mapped[str] = mapped_column(String(100))

    briefing: Mapped[str] = mapped_column(Text)
    recommendations: Mapped[list] = mapped_column(JSON, default=list)
    weather_data: Mapped[dict] = mapped_column(JSON, default=dict)
    farm_status: Mapped[dict] = mapped_column(JSON, default=dict)
    next_milestone: Mapped[Optional[dict]] = mapped_column(JSON)

    user_viewed: Mapped[bool] = mapped_column(Boolean, default=False)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    farm: Mapped["Farm"] = relationship(back_populates="daily_recommendations")
