from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Date, DateTime, Enum, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Farm(Base):
    __tablename__ = "farms"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    farm_name: Mapped[str] = mapped_column(String(200))

    # Location
    country: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    lga: Mapped[Optional[str]] = mapped_column(String(100))
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    farm_size: Mapped[Optional[float]] = mapped_column(Float)
    size_unit: Mapped[str] = mapped_column(String(20), default="hectares")
    water_access: Mapped[Optional[str]] = mapped_column(String(50))
    irrigation_method: Mapped[Optional[str]] = mapped_column(String(50))
    soil_profile: Mapped[Optional[dict]] = mapped_column(JSON)

    # Crop lifecycle
    crop: Mapped[str] = mapped_column(String(100))
    crop_variety: Mapped[Optional[str]] = mapped_column(String(100))
    planting_date: Mapped[date] = mapped_column(Date)
    expected_harvest_date: Mapped[date] = mapped_column(Date)
    current_growth_stage: Mapped[str] = mapped_column(String(100), default="pre-planting")
    status: Mapped[str] = mapped_column(
        Enum("active", "harvested", "archived", "paused", name="farm_status_enum"),
        default="active",
        index=True,
    )
    plan_reference: Mapped[Optional[dict]] = mapped_column(JSON)

    # Money
    budget: Mapped[Optional[float]] = mapped_column(Float)
    budget_spent: Mapped[float] = mapped_column(Float, default=0.0, server_default="0")
    expected_yield: Mapped[Optional[float]] = mapped_column(Float)

    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    last_activity: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    daily_recommendations: Mapped[list["DailyRecommendation"]] = relationship(back_populates="farm")
    activities: Mapped[list["FarmActivity"]] = relationship(back_populates="farm")
    feedback: Mapped[list["FarmFeedback"]] = relationship(back_populates="farm")
