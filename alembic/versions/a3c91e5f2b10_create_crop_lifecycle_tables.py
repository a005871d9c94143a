"""create crop lifecycle tables

Revision ID: a3c91e5f2b10
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "a3c91e5f2b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVITY_TYPES = (
    "irrigation", "fertilization", "inspection", "planting", "weeding",
    "pest_treatment", "disease_treatment", "pruning", "thinning", "mulching",
    "staking", "harvesting", "post_harvest", "soil_preparation", "other",
)
FEEDBACK_TYPES = (
    "weather_confirmation", "growth_milestone", "issue_report",
    "activity_completion", "observation",
)


def upgrade() -> None:
    op.create_table(
        "farms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("farm_name", sa.String(200), nullable=False),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("lga", sa.String(100), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("farm_size", sa.Float(), nullable=True),
        sa.Column("size_unit", sa.String(20), nullable=False),
        sa.Column("water_access", sa.String(50), nullable=True),
        sa.Column("irrigation_method", sa.String(50), nullable=True),
        sa.Column("soil_profile", sa.JSON(), nullable=True),
        sa.Column("crop", sa.String(100), nullable=False),
        sa.Column("crop_variety", sa.String(100), nullable=True),
        sa.Column("planting_date", sa.Date(), nullable=False),
        sa.Column("expected_harvest_date", sa.Date(), nullable=False),
        sa.Column("current_growth_stage", sa.String(100), nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "harvested", "archived", "paused", name="farm_status_enum"),
            nullable=False,
        ),
        sa.Column("plan_reference", sa.JSON(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=True),
        sa.Column("budget_spent", sa.Float(), server_default="0", nullable=False),
        sa.Column("expected_yield", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_farms_owner_id", "farms", ["owner_id"])
    op.create_index("ix_farms_status", "farms", ["status"])

    op.create_table(
        "daily_recommendations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("farm_id", sa.Integer(), sa.ForeignKey("farms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("recommendation_date", sa.Date(), nullable=False),
        sa.Column("days_since_planting", sa.Integer(), nullable=False),
        sa.Column("current_stage", sa.String(100), nullable=False),
        sa.Column("briefing", sa.Text(), nullable=False),
        sa.Column("recommendations", sa.JSON(), nullable=False),
        sa.Column("weather_data", sa.JSON(), nullable=False),
        sa.Column("farm_status", sa.JSON(), nullable=False),
        sa.Column("next_milestone", sa.JSON(), nullable=True),
        sa.Column("user_viewed", sa.Boolean(), nullable=False),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("farm_id", "recommendation_date", name="uq_daily_recommendations_farm_date"),
    )
    op.create_index("ix_daily_recommendations_farm_id", "daily_recommendations", ["farm_id"])
    op.create_index("ix_daily_recommendations_recommendation_date", "daily_recommendations", ["recommendation_date"])

    op.create_table(
        "farm_activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("farm_id", sa.Integer(), sa.ForeignKey("farms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_type", sa.Enum(*ACTIVITY_TYPES, name="activity_type_enum"), nullable=False),
        sa.Column("activity_date", sa.Date(), nullable=False),
        sa.Column("recommendation_id", sa.String(64), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "completed", "skipped", "delayed", name="activity_status_enum"),
            nullable=False,
        ),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cost", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_farm_activities_farm_id", "farm_activities", ["farm_id"])
    op.create_index("ix_farm_activities_activity_date", "farm_activities", ["activity_date"])
    op.create_index("ix_farm_activities_created_at", "farm_activities", ["created_at"])

    op.create_table(
        "farm_feedback",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("farm_id", sa.Integer(), sa.ForeignKey("farms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("feedback_type", sa.Enum(*FEEDBACK_TYPES, name="feedback_type_enum"), nullable=False),
        sa.Column("feedback_date", sa.Date(), nullable=False),
        sa.Column("user_response", sa.JSON(), nullable=False),
        sa.Column("ai_interpretation", sa.Text(), nullable=True),
        sa.Column("plan_adjusted", sa.Boolean(), nullable=False),
        sa.Column("adjustments_made", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_farm_feedback_farm_id", "farm_feedback", ["farm_id"])
    op.create_index("ix_farm_feedback_created_at", "farm_feedback", ["created_at"])

    op.create_table(
        "market_prices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("crop_name", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("market_name", sa.String(200), nullable=True),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False),
        sa.Column("price_date", sa.Date(), nullable=False),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_market_prices_crop_name", "market_prices", ["crop_name"])
    op.create_index("ix_market_prices_state", "market_prices", ["state"])
    op.create_index("ix_market_prices_price_date", "market_prices", ["price_date"])

    op.create_table(
        "pipeline_runs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pipeline_name", sa.String(100), nullable=False),
        sa.Column(
            "status",
            sa.Enum("running", "success", "failed", "skipped", name="pipeline_status_enum"),
            nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("records_processed", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_pipeline_runs_pipeline_name", "pipeline_runs", ["pipeline_name"])


def downgrade() -> None:
    op.drop_table("pipeline_runs")
    op.drop_table("market_prices")
    op.drop_table("farm_feedback")
    op.drop_table("farm_activities")
    op.drop_table("daily_recommendations")
    op.drop_table("farms")
    # Alembic doesn't drop enum types with their tables
    for enum_name in (
        "pipeline_status_enum", "feedback_type_enum", "activity_status_enum",
        "activity_type_enum", "farm_status_enum",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
