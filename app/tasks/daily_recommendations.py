"""
ARQ job: daily recommendation run.

run_daily_recommendations — runs daily at 05:00 UTC
    Generates today's recommendation for every active farm. Each farm gets its
    own session, so one failing farm never blocks the rest. The run is recorded
    as a PipelineRun ("daily_recommendations").

ctx may carry "session_factory", "weather_provider" and "text_generator" to
replace the defaults.
"""
import logging
from datetime import datetime, timezone

from app.db.session import AsyncSessionLocal
from app.models.logs import PipelineRun
from app.services.daily_recommendations import generate_daily_recommendation, today_utc
from app.services.farm_service import list_active_farm_ids
from app.services.text_generation import GeminiTextGenerator
from app.services.weather import OpenMeteoWeatherProvider

logger = logging.getLogger(__name__)

PIPELINE_NAME = "daily_recommendations"


async def run_daily_recommendations(ctx: dict) -> dict:
    """Generate today's recommendation for every active farm."""
    logger.info("run_daily_recommendations: starting")
    session_factory = ctx.get("session_factory", AsyncSessionLocal)
    weather_provider = ctx.get("weather_provider") or OpenMeteoWeatherProvider(ctx["redis"])
    text_generator = ctx.get("text_generator") or GeminiTextGenerator()

    today = today_utc()
    started_at = datetime.now(timezone.utc)
    succeeded = 0
    failed = 0

    async with session_factory() as db:
        pipeline = PipelineRun(
            pipeline_name=PIPELINE_NAME,
            status="running",
            started_at=started_at,
        )
        db.add(pipeline)
        await db.commit()
        await db.refresh(pipeline)

        try:
            farm_ids = await list_active_farm_ids(db)

            for farm_id in farm_ids:
                try:
                    async with session_factory() as farm_db:
                        result = await generate_daily_recommendation(
                            farm_db,
                            farm_id,
                            weather_provider=weather_provider,
                            text_generator=text_generator,
                            today=today,
                        )
                    if result.success:
                        succeeded += 1
                    else:
                        failed += 1
                        logger.warning(
                            "run_daily_recommendations: farm %d skipped: %s", farm_id, result.error
                        )
                except Exception:
                    failed += 1
                    logger.exception("run_daily_recommendations: failed for farm %d", farm_id)

            finished_at = datetime.now(timezone.utc)
            pipeline.status = "success"
            pipeline.finished_at = finished_at
            pipeline.duration_ms = int((finished_at - started_at).total_seconds() * 1000)
            pipeline.records_processed = succeeded
            if failed:
                pipeline.error_message = f"{failed} farm(s) failed"
            await db.commit()

        except Exception as exc:
            logger.exception("run_daily_recommendations: unexpected error")
            finished_at = datetime.now(timezone.utc)
            pipeline.status = "failed"
            pipeline.finished_at = finished_at
            pipeline.duration_ms = int((finished_at - started_at).total_seconds() * 1000)
            pipeline.error_message = str(exc)
            await db.commit()
            raise

    logger.info(
        "run_daily_recommendations: complete, %d generated, %d failed", succeeded, failed
    )
    return {"generated": succeeded, "failed": failed}
