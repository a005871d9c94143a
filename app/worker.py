"""
ARQ worker — background task definitions.
Run with: python -m app.worker
"""
from arq import cron
from arq.connections import RedisSettings

from app.core.config import settings
from app.tasks.daily_recommendations import run_daily_recommendations


# ── Worker settings ───────────────────────────────────────────────────────────


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    functions = [run_daily_recommendations]
    cron_jobs = [
        cron(run_daily_recommendations, hour=5, minute=0),  # Daily 5am UTC
    ]
    on_startup = None
    on_shutdown = None


if __name__ == "__main__":
    from arq import run_worker

    run_worker(WorkerSettings)
