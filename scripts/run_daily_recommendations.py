#!/usr/bin/env python3
"""
One-off script to manually trigger the daily recommendation run.

Usage (inside the API container):
    python scripts/run_daily_recommendations.py

Or from the host:
    docker exec cropcycle-api-1 python scripts/run_daily_recommendations.py
"""
import asyncio
import logging
import sys

import redis.asyncio as aioredis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s: %(message)s",
    stream=sys.stdout,
)

from app.core.config import settings
from app.tasks.daily_recommendations import run_daily_recommendations


async def main() -> None:
    print("Starting daily recommendation run...\n")
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        summary = await run_daily_recommendations(ctx={"redis": redis})
    finally:
        await redis.aclose()
    print(f"\nRun finished: {summary['generated']} generated, {summary['failed']} failed.")


if __name__ == "__main__":
    asyncio.run(main())
