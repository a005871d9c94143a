from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.core.config import settings
from app.core.security import decode_token
from app.db.session import get_db
from app.services.text_generation import GeminiTextGenerator, TextGenerator
from app.services.weather import OpenMeteoWeatherProvider, WeatherProvider

__all__ = ["CurrentUser", "get_db", "get_redis", "get_text_generator", "get_weather_provider"]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=True)

# Module-level Redis client (connection pool, created once on first use)
_redis_client: aioredis.Redis | None = None


def _get_redis() -> aioredis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


async def get_redis():
    yield _get_redis()


async def get_weather_provider(
    redis: aioredis.Redis = Depends(get_redis),
) -> WeatherProvider:
    return OpenMeteoWeatherProvider(redis)


async def get_text_generator() -> TextGenerator:
    return GeminiTextGenerator()


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> str:
    """Resolve the bearer token to the owner id carried in its ``sub`` claim."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise credentials_exc
        owner_id = payload.get("sub")
        if not owner_id:
            raise credentials_exc
    except JWTError:
        raise credentials_exc
    return str(owner_id)


CurrentUser = Annotated[str, Depends(get_current_user)]
