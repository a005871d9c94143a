"""
Open-Meteo weather provider.

Fetch current conditions + a 7-day forecast for a lat/lon.
Results are cached in Redis for 3 hours (CACHE_TTL_SECONDS).

The recommendation trigger depends only on the WeatherProvider protocol, so
tests substitute a fake and the transport can change without touching it.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 10_800  # 3 hours
FORECAST_DAYS = 7

# WMO weather interpretation codes → human-readable string
_WMO_CONDITIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear", 2: "Partly cloudy", 3: "Overcast",
    45: "Foggy", 48: "Depositing rime fog",
    51: "Light drizzle", 53: "Moderate drizzle", 55: "Dense drizzle",
    61: "Slight rain", 63: "Moderate rain", 65: "Heavy rain",
    80: "Slight rain showers", 81: "Moderate rain showers", 82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail", 99: "Thunderstorm with heavy hail",
}


class WeatherProvider(Protocol):
    async def get_weather(self, latitude: float, longitude: float) -> dict:
        """Return {"current": {...}, "forecast": [...]} for a location."""
        ...


def _conditions(code: Optional[int]) -> Optional[str]:
    if code is None:
        return None
    return _WMO_CONDITIONS.get(code, f"Code {code}")


def _at(values: list, i: int) -> Any:
    return values[i] if i < len(values) else None


def parse_open_meteo(raw: dict) -> dict:
    """Map an Open-Meteo response to the weather snapshot shape used in prompts."""
    cur = raw.get("current", {})
    daily = raw.get("daily", {})

    current = {
        "temperature": cur.get("temperature_2m"),
        "humidity": cur.get("relative_humidity_2m"),
        "rainfall": cur.get("precipitation"),
        "windSpeed": cur.get("wind_speed_10m"),
        "conditions": _conditions(cur.get("weather_code")),
        "timestamp": cur.get("time"),
    }

    dates = daily.get("time", [])
    highs = daily.get("temperature_2m_max", [])
    lows = daily.get("temperature_2m_min", [])
    precip = daily.get("precipitation_sum", [])
    probability = daily.get("precipitation_probability_max", [])
    codes = daily.get("weather_code", [])

    forecast = []
    for i, d in enumerate(dates):
        forecast.append({
            "date": d,
            "temperatureHigh": _at(highs, i),
            "temperatureLow": _at(lows, i),
            "rainfallAmount": _at(precip, i) or 0.0,
            "rainfallProbability": _at(probability, i) or 0,
            "conditions": _conditions(_at(codes, i)),
        })

    return {
        "current": current,
        "forecast": forecast,
        "fetchedAt": datetime.now(timezone.utc).isoformat(),
        "source": "open-meteo",
    }


class OpenMeteoWeatherProvider:
    def __init__(
        self,
        redis: Any,
        base_url: str = settings.OPEN_METEO_BASE_URL,
        timeout: float = settings.WEATHER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.redis = redis
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def _cache_key(lat: float, lon: float) -> str:
        return f"farm_weather:{lat:.4f}:{lon:.4f}"

    async def fetch_open_meteo(self, lat: float, lon: float) -> dict:
        """Raw HTTP call to Open-Meteo. Returns parsed JSON."""
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": "temperature_2m,relative_humidity_2m,precipitation,wind_speed_10m,weather_code",
            "daily": ",".join([
                "temperature_2m_max",
                "temperature_2m_min",
                "precipitation_sum",
                "precipitation_probability_max",
                "weather_code",
            ]),
            "forecast_days": FORECAST_DAYS,
            "timezone": "auto",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(f"{self.base_url}/forecast", params=params)
            resp.raise_for_status()
            return resp.json()

    async def get_weather(self, latitude: float, longitude: float) -> dict:
        key = self._cache_key(latitude, longitude)

        cached = await self.redis.get(key)
        if cached is not None:
            logger.debug("weather cache hit: %s", key)
            raw_str = cached.decode("utf-8") if isinstance(cached, bytes) else cached
            return json.loads(raw_str)

        logger.debug("weather cache miss: %s, fetching Open-Meteo", key)
        result = parse_open_meteo(await self.fetch_open_meteo(latitude, longitude))
        await self.redis.setex(key, CACHE_TTL_SECONDS, json.dumps(result))
        return result


async def fetch_farm_weather(provider: WeatherProvider, farm: Any) -> dict:
    """Best-effort weather for a farm's coordinates. Returns {} when unavailable."""
    if farm.latitude is None or farm.longitude is None:
        logger.info("farm %d has no coordinates, skipping weather", farm.id)
        return {}
    try:
        return await provider.get_weather(farm.latitude, farm.longitude) or {}
    except Exception as exc:
        logger.warning("weather unavailable for farm %d: %s", farm.id, exc)
        return {}
