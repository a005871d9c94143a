import json
from types import SimpleNamespace

import httpx
import pytest

from app.services.exceptions import TextGenerationError
from app.services.text_generation import GeminiTextGenerator, parse_json_payload
from app.services.weather import OpenMeteoWeatherProvider, fetch_farm_weather, parse_open_meteo

OPEN_METEO_REPLY = {
    "current": {
        "time": "2024-06-01T12:00",
        "temperature_2m": 31.2,
        "relative_humidity_2m": 64,
        "precipitation": 0.0,
        "wind_speed_10m": 9.4,
        "weather_code": 2,
    },
    "daily": {
        "time": ["2024-06-01", "2024-06-02"],
        "temperature_2m_max": [33.0, 30.1],
        "temperature_2m_min": [22.4, 21.9],
        "precipitation_sum": [0.0, 12.5],
        "precipitation_probability_max": [10, 85],
        "weather_code": [2, 63],
    },
}


class MemoryRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value


# ── Weather ───────────────────────────────────────────────────────────────────


def test_parse_open_meteo():
    weather = parse_open_meteo(OPEN_METEO_REPLY)
    assert weather["current"]["temperature"] == 31.2
    assert weather["current"]["conditions"] == "Partly cloudy"
    assert weather["forecast"][1] == {
        "date": "2024-06-02",
        "temperatureHigh": 30.1,
        "temperatureLow": 21.9,
        "rainfallAmount": 12.5,
        "rainfallProbability": 85,
        "conditions": "Moderate rain",
    }
    assert weather["source"] == "open-meteo"


async def test_open_meteo_provider_caches_in_redis():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=OPEN_METEO_REPLY)

    redis = MemoryRedis()
    provider = OpenMeteoWeatherProvider(redis, base_url="https://weather.test/v1", transport=httpx.MockTransport(handler))

    first = await provider.get_weather(10.52, 7.44)
    second = await provider.get_weather(10.52, 7.44)

    assert len(calls) == 1
    assert calls[0].url.params["latitude"] == "10.52"
    assert first["forecast"] == second["forecast"]
    assert "farm_weather:10.5200:7.4400" in redis.store


async def test_fetch_farm_weather_swallows_provider_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    provider = OpenMeteoWeatherProvider(MemoryRedis(), transport=httpx.MockTransport(handler))
    farm = SimpleNamespace(id=1, latitude=1.0, longitude=2.0)

    assert await fetch_farm_weather(provider, farm) == {}


# ── Text generation ───────────────────────────────────────────────────────────


def test_parse_json_payload_strips_fences():
    assert parse_json_payload('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_payload('  {"a": 2} ') == {"a": 2}


@pytest.mark.parametrize("text", ["", "not json", "[1, 2]", "```\n```"])
def test_parse_json_payload_rejects(text):
    with pytest.raises(ValueError):
        parse_json_payload(text)


async def test_gemini_returns_candidate_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": '{"ok": '}, {"text": "true}"}]}}],
        })

    generator = GeminiTextGenerator(
        api_key="k", model="gemini-test", base_url="https://gen.test/v1beta",
        transport=httpx.MockTransport(handler),
    )
    text = await generator.generate("hello", system_prompt="be brief", temperature=0.2)

    assert text == '{"ok": true}'
    assert seen["url"].startswith("https://gen.test/v1beta/models/gemini-test:generateContent")
    assert seen["body"]["systemInstruction"]["parts"][0]["text"] == "be brief"
    assert seen["body"]["generationConfig"]["temperature"] == 0.2


@pytest.mark.parametrize("response", [
    httpx.Response(500, text="boom"),
    httpx.Response(200, json={"candidates": []}),
    httpx.Response(200, text="<html>gateway timeout</html>"),
    httpx.Response(200, json={"candidates": ["not-an-object"]}),
    httpx.Response(200, json=["unexpected"]),
])
async def test_gemini_failures_raise(response):
    generator = GeminiTextGenerator(
        api_key="k", transport=httpx.MockTransport(lambda request: response)
    )
    with pytest.raises(TextGenerationError):
        await generator.generate("hello")


async def test_gemini_without_key_raises():
    with pytest.raises(TextGenerationError):
        await GeminiTextGenerator(api_key="").generate("hello")
