"""
Harvest window calculator.

Maturity and urgency are pure date arithmetic against the crop duration table.
Weather and market data only feed the advisory text, never the classification.
"""
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from app.services.crop_catalog import crop_duration, crop_profile
from app.services.market import PriceSummary

DEFAULT_GRACE_DAYS = 14
DEFAULT_APPROACHING_DAYS = 14
RAIN_ALERT_PROBABILITY = 60

DateLike = Union[date, datetime]

_ASSESSMENTS = {
    "ready": "Crop appears ready for harvest based on timeline",
    "approaching": "Monitor closely - harvest approaching",
    "overdue": "Harvest may be overdue - check immediately",
    "not_ready": "Continue monitoring - not yet ready",
}


@dataclass(frozen=True)
class HarvestWindow:
    expected_harvest_day: int
    days_since_planting: int
    days_to_expected_harvest: int
    biological_maturity: str  # "not_ready", "approaching", "ready", "overdue"
    urgency: str              # "low", "medium", "high"
    optimal_window_start: date
    optimal_window_end: date

    def as_dict(self) -> dict:
        data = asdict(self)
        data["optimal_window_start"] = self.optimal_window_start.isoformat()
        data["optimal_window_end"] = self.optimal_window_end.isoformat()
        return data


def _as_datetime(value: DateLike, like: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    tz = like.tzinfo if isinstance(like, datetime) else None
    return datetime(value.year, value.month, value.day, tzinfo=tz)


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole days from start to end, floored (never rounded)."""
    if not isinstance(start, datetime) and not isinstance(end, datetime):
        return (end - start).days
    delta = _as_datetime(end, start) - _as_datetime(start, end)
    return delta // timedelta(days=1)


def expected_harvest_date(crop: str, planting_date: date) -> date:
    return planting_date + timedelta(days=crop_duration(crop))


def classify_maturity(
    days_since_planting: int,
    expected_harvest_day: int,
    *,
    grace_days: int = DEFAULT_GRACE_DAYS,
    approaching_days: int = DEFAULT_APPROACHING_DAYS,
) -> tuple[str, str]:
    """Return (biological_maturity, urgency)."""
    days_to_harvest = expected_harvest_day - days_since_planting
    if days_to_harvest > approaching_days:
        return "not_ready", "low"
    if days_to_harvest > 0:
        return "approaching", "medium"
    if days_since_planting > expected_harvest_day + grace_days:
        return "overdue", "high"
    return "ready", "medium"


def compute_harvest_window(
    crop: str,
    planting_date: date,
    today: DateLike,
    *,
    grace_days: int = DEFAULT_GRACE_DAYS,
    approaching_days: int = DEFAULT_APPROACHING_DAYS,
) -> HarvestWindow:
    expected_day = crop_duration(crop)
    elapsed = days_between(planting_date, today)
    maturity, urgency = classify_maturity(
        elapsed, expected_day, grace_days=grace_days, approaching_days=approaching_days
    )
    return HarvestWindow(
        expected_harvest_day=expected_day,
        days_since_planting=elapsed,
        days_to_expected_harvest=expected_day - elapsed,
        biological_maturity=maturity,
        urgency=urgency,
        optimal_window_start=planting_date + timedelta(days=expected_day),
        optimal_window_end=planting_date + timedelta(days=expected_day + grace_days),
    )


def assessment_text(maturity: str) -> str:
    return _ASSESSMENTS.get(maturity, _ASSESSMENTS["not_ready"])


def harvest_recommendation(maturity: str) -> str:
    return "harvest_now" if maturity in ("ready", "overdue") else "wait"


def weather_considerations(weather: Optional[dict]) -> str:
    forecast = (weather or {}).get("forecast") or []
    if any((day.get("rainfallProbability") or 0) > RAIN_ALERT_PROBABILITY for day in forecast):
        return "Rain expected - plan harvest around dry days"
    return "Weather looks favorable for harvesting"


def selling_strategy(prices: PriceSummary) -> dict:
    if prices.trend == "rising":
        recommendation = "store_short"
        reasoning = "Prices are rising - consider short-term storage for better returns"
    else:
        recommendation = "sell_immediately"
        reasoning = "Current prices are favorable - sell soon after harvest"
    return {"recommendation": recommendation, "reasoning": reasoning, "price_analysis": prices.as_dict()}


def build_harvest_advisory(
    crop: str,
    window: HarvestWindow,
    weather: Optional[dict],
    prices: PriceSummary,
    observations: Optional[str] = None,
) -> dict:
    """Assemble the harvest advisory payload around a precomputed window."""
    maturity = window.biological_maturity
    return {
        "crop": crop,
        "window": window.as_dict(),
        "readiness": {
            "biological_maturity": maturity,
            "confidence": 0.85 if maturity == "ready" else 0.7,
            "expected_signs": list(crop_profile(crop).harvest_signs),
            "observed": observations or "Not provided - check maturity indicators",
            "assessment": assessment_text(maturity),
        },
        "timing": {
            "recommendation": harvest_recommendation(maturity),
            "urgency": window.urgency,
            "weather_considerations": weather_considerations(weather),
            "reasoning": (
                f"Based on {window.days_since_planting} days since planting "
                f"and typical {crop} harvest timeline."
            ),
        },
        "selling_strategy": selling_strategy(prices),
    }
