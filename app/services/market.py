"""
Market price trend summary used by the harvest advisory.

Prices are passed newest first. An empty series yields zeros and "stable".
"""
from dataclasses import asdict, dataclass
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.market import MarketPrice

TREND_WINDOW = 7
TREND_THRESHOLD_PCT = 5.0
HISTORY_LIMIT = 30


@dataclass(frozen=True)
class PriceSummary:
    current_price: float
    average_price: float
    percent_change: float
    trend: str  # "rising", "falling", "stable"

    @property
    def percent_from_average(self) -> float:
        if not self.average_price:
            return 0.0
        return (self.current_price - self.average_price) / self.average_price * 100

    def as_dict(self) -> dict:
        data = asdict(self)
        data["percent_from_average"] = round(self.percent_from_average, 1)
        return data


def summarize_prices(prices: Sequence[float]) -> PriceSummary:
    if not prices:
        return PriceSummary(current_price=0.0, average_price=0.0, percent_change=0.0, trend="stable")

    current = float(prices[0])
    average = sum(prices) / len(prices)
    change = 0.0
    trend = "stable"

    if len(prices) >= TREND_WINDOW:
        recent_avg = sum(prices[:TREND_WINDOW]) / TREND_WINDOW
        older_avg = sum(prices[-TREND_WINDOW:]) / TREND_WINDOW
        if older_avg:
            change = (recent_avg - older_avg) / older_avg * 100
        if change > TREND_THRESHOLD_PCT:
            trend = "rising"
        elif change < -TREND_THRESHOLD_PCT:
            trend = "falling"

    return PriceSummary(
        current_price=current,
        average_price=average,
        percent_change=round(change, 1),
        trend=trend,
    )


async def get_recent_prices(db: AsyncSession, crop: str, state: str | None) -> list[float]:
    q = select(MarketPrice.price).where(func.lower(MarketPrice.crop_name) == crop.strip().lower())
    if state:
        q = q.where(MarketPrice.state == state)
    q = q.order_by(MarketPrice.price_date.desc(), MarketPrice.id.desc()).limit(HISTORY_LIMIT)
    result = await db.execute(q)
    return [float(p) for p in result.scalars().all()]


async def record_price(db: AsyncSession, data, source: str = "user") -> MarketPrice:
    price = MarketPrice(**data.model_dump(), source=source)
    db.add(price)
    await db.commit()
    await db.refresh(price)
    return price
