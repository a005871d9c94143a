from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class MarketPriceCreate(BaseModel):
    crop_name: str
    state: str
    market_name: Optional[str] = None
    price: float = Field(gt=0)
    unit: str = "kg"
    price_date: date


class MarketPriceRead(MarketPriceCreate):
    id: int
    source: str

    model_config = {"from_attributes": True}
