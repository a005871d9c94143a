from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import CurrentUser, get_db
from app.schemas.market import MarketPriceCreate, MarketPriceRead
from app.services.market import record_price

router = APIRouter(prefix="/market-prices", tags=["market"])


@router.post("", response_model=MarketPriceRead, status_code=status.HTTP_201_CREATED)
async def create_market_price(
    data: MarketPriceCreate, current_user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    return await record_price(db, data)
