from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints._envelope import envelope_response
from app.core.deps import CurrentUser, get_db, get_text_generator, get_weather_provider
from app.schemas.recommendation import DailyRecommendationRead, DailyRecommendationRequest
from app.services import daily_recommendations, farm_service
from app.services.text_generation import TextGenerator
from app.services.weather import WeatherProvider

router = APIRouter(tags=["recommendations"])


@router.post("/recommendations/daily")
async def generate_daily(
    data: DailyRecommendationRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    weather_provider: WeatherProvider = Depends(get_weather_provider),
    text_generator: TextGenerator = Depends(get_text_generator),
):
    result = await daily_recommendations.generate_daily_recommendation(
        db,
        data.farm_id,
        weather_provider=weather_provider,
        text_generator=text_generator,
        owner_id=current_user,
    )
    return envelope_response(result)


@router.get("/farms/{farm_id}/recommendations/today", response_model=DailyRecommendationRead)
async def get_today(farm_id: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    farm = await farm_service.get_farm(db, farm_id, current_user)
    if not farm:
        raise HTTPException(status_code=404, detail="Farm not found")

    rec = await daily_recommendations.get_daily_recommendation(
        db, farm_id, daily_recommendations.today_utc()
    )
    if not rec:
        raise HTTPException(status_code=404, detail="No recommendation generated for today")
    return await daily_recommendations.mark_recommendation_viewed(db, rec)
