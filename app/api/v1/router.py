from fastapi import APIRouter

from app.api.v1.endpoints import farms, feedback, market, recommendations

api_router = APIRouter()

api_router.include_router(farms.router)
api_router.include_router(recommendations.router)
api_router.include_router(feedback.router)
api_router.include_router(market.router)
