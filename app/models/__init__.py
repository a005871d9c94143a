from app.models.farm import Farm
from app.models.recommendation import DailyRecommendation
from app.models.logs import FarmActivity, FarmFeedback, PipelineRun
from app.models.market import MarketPrice

__all__ = [
    "Farm",
    "DailyRecommendation",
    "FarmActivity",
    "FarmFeedback",
    "PipelineRun",
    "MarketPrice",
]
