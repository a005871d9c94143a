from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints._envelope import envelope_response
from app.core.deps import CurrentUser, get_db, get_text_generator
from app.schemas.feedback import FeedbackRequest
from app.services.feedback import reconcile_feedback
from app.services.text_generation import TextGenerator

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("")
async def submit_feedback(
    data: FeedbackRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    text_generator: TextGenerator = Depends(get_text_generator),
):
    result = await reconcile_feedback(
        db,
        data.farm_id,
        data.feedback_type,
        data.response,
        text_generator=text_generator,
        owner_id=current_user,
    )
    return envelope_response(result)
