from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.rating import QueueGenerated, RatingCreate, RatingRead, RatingTargetRead
from services.queue import generate_queue
from services.selector import select_next, skip_target
from services.submitter import submit_rating

router = APIRouter(prefix="/rate", tags=["rate"])


@router.get(
    "/next",
    response_model=RatingTargetRead,
    summary="Следующее фото для оценки",
)
async def get_next_target(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingTargetRead:
    target = await select_next(db, current_user.id)
    return RatingTargetRead.model_validate(target)


@router.post(
    "/",
    response_model=RatingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Поставить оценку",
)
async def rate_photo(
    payload: RatingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingRead:
    rating = await submit_rating(
        db,
        rater_id=current_user.id,
        target_user_id=payload.target_user_id,
        photo_id=payload.photo_id,
        score=payload.score,
        view_duration_ms=payload.view_duration_ms,
    )
    return RatingRead.model_validate(rating)


@router.post(
    "/{queue_id}/skip",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Пропустить фото",
)
async def skip_photo(
    queue_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await skip_target(db, current_user.id, queue_id)
    return


@router.post(
    "/queue",
    response_model=QueueGenerated,
    summary="Пополнить очередь оценки",
)
async def refill_queue(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> QueueGenerated:
    inserted = await generate_queue(db, current_user.id)
    return QueueGenerated(inserted=inserted)
