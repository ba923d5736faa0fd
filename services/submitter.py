import logging
import math
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, ValidationFailedError
from models.photo import Photo, PhotoStatus
from models.rating import Rating
from models.rating_queue import RatingQueue, QueueState, OPEN_STATES
from services.stats import get_rating_power, increment_ratings_given, recalculate_user_rating

logger = logging.getLogger(__name__)

MIN_SCORE = 1.0
MAX_SCORE = 10.0


def validate_score(score: float) -> float:
    if score is None or not math.isfinite(score) or not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationFailedError(f"Оценка должна быть от {MIN_SCORE:g} до {MAX_SCORE:g}")
    return float(score)


async def submit_rating(
    db: AsyncSession,
    *,
    rater_id: int,
    target_user_id: int,
    photo_id: int,
    score: float,
    view_duration_ms: Optional[int] = None,
) -> Rating:
    """
    Сохраняет оценку и в той же транзакции закрывает строку очереди,
    увеличивает счётчик оценщика и пересчитывает статистику цели.

    Вес голоса фиксируется на момент оценки. Повторная оценка того же
    фото тем же оценщиком — ConflictError, без частичных записей.
    """
    score = validate_score(score)
    if rater_id == target_user_id:
        raise ValidationFailedError("Нельзя оценивать себя")
    if view_duration_ms is not None and view_duration_ms < 0:
        raise ValidationFailedError("Длительность просмотра не может быть отрицательной")

    photo = await db.get(Photo, photo_id, populate_existing=True)
    if photo is None or photo.user_id != target_user_id:
        raise ValidationFailedError("Фото не принадлежит этому пользователю")
    if photo.status != PhotoStatus.approved:
        raise ValidationFailedError("Фото не прошло модерацию")
    if not photo.is_active:
        # Пользователь заменил фото, пока его смотрели
        raise ConflictError("Фото больше не активно")

    rater_power = await get_rating_power(db, rater_id)

    rating = Rating(
        rater_id=rater_id,
        rated_id=target_user_id,
        photo_id=photo_id,
        score=score,
        rater_power=rater_power,
        view_duration_ms=view_duration_ms,
        is_counted=True,
    )
    db.add(rating)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Это фото уже оценено")

    await db.execute(
        update(RatingQueue)
        .where(
            RatingQueue.rater_user_id == rater_id,
            RatingQueue.photo_id == photo_id,
            RatingQueue.state.in_(OPEN_STATES),
        )
        .values(state=QueueState.rated)
        .execution_options(synchronize_session=False)
    )
    await increment_ratings_given(db, rater_id)
    await recalculate_user_rating(db, target_user_id)

    await db.commit()
    await db.refresh(rating)
    logger.info(
        "Rating %s: %s → %s score=%.2f power=%.2f",
        rating.id, rater_id, target_user_id, score, rater_power,
    )
    return rating
