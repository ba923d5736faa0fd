import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from models.photo import Photo, PhotoStatus
from models.rating import Rating
from models.rating_queue import OPEN_STATES, RatingQueue, QueueState

logger = logging.getLogger(__name__)


def candidate_photos_stmt(rater_id: int, limit: int):
    """
    Активные одобренные фото других пользователей, которые оценщик ещё
    не оценивал и которых нет в его очереди (в любом состоянии).
    """
    rated_photos = select(Rating.photo_id).where(Rating.rater_id == rater_id)
    queued_photos = select(RatingQueue.photo_id).where(RatingQueue.rater_user_id == rater_id)
    return (
        select(Photo.id, Photo.user_id)
        .where(
            Photo.is_active.is_(True),
            Photo.status == PhotoStatus.approved,
            Photo.user_id != rater_id,
            Photo.id.not_in(rated_photos),
            Photo.id.not_in(queued_photos),
        )
        .order_by(Photo.created_at.asc(), Photo.id.asc())
        .limit(limit)
    )


async def generate_queue(
    db: AsyncSession,
    rater_id: int,
    limit: Optional[int] = None,
) -> int:
    """
    Добавляет в очередь оценщика до limit кандидатов с убывающим
    приоритетом (limit, limit-1, ...). Если в очереди остались открытые
    строки, партия нумеруется ниже самой младшей из них, чтобы порядок
    выдачи совпадал с порядком генерации. Возвращает число новых строк.

    Повторный вызов не создаёт дублей: уже поставленные в очередь фото
    отсекаются запросом, а гонку двух генераторов ловит уникальный
    индекс (rater_user_id, photo_id).
    """
    if limit is None:
        limit = settings.QUEUE_BATCH_SIZE
    rows = (await db.execute(candidate_photos_stmt(rater_id, limit))).all()
    if not rows:
        return 0

    # Новая партия встаёт за ещё не показанными строками
    lowest_open = await db.scalar(
        select(func.min(RatingQueue.priority)).where(
            RatingQueue.rater_user_id == rater_id,
            RatingQueue.state.in_(OPEN_STATES),
        )
    )
    top = limit if lowest_open is None else min(limit, lowest_open - 1)

    db.add_all([
        RatingQueue(
            rater_user_id=rater_id,
            target_user_id=row.user_id,
            photo_id=row.id,
            priority=top - index,
            state=QueueState.pending,
        )
        for index, row in enumerate(rows)
    ])
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Queue for rater %s is being generated concurrently, skipping", rater_id)
        return 0

    logger.info("Generated %s queue rows for rater %s", len(rows), rater_id)
    return len(rows)
