import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, NoCandidatesError
from models.photo import Photo, PhotoStatus
from models.rating_queue import RatingQueue, QueueState, OPEN_STATES
from models.user import User
from services.queue import generate_queue
from utils.demographics import get_age_range
from utils.s3 import build_photo_url

logger = logging.getLogger(__name__)


@dataclass
class RatingTarget:
    queue_id: int
    photo_id: int
    photo_url: str
    target_user_id: int
    age_range: Optional[str]
    country: Optional[str]


async def select_next(db: AsyncSession, rater_id: int) -> RatingTarget:
    """
    Следующая цель для оценки.

    Сначала возвращается уже показанная, но не оценённая строка (оценка
    могла не дойти), потом pending-строка с наибольшим приоритетом.
    Если очередь пуста, она один раз генерируется заново.
    """
    target = await _take_from_queue(db, rater_id)
    if target is None:
        await generate_queue(db, rater_id)
        target = await _take_from_queue(db, rater_id)
    if target is None:
        raise NoCandidatesError("Некого оценивать, загляните позже")
    return target


async def skip_target(db: AsyncSession, rater_id: int, queue_id: int) -> None:
    """pending|shown → skipped. Пропущенное фото больше не предлагается."""
    row = await db.get(RatingQueue, queue_id)
    if row is None or row.rater_user_id != rater_id:
        raise NoCandidatesError("Элемент очереди не найден")

    result = await db.execute(
        update(RatingQueue)
        .where(RatingQueue.id == queue_id, RatingQueue.state.in_(OPEN_STATES))
        .values(state=QueueState.skipped)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.refresh(row)
        if row.state == QueueState.skipped:
            return
        raise ConflictError("Это фото уже оценено")

    await db.commit()


async def _take_from_queue(db: AsyncSession, rater_id: int) -> Optional[RatingTarget]:
    while True:
        row = await _next_row(db, rater_id, QueueState.shown)
        if row is None:
            row = await _next_row(db, rater_id, QueueState.pending)
        if row is None:
            return None

        target = await _assemble(db, row)
        if target is None:
            # Фото заменено или снято с модерации
            logger.info("Dropping stale queue row %s", row.id)
            await db.delete(row)
            await db.commit()
            continue

        if row.state == QueueState.shown or await _claim(db, row.id):
            await db.commit()
            return target
        # Строку успел забрать параллельный запрос, берём следующую


async def _next_row(db: AsyncSession, rater_id: int, state: QueueState) -> Optional[RatingQueue]:
    stmt = (
        select(RatingQueue)
        .where(
            RatingQueue.rater_user_id == rater_id,
            RatingQueue.state == state,
        )
        .order_by(
            RatingQueue.priority.desc(),
            RatingQueue.created_at.asc(),
            RatingQueue.id.asc(),
        )
        .limit(1)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def _assemble(db: AsyncSession, row: RatingQueue) -> Optional[RatingTarget]:
    photo = await db.get(Photo, row.photo_id)
    if photo is None or not photo.is_active or photo.status != PhotoStatus.approved:
        return None
    target_user = await db.get(User, row.target_user_id)
    if target_user is None:
        return None
    return RatingTarget(
        queue_id=row.id,
        photo_id=photo.id,
        photo_url=build_photo_url(photo.s3_key),
        target_user_id=target_user.id,
        age_range=get_age_range(target_user.birth_year),
        country=target_user.country,
    )


async def _claim(db: AsyncSession, queue_id: int) -> bool:
    """compare-and-swap pending → shown; False, если строку уже забрали."""
    result = await db.execute(
        update(RatingQueue)
        .where(RatingQueue.id == queue_id, RatingQueue.state == QueueState.pending)
        .values(state=QueueState.shown)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
