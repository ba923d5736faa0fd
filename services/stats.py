"""
Агрегация оценок: индекс восприятия, процентиль, снимки истории.

Индекс пользователя — взвешенное по весу голоса среднее всех засчитанных
оценок, которые он получил:

    current_rating = Σ(score · rater_power) / Σ(rater_power)

Индекс раскрывается только после MIN_RATINGS_FOR_VISIBILITY оценок.
"""
import bisect
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ValidationFailedError
from models.rating import Rating
from models.rating_stats import RatingStats

logger = logging.getLogger(__name__)

MIN_RATINGS_FOR_VISIBILITY = 15
DEFAULT_RATING_POWER = 1.0

SNAPSHOT_COLUMNS = {
    "7d": RatingStats.rating_7d_ago,
    "30d": RatingStats.rating_30d_ago,
}


@dataclass(frozen=True)
class ConfidenceInfo:
    level: str
    min_reactions: int


def confidence_level(reactions_count: int) -> ConfidenceInfo:
    if reactions_count < MIN_RATINGS_FOR_VISIBILITY:
        return ConfidenceInfo(level="early", min_reactions=MIN_RATINGS_FOR_VISIBILITY)
    if reactions_count < 70:
        return ConfidenceInfo(level="emerging", min_reactions=70)
    return ConfidenceInfo(level="stable", min_reactions=150)


def weighted_mean(pairs: Iterable[tuple[float, float]]) -> Optional[float]:
    """(score, power) → Σ(score·power)/Σ(power); None, если весов нет."""
    total = 0.0
    weight = 0.0
    for score, power in pairs:
        total += score * power
        weight += power
    if weight <= 0:
        return None
    return total / weight


def is_visible(ratings_received_count: int) -> bool:
    return ratings_received_count >= MIN_RATINGS_FOR_VISIBILITY


def percentile_of(value: float, sorted_values: list[float]) -> Optional[float]:
    """Доля значений не выше value, в процентах."""
    if not sorted_values:
        return None
    at_or_below = bisect.bisect_right(sorted_values, value)
    return round(100.0 * at_or_below / len(sorted_values), 2)


async def get_stats(db: AsyncSession, user_id: int) -> Optional[RatingStats]:
    result = await db.execute(
        select(RatingStats)
        .where(RatingStats.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def ensure_stats(db: AsyncSession, user_id: int) -> RatingStats:
    """Строка статистики пользователя; создаётся при первом обращении."""
    stats = await get_stats(db, user_id)
    if stats is None:
        stats = RatingStats(
            user_id=user_id,
            rating_power=DEFAULT_RATING_POWER,
            ratings_received_count=0,
            ratings_given_count=0,
            is_rating_visible=False,
        )
        db.add(stats)
        await db.flush()
    return stats


async def get_rating_power(db: AsyncSession, user_id: int) -> float:
    result = await db.execute(
        select(RatingStats.rating_power).where(RatingStats.user_id == user_id)
    )
    power = result.scalar_one_or_none()
    return power if power is not None else DEFAULT_RATING_POWER


async def increment_ratings_given(db: AsyncSession, user_id: int) -> None:
    """Атомарно увеличивает счётчик поставленных оценок."""
    result = await db.execute(
        update(RatingStats)
        .where(RatingStats.user_id == user_id)
        .values(ratings_given_count=RatingStats.ratings_given_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.add(RatingStats(user_id=user_id, ratings_given_count=1))
        await db.flush()


async def recalculate_user_rating(db: AsyncSession, user_id: int) -> RatingStats:
    """
    Пересчитывает индекс, счётчик полученных оценок, видимость и процентиль.
    Повторный вызов без новых оценок даёт тот же результат.
    Не коммитит: вызывающий код решает, где граница транзакции.
    """
    pairs = (await db.execute(
        select(Rating.score, Rating.rater_power).where(
            Rating.rated_id == user_id,
            Rating.is_counted.is_(True),
        )
    )).all()
    count = len(pairs)

    stats = await ensure_stats(db, user_id)
    stats.current_rating = weighted_mean(pairs)
    stats.ratings_received_count = count
    stats.is_rating_visible = is_visible(count)
    await db.flush()

    if stats.is_rating_visible and stats.current_rating is not None:
        stats.percentile = await _visible_percentile(db, stats.current_rating)
    else:
        stats.percentile = None
    await db.flush()

    logger.debug(
        "Recalculated rating for user %s: %s (%s ratings)",
        user_id, stats.current_rating, count,
    )
    return stats


async def _visible_percentile(db: AsyncSession, rating: float) -> Optional[float]:
    visible = (
        RatingStats.is_rating_visible.is_(True),
        RatingStats.current_rating.is_not(None),
    )
    total = (await db.execute(
        select(func.count(RatingStats.id)).where(*visible)
    )).scalar_one()
    if not total:
        return None
    at_or_below = (await db.execute(
        select(func.count(RatingStats.id)).where(*visible, RatingStats.current_rating <= rating)
    )).scalar_one()
    return round(100.0 * at_or_below / total, 2)


async def refresh_percentiles(db: AsyncSession) -> int:
    """Пересчитывает процентиль всем видимым пользователям. Возвращает их число."""
    rows = list((await db.execute(
        select(RatingStats).where(
            RatingStats.is_rating_visible.is_(True),
            RatingStats.current_rating.is_not(None),
        ).execution_options(populate_existing=True)
    )).scalars().all())

    values = sorted(stats.current_rating for stats in rows)
    for stats in rows:
        stats.percentile = percentile_of(stats.current_rating, values)
    await db.commit()
    return len(rows)


async def snapshot_ratings(db: AsyncSession, horizon: str) -> int:
    """
    Переписывает снимок истории (rating_7d_ago или rating_30d_ago)
    текущим индексом у всех пользователей. Хранится одна точка на горизонт.
    """
    column = SNAPSHOT_COLUMNS.get(horizon)
    if column is None:
        raise ValidationFailedError(f"Неизвестный горизонт снимка: {horizon}")

    result = await db.execute(
        update(RatingStats)
        .values({column.key: RatingStats.current_rating})
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Snapshot %s written for %s users", horizon, result.rowcount)
    return result.rowcount
