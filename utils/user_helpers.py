"""Утилиты для преобразования моделей в схемы Pydantic."""
from typing import Optional

from models.photo import Photo
from models.rating_stats import RatingStats
from models.user import User
from schemas.photo import PhotoRead
from schemas.stats import StatsRead
from schemas.user import UserRead
from services.stats import MIN_RATINGS_FOR_VISIBILITY, confidence_level
from utils.s3 import build_photo_url


def to_user_read(user: User) -> UserRead:
    return UserRead(
        user_id=user.id,
        email=user.email,
        birth_year=user.birth_year,
        gender=user.gender,
        country=user.country,
        language=user.language,
        is_onboarded=user.is_onboarded,
        onboarding_step=user.onboarding_step,
        created_at=user.created_at,
    )


def to_photo_read(photo: Photo) -> PhotoRead:
    return PhotoRead(
        photo_id=photo.id,
        user_id=photo.user_id,
        url=build_photo_url(photo.s3_key),
        status=photo.status,
        rejection_reason=photo.rejection_reason,
        is_active=photo.is_active,
        created_at=photo.created_at,
    )


def _change(current: Optional[float], past: Optional[float]) -> Optional[float]:
    if current is None or past is None:
        return None
    return round(current - past, 2)


def to_stats_read(stats: RatingStats) -> StatsRead:
    """
    Пока оценок меньше порога, индекс, процентиль и динамика скрыты:
    клиент видит только прогресс до раскрытия.
    """
    visible = stats.is_rating_visible
    return StatsRead(
        current_rating=stats.current_rating if visible else None,
        percentile=stats.percentile if visible else None,
        change_7d=_change(stats.current_rating, stats.rating_7d_ago) if visible else None,
        change_30d=_change(stats.current_rating, stats.rating_30d_ago) if visible else None,
        is_rating_visible=visible,
        ratings_received_count=stats.ratings_received_count,
        ratings_given_count=stats.ratings_given_count,
        ratings_required=MIN_RATINGS_FOR_VISIBILITY,
        rating_power=stats.rating_power,
        confidence=confidence_level(stats.ratings_received_count).level,
    )
