from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RatingTargetRead(BaseModel):
    queue_id: int
    photo_id: int
    photo_url: str
    target_user_id: int
    age_range: Optional[str] = Field(None, description="Возрастной диапазон, например 25-29")
    country: Optional[str] = None

    class Config:
        from_attributes = True


class RatingCreate(BaseModel):
    target_user_id: int
    photo_id: int
    score: float = Field(..., ge=1, le=10, description="Оценка по шкале 1–10")
    view_duration_ms: Optional[int] = Field(None, ge=0, description="Сколько фото было на экране")


class RatingRead(BaseModel):
    rating_id: int = Field(..., validation_alias="id")
    rated_id: int
    photo_id: int
    score: float
    rater_power: float
    created_at: datetime

    class Config:
        from_attributes = True


class QueueGenerated(BaseModel):
    inserted: int
