from typing import Literal, Optional

from pydantic import BaseModel, Field


class StatsRead(BaseModel):
    # Индекс и процентиль раскрываются только после порога оценок
    current_rating: Optional[float] = Field(None, description="Индекс восприятия")
    percentile: Optional[float] = Field(None, description="Доля пользователей с индексом не выше, %")
    change_7d: Optional[float] = Field(None, description="Изменение индекса за 7 дней")
    change_30d: Optional[float] = Field(None, description="Изменение индекса за 30 дней")
    is_rating_visible: bool
    ratings_received_count: int
    ratings_given_count: int
    ratings_required: int = Field(..., description="Сколько оценок нужно для раскрытия индекса")
    rating_power: float
    confidence: Literal["early", "emerging", "stable"]


class SnapshotRequest(BaseModel):
    password: str
    horizon: Literal["7d", "30d"]


class SnapshotResponse(BaseModel):
    horizon: str
    updated: int
    percentiles_refreshed: int
