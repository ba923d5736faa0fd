from typing import Optional, Literal
from datetime import datetime

from pydantic import BaseModel, Field

from schemas.photo import PhotoRead
from schemas.stats import StatsRead

Gender = Literal["male", "female", "other"]


class UserRead(BaseModel):
    user_id: int = Field(..., description="PK в базе данных")
    email: Optional[str] = None
    birth_year: Optional[int] = Field(None, description="Год рождения")
    gender: Optional[Gender] = None
    country: Optional[str] = None
    language: str
    is_onboarded: bool
    onboarding_step: int
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    birth_year: Optional[int] = Field(None, ge=1900, le=2100, description="Год рождения")
    gender: Optional[Gender] = None
    country: Optional[str] = Field(None, max_length=64, description="Страна")
    language: Optional[str] = Field(None, min_length=2, max_length=8, description="Язык интерфейса")
    onboarding_step: Optional[int] = Field(None, ge=0, description="Текущий шаг онбординга")
    is_onboarded: Optional[bool] = None


class ProfileRead(BaseModel):
    user: UserRead
    photo: Optional[PhotoRead] = None
    stats: Optional[StatsRead] = None
