from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.photo import PhotoStatus


class PhotoRead(BaseModel):
    photo_id: int = Field(..., description="PK в базе данных")
    user_id: int = Field(..., description="ID владельца")
    url: str = Field(..., description="Публичный URL изображения")
    status: PhotoStatus = Field(..., description="Статус модерации")
    rejection_reason: Optional[str] = Field(None, description="Причина отклонения")
    is_active: bool
    created_at: datetime = Field(..., description="Дата и время загрузки")

    class Config:
        from_attributes = True


class PhotoModerate(BaseModel):
    password: str
    status: PhotoStatus
    reason: Optional[str] = Field(None, max_length=255)
