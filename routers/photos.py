from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.photo import PhotoRead
from services.photos import get_active_photo, upload_photo
from utils.user_helpers import to_photo_read

router = APIRouter(prefix="/photos", tags=["photos"])


@router.post(
    "/",
    response_model=PhotoRead,
    status_code=status.HTTP_201_CREATED,
    summary="Загрузить фото (заменяет текущее активное)",
)
async def upload_my_photo(
    photo: UploadFile = File(..., description="Одно лицо, без фильтров"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    data = await photo.read()
    new_photo = await upload_photo(db, current_user, data)
    return to_photo_read(new_photo)


@router.get(
    "/me",
    response_model=Optional[PhotoRead],
    summary="Моё активное фото",
)
async def read_my_photo(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Optional[PhotoRead]:
    photo = await get_active_photo(db, current_user.id)
    return to_photo_read(photo) if photo else None
