from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.user import ProfileRead, UserRead, UserUpdate
from services.photos import get_active_photo
from services.stats import get_stats
from services.users import update_profile
from utils.user_helpers import to_photo_read, to_stats_read, to_user_read

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=ProfileRead,
    summary="Получить свой профиль: данные, активное фото и статистику",
)
async def read_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileRead:
    photo = await get_active_photo(db, current_user.id)
    stats = await get_stats(db, current_user.id)
    return ProfileRead(
        user=to_user_read(current_user),
        photo=to_photo_read(photo) if photo else None,
        stats=to_stats_read(stats) if stats else None,
    )


@router.patch(
    "/me",
    response_model=UserRead,
    summary="Обновить демографию и шаг онбординга",
)
async def update_my_profile(
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    changes = payload.model_dump(exclude_unset=True)
    user = await update_profile(db, current_user, changes)
    return to_user_read(user)
