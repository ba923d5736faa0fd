from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_user
from models.user import User
from schemas.stats import StatsRead
from services.stats import ensure_stats
from utils.user_helpers import to_stats_read

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get(
    "/me",
    response_model=StatsRead,
    summary="Мой индекс восприятия",
)
async def read_my_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StatsRead:
    stats = await ensure_stats(db, current_user.id)
    await db.commit()
    return to_stats_read(stats)
