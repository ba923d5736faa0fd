import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from schemas.photo import PhotoModerate, PhotoRead
from schemas.stats import SnapshotRequest, SnapshotResponse
from services.photos import moderate_photo
from services.stats import refresh_percentiles, snapshot_ratings
from utils.user_helpers import to_photo_read

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("uvicorn.error")


def _check_password(password: str, action: str) -> None:
    if not settings.ADMIN_PASSWORD:
        logger.warning("Попытка %s при не настроенном ADMIN_PASSWORD", action)
        raise HTTPException(status_code=503, detail="Пароль для админ-операций не настроен")

    if password != settings.ADMIN_PASSWORD:
        raise HTTPException(status_code=403, detail="Неверный пароль")


@router.post(
    "/snapshot",
    response_model=SnapshotResponse,
    summary="Записать снимок индекса (7d/30d) и пересчитать процентили",
)
async def trigger_snapshot(
    payload: SnapshotRequest,
    db: AsyncSession = Depends(get_db),
) -> SnapshotResponse:
    _check_password(payload.password, "снимка индекса")

    updated = await snapshot_ratings(db, payload.horizon)
    refreshed = await refresh_percentiles(db)
    logger.info("Снимок %s: %s строк, процентили: %s", payload.horizon, updated, refreshed)
    return SnapshotResponse(horizon=payload.horizon, updated=updated, percentiles_refreshed=refreshed)


@router.post(
    "/photos/{photo_id}/moderate",
    response_model=PhotoRead,
    summary="Одобрить или отклонить фото",
)
async def moderate(
    photo_id: int,
    payload: PhotoModerate,
    db: AsyncSession = Depends(get_db),
) -> PhotoRead:
    _check_password(payload.password, "модерации")

    photo = await moderate_photo(db, photo_id, payload.status, payload.reason)
    return to_photo_read(photo)
