import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.errors import ConflictError, NoCandidatesError, ValidationFailedError, retry_transient
from models.photo import Photo, PhotoStatus
from models.user import User
from utils.image_tools import compress_image_bytes
from utils.s3 import build_photo_key, delete_file_from_s3, upload_bytes_to_s3

logger = logging.getLogger(__name__)


async def get_active_photo(db: AsyncSession, user_id: int) -> Optional[Photo]:
    result = await db.execute(
        select(Photo)
        .where(Photo.user_id == user_id, Photo.is_active.is_(True))
        .limit(1)
    )
    return result.scalars().first()


async def upload_photo(db: AsyncSession, user: User, data: bytes) -> Photo:
    """
    Сжимает фото, кладёт его в S3 и делает единственным активным фото
    пользователя. Деактивация старых фото и вставка нового идут в одной
    транзакции, так что активное фото всегда одно.
    """
    if not data:
        raise ValidationFailedError("Пустой файл")
    if len(data) > settings.MAX_PHOTO_BYTES:
        max_mb = settings.MAX_PHOTO_BYTES // (1024 * 1024)
        raise ValidationFailedError(f"Файл слишком большой. Максимум {max_mb} MB")

    try:
        compressed, ext = await run_in_threadpool(compress_image_bytes, data)
    except ValueError as exc:
        raise ValidationFailedError(str(exc))

    s3_key = build_photo_key(user.id, ext)
    await retry_transient(
        run_in_threadpool, upload_bytes_to_s3, compressed, s3_key, f"image/{ext}"
    )

    status = PhotoStatus.approved if settings.AUTO_APPROVE_PHOTOS else PhotoStatus.pending
    await db.execute(
        update(Photo)
        .where(Photo.user_id == user.id, Photo.is_active.is_(True))
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    photo = Photo(user_id=user.id, s3_key=s3_key, status=status, is_active=True)
    db.add(photo)
    user.is_onboarded = True
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # Параллельная загрузка успела первой, файл больше не нужен
        await run_in_threadpool(delete_file_from_s3, s3_key)
        raise ConflictError("Фото уже загружается")

    await db.refresh(photo)
    logger.info("User %s uploaded photo %s (%s)", user.id, photo.id, status.value)
    return photo


async def moderate_photo(
    db: AsyncSession,
    photo_id: int,
    status: PhotoStatus,
    reason: Optional[str] = None,
) -> Photo:
    photo = await db.get(Photo, photo_id)
    if photo is None:
        raise NoCandidatesError("Photo not found")
    if status == PhotoStatus.pending:
        raise ValidationFailedError("Модерация ставит только approved или rejected")

    photo.status = status
    photo.rejection_reason = reason if status == PhotoStatus.rejected else None
    await db.commit()
    await db.refresh(photo)
    return photo
