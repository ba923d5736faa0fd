import uuid
from io import BytesIO

from minio import Minio
from minio.error import S3Error

from core.config import settings
from core.errors import TransientError

# ==== Клиент MinIO / S3 ====
_endpoint = settings.AWS_S3_ENDPOINT_URL.replace("https://", "").replace("http://", "")
_s3 = Minio(
    _endpoint,
    access_key=settings.AWS_ACCESS_KEY_ID,
    secret_key=settings.AWS_SECRET_ACCESS_KEY,
    region=settings.AWS_S3_REGION,
    secure=settings.AWS_S3_SECURE,
)


def build_photo_key(user_id: int, ext: str) -> str:
    return f"photos/{user_id}/{uuid.uuid4().hex}.{ext}"


def upload_bytes_to_s3(data: bytes, s3_key: str, content_type: str) -> str:
    """
    Кладёт готовые байты в бакет и возвращает ключ.
    Ошибки S3 превращаются в TransientError, чтобы их можно было повторить.
    """
    try:
        _s3.put_object(
            settings.AWS_S3_BUCKET_NAME,
            s3_key,
            BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
    except S3Error as e:
        raise TransientError(f"Ошибка при загрузке в S3: {e}")
    return s3_key


def delete_file_from_s3(s3_key: str) -> None:
    try:
        _s3.remove_object(settings.AWS_S3_BUCKET_NAME, s3_key)
    except S3Error as e:
        raise TransientError(f"Ошибка при удалении из S3: {e}")


def build_photo_url(s3_key: str) -> str:
    """Публичный URL объекта в бакете."""
    return f"{settings.s3_base_url}/{s3_key}"
