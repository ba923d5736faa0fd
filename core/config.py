from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str

    # Подпись наших access-токенов
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Токены внешнего провайдера идентификации (HS256, sub = id пользователя)
    IDENTITY_JWT_SECRET: str
    IDENTITY_JWT_AUDIENCE: str = "authenticated"

    AWS_ACCESS_KEY_ID: str
    AWS_SECRET_ACCESS_KEY: str
    AWS_S3_BUCKET_NAME: str
    AWS_S3_ENDPOINT_URL: str
    AWS_S3_REGION: str
    AWS_S3_SECURE: bool = False

    ADMIN_PASSWORD: Optional[str] = None

    # MVP: фото одобряются сразу после загрузки
    AUTO_APPROVE_PHOTOS: bool = True
    MAX_PHOTO_BYTES: int = 10 * 1024 * 1024

    QUEUE_BATCH_SIZE: int = 10
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def s3_base_url(self) -> str:
        return self.AWS_S3_ENDPOINT_URL.rstrip("/") + "/" + self.AWS_S3_BUCKET_NAME


# Глобальный объект настроек, импортируется везде
settings = Settings()
