import os
import uuid
from io import BytesIO

# Настройки читаются при импорте core.config, поэтому окружение задаём до импортов
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["IDENTITY_JWT_SECRET"] = "identity-secret"
os.environ["AWS_ACCESS_KEY_ID"] = "test"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test"
os.environ["AWS_S3_BUCKET_NAME"] = "photos"
os.environ["AWS_S3_ENDPOINT_URL"] = "http://localhost:9000"
os.environ["AWS_S3_REGION"] = "us-east-1"
os.environ["ADMIN_PASSWORD"] = "admin-pass"

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from models.base import Base
from models.photo import Photo, PhotoStatus
from models.rating import Rating
from models.rating_queue import RatingQueue
from models.rating_stats import RatingStats
from models.user import User


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_s3(monkeypatch):
    """Подменяет S3: складывает объекты в словарь."""
    stored: dict[str, bytes] = {}

    def _upload(data, s3_key, content_type):
        stored[s3_key] = data
        return s3_key

    def _delete(s3_key):
        stored.pop(s3_key, None)

    monkeypatch.setattr("services.photos.upload_bytes_to_s3", _upload)
    monkeypatch.setattr("services.photos.delete_file_from_s3", _delete)
    return stored


@pytest.fixture
def make_image():
    def _make(fmt: str = "PNG", size=(64, 48), mode: str = "RGBA") -> bytes:
        buf = BytesIO()
        Image.new(mode, size, color=(200, 120, 80, 255)[: len(mode)]).save(buf, fmt)
        return buf.getvalue()
    return _make


@pytest.fixture
def make_user(db):
    async def _make(**fields) -> int:
        fields.setdefault("external_id", uuid.uuid4().hex)
        user = User(**fields)
        db.add(user)
        await db.commit()
        return user.id
    return _make


@pytest.fixture
def make_photo(db):
    async def _make(user_id: int, status: PhotoStatus = PhotoStatus.approved, is_active: bool = True) -> int:
        photo = Photo(
            user_id=user_id,
            s3_key=f"photos/{user_id}/{uuid.uuid4().hex}.jpg",
            status=status,
            is_active=is_active,
        )
        db.add(photo)
        await db.commit()
        return photo.id
    return _make


@pytest.fixture
def add_rating(db):
    async def _add(rater_id: int, rated_id: int, photo_id: int, score: float, power: float = 1.0) -> None:
        db.add(Rating(
            rater_id=rater_id,
            rated_id=rated_id,
            photo_id=photo_id,
            score=score,
            rater_power=power,
        ))
        await db.commit()
    return _add


async def fetch_queue(db: AsyncSession, rater_id: int) -> list[RatingQueue]:
    result = await db.execute(
        select(RatingQueue)
        .where(RatingQueue.rater_user_id == rater_id)
        .order_by(RatingQueue.priority.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def fetch_stats(db: AsyncSession, user_id: int) -> RatingStats | None:
    result = await db.execute(
        select(RatingStats)
        .where(RatingStats.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
