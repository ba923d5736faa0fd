import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError
from models.user import User
from services.stats import ensure_stats

logger = logging.getLogger(__name__)


async def get_or_create_user(db: AsyncSession, external_id: str, email: str | None = None) -> User:
    """
    Пользователь по id принципала провайдера. При первом входе создаются
    User и пустая строка статистики.
    """
    result = await db.execute(select(User).where(User.external_id == external_id))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(external_id=external_id, email=email, language="ru", is_onboarded=False)
    db.add(user)
    try:
        await db.flush()
        await ensure_stats(db, user.id)
        await db.commit()
    except IntegrityError:
        # Первый вход из двух вкладок сразу
        await db.rollback()
        result = await db.execute(select(User).where(User.external_id == external_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise ConflictError("Не удалось создать пользователя")
        return user

    await db.refresh(user)
    logger.info("Created user %s for principal %s", user.id, external_id)
    return user


async def update_profile(db: AsyncSession, user: User, changes: dict) -> User:
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user
