# core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.errors import NotAuthenticatedError
from models.user import User

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth", auto_error=False)


def create_access_token(user_id: int, now: Optional[datetime] = None) -> tuple[str, datetime]:
    """Выпускает наш JWT для пользователя. Возвращает (token, expires)."""
    now = now or datetime.now(timezone.utc)
    expires = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = jwt.encode(
        {"user_id": user_id, "exp": expires},
        settings.SECRET_KEY,
        algorithm=ALGORITHM,
    )
    return token, expires


def verify_identity_token(token: str) -> dict:
    """
    Проверяет токен внешнего провайдера идентификации и возвращает его claims.

    Провайдер подписывает токены HS256 общим секретом; id принципала лежит
    в "sub", аудитория должна совпадать с IDENTITY_JWT_AUDIENCE.
    Бросает NotAuthenticatedError, если подпись, срок или аудитория неверны.
    """
    try:
        claims = jwt.decode(
            token,
            settings.IDENTITY_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=settings.IDENTITY_JWT_AUDIENCE,
        )
    except JWTError:
        raise NotAuthenticatedError("Invalid identity token")

    if not claims.get("sub"):
        raise NotAuthenticatedError("Identity token has no subject")
    return claims


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not token:
        raise NotAuthenticatedError("Not authenticated")

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("user_id")
        if user_id is None:
            raise NotAuthenticatedError()
    except JWTError:
        raise NotAuthenticatedError()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotAuthenticatedError("User not found")
    return user
