# routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import create_access_token, verify_identity_token
from schemas.auth import IdentityTokenSchema, TokenResponse
from services.photos import get_active_photo
from services.users import get_or_create_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/",
    response_model=TokenResponse,
    summary="Вход по токену провайдера идентификации → выдаёт JWT",
)
async def login(
    payload: IdentityTokenSchema,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    claims = verify_identity_token(payload.access_token)
    user = await get_or_create_user(db, external_id=str(claims["sub"]), email=claims.get("email"))

    access_token, expires = create_access_token(user.id)
    photo = await get_active_photo(db, user.id)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        next_step="rate" if photo else "upload",
        is_onboarded=user.is_onboarded,
        expires_in_ms=int(expires.timestamp() * 1000),
    )
