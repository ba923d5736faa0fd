from pydantic import BaseModel, Field
from typing import Literal


class IdentityTokenSchema(BaseModel):
    """
    Токен, выданный внешним провайдером идентификации после входа.
    """
    access_token: str = Field(..., description="JWT провайдера идентификации")


class TokenResponse(BaseModel):
    """
    Ответ при успешном логине. next_step подсказывает клиенту, куда вести
    пользователя: без активного фото — на загрузку, иначе — к оценке.
    """
    access_token: str
    token_type: Literal["bearer"]
    next_step: Literal["upload", "rate"]
    is_onboarded: bool
    expires_in_ms: int
