"""
Доменные ошибки Ratery.

Каждый вид ошибки знает свой HTTP-статус и можно ли повторить запрос:
- not_authenticated: нужен вход, без повтора;
- no_candidates: некого оценивать, клиент показывает пустое состояние;
- transient: сбой хранилища или таймаут, повтор с ограниченным backoff;
- conflict: гонка за строку очереди или повторная оценка, клиент
  перезапрашивает следующую цель;
- validation_failed: некорректные данные, без повтора.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from starlette import status

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, Enum):
    not_authenticated = "not_authenticated"
    no_candidates = "no_candidates"
    transient = "transient"
    conflict = "conflict"
    validation_failed = "validation_failed"


class RateryError(Exception):
    kind: ErrorKind
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False
    default_detail: str = "Внутренняя ошибка"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_payload(self) -> dict[str, Any]:
        return {
            "detail": self.detail,
            "kind": self.kind.value,
            "retryable": self.retryable,
        }


class NotAuthenticatedError(RateryError):
    kind = ErrorKind.not_authenticated
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"


class NoCandidatesError(RateryError):
    kind = ErrorKind.no_candidates
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Некого оценивать"


class TransientError(RateryError):
    kind = ErrorKind.transient
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_detail = "Сервис временно недоступен, попробуйте ещё раз"


class ConflictError(RateryError):
    kind = ErrorKind.conflict
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Данные уже изменены другим запросом"


class ValidationFailedError(RateryError):
    kind = ErrorKind.validation_failed
    status_code = 422
    default_detail = "Некорректные данные"


async def retry_transient(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    attempts: int = 3,
    base_delay: float = 0.2,
    **kwargs: Any,
) -> T:
    """
    Вызывает func и повторяет только при TransientError,
    с экспоненциальной задержкой: base_delay, 2*base_delay, ...
    Остальные ошибки пробрасываются сразу.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await func(*args, **kwargs)
        except TransientError as exc:
            if attempt == attempts:
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                "Transient failure (attempt %s/%s), retry in %.2fs: %s",
                attempt, attempts, delay, exc.detail,
            )
            await asyncio.sleep(delay)
    raise TransientError()
