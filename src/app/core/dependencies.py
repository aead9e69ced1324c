from typing import Annotated, Optional

from fastapi import Depends, Request

from app.core.auth import get_current_user_optional
from app.core.exceptions import RateLimitExceededError
from app.models import User
from app.services.cache_service import CacheService, cache_service
from app.services.rate_limiter import (
    CREATE_RESERVATION_ACTION,
    RateLimiter,
    rate_limiter,
)
from app.services.reservation_service import (
    ReservationService,
    reservation_service,
)
from app.utils.http import get_client_ip


async def get_cache_service() -> CacheService:
    """Зависимость для получения сервиса кеширования."""
    return cache_service


async def get_rate_limiter() -> RateLimiter:
    """Зависимость для получения ограничителя запросов."""
    return rate_limiter


async def get_reservation_service() -> ReservationService:
    """Зависимость для получения сервиса бронирований."""
    return reservation_service


async def limit_reservation_creation(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    user: Annotated[Optional[User], Depends(get_current_user_optional)],
) -> None:
    """Ограничивает частоту создания броней.

    Авторизованный пользователь учитывается по id, гость по IP.
    """
    key = f'user:{user.id}' if user else f'ip:{get_client_ip(request)}'
    decision = await limiter.check_and_record(key, CREATE_RESERVATION_ACTION)
    if not decision.allowed:
        raise RateLimitExceededError(retry_after=decision.retry_after)


CacheServiceDep = Annotated[CacheService, Depends(get_cache_service)]
ReservationServiceDep = Annotated[
    ReservationService,
    Depends(get_reservation_service),
]
