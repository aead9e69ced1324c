import time
import uuid
from typing import NamedTuple, Optional

from loguru import logger
from redis.asyncio import Redis

from app.core.config import settings
from app.core.constants import (
    RATE_LIMIT_KEY_PREFIX,
    SECONDS_IN_DAY,
    SECONDS_IN_HOUR,
)

CREATE_RESERVATION_ACTION = 'create_reservation'


class RateLimitDecision(NamedTuple):
    """Решение ограничителя: можно ли выполнить действие."""

    allowed: bool
    retry_after: Optional[int] = None


class RateLimiter:
    """Ограничитель частоты действий на скользящих окнах в Redis.

    Для каждой пары (ключ, действие) хранится sorted set с отметками
    времени. Без Redis ограничитель пропускает все запросы.
    """

    def __init__(
        self,
        limits: dict[str, tuple[tuple[int, int], ...]],
    ) -> None:
        """limits: действие -> ((окно в секундах, максимум), ...)."""
        self.limits = limits
        self.redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Установка подключения к Redis."""
        try:
            self.redis = Redis.from_url(
                settings.redis_url,
                encoding='utf-8',
                decode_responses=True,
            )
            await self.redis.ping()
            logger.info('Ограничитель запросов подключен к Redis')
        except Exception as e:
            logger.error(
                f'Ограничитель запросов не подключен к Redis: {str(e)}',
            )
            self.redis = None

    async def disconnect(self) -> None:
        """Закрытие подключения к Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    def _redis_key(self, key: str, action: str) -> str:
        return f'{RATE_LIMIT_KEY_PREFIX}:{action}:{key}'

    async def check_and_record(
        self,
        key: str,
        action: str,
    ) -> RateLimitDecision:
        """Засчитывает попытку и проверяет лимиты.

        Очистка окна, запись попытки и подсчёт выполняются одной
        транзакцией MULTI/EXEC, поэтому одновременные запросы видят
        записи друг друга. Отклонённая попытка удаляется из окна.

        Args:
            key: Идентификатор клиента, например IP или id пользователя.
            action: Название действия из self.limits.

        """
        windows = self.limits.get(action)
        if not windows or self.redis is None:
            return RateLimitDecision(allowed=True)
        redis_key = self._redis_key(key, action)
        now = time.time()
        longest = max(window for window, _ in windows)
        member = f'{now}:{uuid.uuid4().hex}'
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(redis_key, 0, now - longest)
                pipe.zadd(redis_key, {member: now})
                for window, _ in windows:
                    pipe.zcount(redis_key, now - window, '+inf')
                pipe.expire(redis_key, longest)
                results = await pipe.execute()
            counts = results[2:2 + len(windows)]
            for (window, limit), count in zip(windows, counts):
                if count <= limit:
                    continue
                await self.redis.zrem(redis_key, member)
                logger.warning(
                    f'Превышен лимит "{action}" для {key}: '
                    f'{count - 1}/{limit} за {window} с',
                )
                return RateLimitDecision(
                    allowed=False,
                    retry_after=await self._retry_after(
                        redis_key,
                        window,
                        now,
                    ),
                )
        except Exception as e:
            logger.error(f'Ошибка ограничителя запросов: {str(e)}')
        return RateLimitDecision(allowed=True)

    async def _retry_after(
        self,
        redis_key: str,
        window: int,
        now: float,
    ) -> int:
        """Секунды до выхода самой старой попытки из окна."""
        oldest = await self.redis.zrangebyscore(
            redis_key,
            now - window,
            '+inf',
            start=0,
            num=1,
            withscores=True,
        )
        if not oldest:
            return window
        return int(oldest[0][1] + window - now) + 1


rate_limiter = RateLimiter(
    {
        CREATE_RESERVATION_ACTION: (
            (SECONDS_IN_HOUR, settings.RATE_LIMIT_RESERVATIONS_PER_HOUR),
            (SECONDS_IN_DAY, settings.RATE_LIMIT_RESERVATIONS_PER_DAY),
        ),
    },
)
