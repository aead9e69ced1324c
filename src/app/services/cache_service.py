import json
from typing import Any, Optional

from loguru import logger
from redis.asyncio import Redis

from app.core.config import settings


class CacheService:
    """Сервис для работы с кешем Redis.

    Без подключения к Redis все операции становятся пустыми: чтение
    возвращает None, запись возвращает False.
    """

    def __init__(self) -> None:
        """Кеш создаётся без подключения, connect() вызывается при старте."""
        self.redis: Optional[Redis] = None
        self.ttl = settings.REDIS_CACHE_TTL

    async def connect(self) -> None:
        """Установка подключения к Redis."""
        try:
            self.redis = Redis.from_url(
                settings.redis_url,
                encoding='utf-8',
                decode_responses=True,
            )
            await self.redis.ping()
            logger.info('Успешное подключение к Redis')
        except Exception as e:
            logger.error(f'Ошибка подключения к Redis: {str(e)}')
            self.redis = None

    async def disconnect(self) -> None:
        """Закрытие подключения к Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info('Отключение от Redis')

    async def get(self, key: str) -> Optional[Any]:
        """Получение значения по ключу."""
        if not self.redis:
            return None
        try:
            data = await self.redis.get(key)
            if data:
                logger.debug(f'Кеш попадание: {key}')
                return json.loads(data)
            logger.debug(f'Кеш промах: {key}')
            return None
        except Exception as e:
            logger.error(f'Ошибка получения из кеша: {str(e)}')
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
    ) -> bool:
        """Сохранение значения в кеш."""
        if not self.redis:
            return False
        try:
            serialized_value = json.dumps(value, default=str)
            expire_time = ttl or self.ttl
            await self.redis.setex(key, expire_time, serialized_value)
            return True
        except Exception as e:
            logger.error(f'Ошибка сохранения в кеш: {str(e)}')
            return False

    async def delete(self, key: str) -> bool:
        """Удаление ключа из кеша."""
        if not self.redis:
            return False
        try:
            await self.redis.delete(key)
            return True
        except Exception as e:
            logger.error(f'Ошибка удаления из кеша: {str(e)}')
            return False


cache_service = CacheService()
