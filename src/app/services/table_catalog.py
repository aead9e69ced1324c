import math
from typing import Protocol
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import ACTIVE_TABLES_CACHE_KEY, PRIVATE_TABLE_PENALTY
from app.core.exceptions import NotFoundError
from app.models import Table
from app.repositories.table import table_repository
from app.schemas.table import TableCreate, TableInfo, TableUpdate
from app.services.cache_service import cache_service
from app.utils.enums import TableType
from app.utils.logging_decorator import storage_errors


class TableLike(Protocol):
    """Всё, что описывает стол: модель SQLAlchemy или схема TableInfo."""

    is_active: bool
    capacity: int
    min_party_size: int
    table_type: TableType


class TableCatalog:
    """Каталог активных столов ресторана.

    Список столов может браться из кеша: он меняется редко. Решения о
    занятости стола принимаются только по актуальным бронированиям.
    """

    @staticmethod
    @storage_errors('получение списка столов')
    async def list_active_tables(session: AsyncSession) -> list[TableInfo]:
        """Активные столы по возрастанию вместимости, затем номера."""
        cached = await cache_service.get(ACTIVE_TABLES_CACHE_KEY)
        if cached is not None:
            return [TableInfo.model_validate(item) for item in cached]
        tables = [
            TableInfo.model_validate(table)
            for table in await table_repository.get_multi_active(session)
        ]
        await cache_service.set(
            ACTIVE_TABLES_CACHE_KEY,
            [table.model_dump(mode='json') for table in tables],
            ttl=settings.TABLES_CACHE_TTL,
        )
        return tables

    @staticmethod
    @storage_errors('получение стола')
    async def get_table(session: AsyncSession, table_id: UUID) -> TableInfo:
        """Активный стол по идентификатору или NotFoundError."""
        table = await table_repository.get_active(session, table_id)
        if table is None:
            logger.warning(f'Стол {table_id} не найден')
            raise NotFoundError('Стол не найден')
        return TableInfo.model_validate(table)

    @staticmethod
    def can_accommodate(table: TableLike, party_size: int) -> bool:
        """Подходит ли стол для компании такого размера."""
        return (
            table.is_active
            and table.min_party_size <= party_size <= table.capacity
        )

    @staticmethod
    def fit_score(table: TableLike, party_size: int) -> float:
        """Оценка соответствия стола компании, чем меньше, тем лучше.

        Лишние места плюс штраф для приватных столов. Неподходящий стол
        получает бесконечность и всегда оказывается последним.
        """
        if not TableCatalog.can_accommodate(table, party_size):
            return math.inf
        penalty = (
            PRIVATE_TABLE_PENALTY
            if table.table_type == TableType.PRIVATE
            else 0
        )
        return (table.capacity - party_size) + penalty

    @staticmethod
    async def invalidate() -> None:
        """Сбрасывает кеш столов после изменения каталога."""
        await cache_service.delete(ACTIVE_TABLES_CACHE_KEY)

    @staticmethod
    async def create_table(session: AsyncSession, data: TableCreate) -> Table:
        """Добавляет стол в каталог.

        Raises:
            ValueError: Стол с таким номером уже есть.

        """
        table = await table_repository.create_table(session, data)
        await TableCatalog.invalidate()
        logger.info(f'Добавлен стол №{table.number} на {table.capacity} мест')
        return table

    @staticmethod
    async def update_table(
        session: AsyncSession,
        table_id: UUID,
        data: TableUpdate,
    ) -> Table:
        """Изменяет стол, в том числе выводит его из работы.

        Raises:
            NotFoundError: Стола нет.
            ValueError: Изменения нарушают границы количества гостей или
                уникальность номера.

        """
        table = await table_repository.get(session, id=table_id)
        if table is None:
            raise NotFoundError('Стол не найден')
        table = await table_repository.update_with_validation(
            session,
            table,
            data,
        )
        await TableCatalog.invalidate()
        return table
