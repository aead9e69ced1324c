from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.table import TableInfo
from app.services.availability_service import AvailabilityService
from app.services.table_catalog import TableCatalog
from app.utils.clock import TimeOfDay


class TableSelector:
    """Подбор стола под размер компании."""

    @staticmethod
    def rank(tables: Iterable[TableInfo], party_size: int) -> list[TableInfo]:
        """Подходящие столы от лучшего к худшему.

        При равной оценке выигрывает стол с меньшим номером.
        """
        suitable = [
            table
            for table in tables
            if TableCatalog.can_accommodate(table, party_size)
        ]
        return sorted(
            suitable,
            key=lambda table: (
                TableCatalog.fit_score(table, party_size),
                table.number,
            ),
        )

    @staticmethod
    async def find_best_available_table(
        session: AsyncSession,
        party_size: int,
        reservation_date: date,
        start_time: TimeOfDay,
        exclude_table_ids: Iterable[UUID] = (),
    ) -> Optional[TableInfo]:
        """Лучший свободный стол или None.

        Args:
            session: Асинхронная сессия базы данных.
            party_size: Количество гостей.
            reservation_date: Дата брони.
            start_time: Время начала брони.
            exclude_table_ids: Столы, которые не нужно рассматривать,
                например уже проигравшие гонку за слот.

        """
        excluded = set(exclude_table_ids)
        tables = [
            table
            for table in await TableCatalog.list_active_tables(session)
            if table.id not in excluded
        ]
        for table in TableSelector.rank(tables, party_size):
            result = await AvailabilityService.is_table_available(
                session,
                table.id,
                reservation_date,
                start_time,
            )
            if result.available:
                return table
        logger.debug(
            f'Свободный стол не найден: {reservation_date} {start_time}, '
            f'гостей {party_size}',
        )
        return None
