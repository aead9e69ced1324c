from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import TIME_SLOTS
from app.models import Reservation
from app.repositories.reservation import reservation_repository
from app.schemas.availability import AvailabilityResult, ConflictSummary
from app.schemas.table import TableOverview
from app.services.table_catalog import TableCatalog
from app.utils.clock import (
    TimeOfDay,
    format_time,
    intervals_overlap,
    service_window,
    to_minutes,
)
from app.utils.logging_decorator import storage_errors


class AvailabilityService:
    """Сервис для проверки доступности столов во времени.

    Каждая бронь занимает стол на окно обслуживания от времени начала.
    Окна сравниваются как полуоткрытые интервалы, поэтому брони
    "встык" допустимы.
    """

    @staticmethod
    def find_conflict(
        reservations: Iterable[Reservation],
        start_time: TimeOfDay,
    ) -> Optional[Reservation]:
        """Первая бронь, окно которой пересекается с новым окном.

        Args:
            reservations: Активные брони одного стола на одну дату.
            start_time: Время начала предполагаемой брони.

        Returns:
            Optional[Reservation]: Пересекающаяся бронь или None.

        """
        candidate_start, candidate_end = service_window(start_time)
        for reservation in reservations:
            existing_start, existing_end = service_window(
                reservation.start_time,
            )
            if intervals_overlap(
                candidate_start,
                candidate_end,
                existing_start,
                existing_end,
            ):
                return reservation
        return None

    @staticmethod
    def summarize(reservation: Reservation) -> ConflictSummary:
        """Сводка о брони без контактов гостя."""
        return ConflictSummary(
            customer_name=reservation.customer_name,
            party_size=reservation.party_size,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
        )

    @staticmethod
    @storage_errors('проверка доступности стола')
    async def is_table_available(
        session: AsyncSession,
        table_id: UUID,
        reservation_date: date,
        start_time: TimeOfDay,
    ) -> AvailabilityResult:
        """Проверяет, свободен ли стол на дату и время.

        Брони всегда читаются из БД заново, кеш здесь не используется.
        """
        reservations = await reservation_repository.get_active_for_table(
            session,
            table_id,
            reservation_date,
        )
        conflict = AvailabilityService.find_conflict(reservations, start_time)
        if conflict is None:
            return AvailabilityResult(available=True)
        return AvailabilityResult(
            available=False,
            conflicting_reservation=AvailabilityService.summarize(conflict),
        )

    @staticmethod
    @storage_errors('получение броней на дату')
    async def get_day_reservations(
        session: AsyncSession,
        reservation_date: date,
        table_ids: Optional[Sequence[UUID]] = None,
    ) -> dict[UUID, list[Reservation]]:
        """Активные брони на дату, сгруппированные по столам."""
        reservations = await reservation_repository.get_active_for_date(
            session,
            reservation_date,
            table_ids,
        )
        by_table: dict[UUID, list[Reservation]] = defaultdict(list)
        for reservation in reservations:
            by_table[reservation.table_id].append(reservation)
        return by_table

    @staticmethod
    def first_free_slot(
        reservations: Sequence[Reservation],
        after: Optional[TimeOfDay] = None,
    ) -> Optional[str]:
        """Первый слот расписания, не пересекающийся с бронями."""
        after_minutes = to_minutes(after) if after is not None else -1
        for slot in TIME_SLOTS:
            if to_minutes(slot) < after_minutes:
                continue
            if AvailabilityService.find_conflict(reservations, slot) is None:
                return format_time(slot)
        return None

    @staticmethod
    async def next_available_slot(
        session: AsyncSession,
        table_id: UUID,
        reservation_date: date,
        after: Optional[TimeOfDay] = None,
    ) -> Optional[str]:
        """Ближайший свободный слот стола начиная с after.

        Returns:
            Optional[str]: Время слота ЧЧ:ММ:СС или None, если весь день
                занят.

        """
        by_table = await AvailabilityService.get_day_reservations(
            session,
            reservation_date,
            [table_id],
        )
        return AvailabilityService.first_free_slot(
            by_table.get(table_id, []),
            after,
        )

    @staticmethod
    async def get_availability_overview(
        session: AsyncSession,
        reservation_date: date,
    ) -> list[TableOverview]:
        """Сводка по всем активным столам на дату для персонала."""
        tables = await TableCatalog.list_active_tables(session)
        by_table = await AvailabilityService.get_day_reservations(
            session,
            reservation_date,
            [table.id for table in tables],
        )
        overview = []
        for table in tables:
            reservations = by_table.get(table.id, [])
            overview.append(
                TableOverview(
                    table=table,
                    reservations=[
                        AvailabilityService.summarize(reservation)
                        for reservation in reservations
                    ],
                    next_available_slot=AvailabilityService.first_free_slot(
                        reservations,
                    ),
                ),
            )
        return overview
