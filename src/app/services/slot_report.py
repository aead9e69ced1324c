from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import DEFAULT_REPORT_PARTY_SIZE, TIME_SLOTS
from app.schemas.availability import TimeSlotAvailability
from app.schemas.table import TableInfo
from app.services.availability_service import AvailabilityService
from app.services.table_catalog import TableCatalog
from app.services.table_selector import TableSelector
from app.utils.clock import TimeOfDay, format_time


class SlotAvailabilityReporter:
    """Отчёт о доступности слотов расписания на дату.

    Брони на день читаются одним запросом, дальше все слоты считаются
    в памяти. Отчёт ничего не меняет и при повторном вызове даёт тот же
    результат.
    """

    @staticmethod
    async def _suitable_tables(
        session: AsyncSession,
        party_size: int,
    ) -> list[TableInfo]:
        return [
            table
            for table in await TableCatalog.list_active_tables(session)
            if TableCatalog.can_accommodate(table, party_size)
        ]

    @staticmethod
    async def get_time_slot_availability(
        session: AsyncSession,
        reservation_date: date,
        party_size: int = DEFAULT_REPORT_PARTY_SIZE,
    ) -> list[TimeSlotAvailability]:
        """Свободные столы и места по каждому слоту расписания."""
        tables = await SlotAvailabilityReporter._suitable_tables(
            session,
            party_size,
        )
        by_table = await AvailabilityService.get_day_reservations(
            session,
            reservation_date,
            [table.id for table in tables],
        )
        slots = []
        for slot in TIME_SLOTS:
            free = [
                table
                for table in tables
                if AvailabilityService.find_conflict(
                    by_table.get(table.id, []),
                    slot,
                )
                is None
            ]
            slots.append(
                TimeSlotAvailability(
                    time=slot[:5],
                    available_tables=len(free),
                    total_capacity=sum(table.capacity for table in free),
                    available=bool(free),
                ),
            )
        return slots

    @staticmethod
    async def get_available_tables(
        session: AsyncSession,
        reservation_date: date,
        start_time: TimeOfDay,
        party_size: int = DEFAULT_REPORT_PARTY_SIZE,
    ) -> list[TableInfo]:
        """Столы, свободные в указанное время, от лучшего к худшему."""
        start_time = format_time(start_time)
        tables = await SlotAvailabilityReporter._suitable_tables(
            session,
            party_size,
        )
        by_table = await AvailabilityService.get_day_reservations(
            session,
            reservation_date,
            [table.id for table in tables],
        )
        free = [
            table
            for table in tables
            if AvailabilityService.find_conflict(
                by_table.get(table.id, []),
                start_time,
            )
            is None
        ]
        return TableSelector.rank(free, party_size)
