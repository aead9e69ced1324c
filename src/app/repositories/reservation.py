from datetime import date
from typing import Any, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Reservation
from app.repositories.base import CRUDBase
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.utils.enums import ReservationStatus


class ReservationRepository(
    CRUDBase[Reservation, ReservationCreate, ReservationUpdate],
):
    """Репозиторий для операций с бронированиями."""

    def __init__(self) -> None:
        """Инициализация репозитория бронирований."""
        super().__init__(Reservation)

    async def get_with_table(
        self,
        session: AsyncSession,
        reservation_id: UUID,
    ) -> Optional[Reservation]:
        """Получает бронирование вместе со столом."""
        return await self.get(
            session,
            id=reservation_id,
            options=[selectinload(Reservation.table)],
        )

    async def get_active_for_table(
        self,
        session: AsyncSession,
        table_id: UUID,
        reservation_date: date,
    ) -> List[Reservation]:
        """Неотменённые и незавершённые брони стола на дату."""
        return await self.get(
            session,
            Reservation.status.not_in(ReservationStatus.terminal()),
            many=True,
            order_by=(Reservation.start_time.asc(),),
            table_id=table_id,
            reservation_date=reservation_date,
        )

    async def get_active_for_date(
        self,
        session: AsyncSession,
        reservation_date: date,
        table_ids: Optional[Iterable[UUID]] = None,
    ) -> List[Reservation]:
        """Все активные брони на дату одним запросом."""
        conditions = [
            Reservation.status.not_in(ReservationStatus.terminal()),
        ]
        if table_ids is not None:
            conditions.append(Reservation.table_id.in_(list(table_ids)))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Reservation.start_time.asc(),),
            reservation_date=reservation_date,
        )

    async def get_multi_by_user(
        self,
        session: AsyncSession,
        user_id: UUID,
    ) -> List[Reservation]:
        """Брони пользователя, сначала самые поздние."""
        return await self.get(
            session,
            many=True,
            order_by=(
                Reservation.reservation_date.desc(),
                Reservation.start_time.desc(),
            ),
            options=[selectinload(Reservation.table)],
            user_id=user_id,
        )

    async def get_multi_by_date(
        self,
        session: AsyncSession,
        reservation_date: date,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        """Брони на дату для календаря персонала."""
        conditions = [Reservation.reservation_date == reservation_date]
        if status is not None:
            conditions.append(Reservation.status == status)
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Reservation.start_time.asc(), Reservation.table_id),
            options=[selectinload(Reservation.table)],
        )

    async def set_status(
        self,
        session: AsyncSession,
        db_obj: Reservation,
        status: ReservationStatus,
        **fields: Any,
    ) -> Reservation:
        """Меняет статус бронирования и связанные поля."""
        return await self.update_obj(
            session,
            db_obj,
            {'status': status, **fields},
        )


reservation_repository = ReservationRepository()
