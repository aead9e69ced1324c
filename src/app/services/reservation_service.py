from datetime import date, datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import (
    CANCELLATION_CUTOFF_MINUTES,
    GRACE_PERIOD_MINUTES,
)
from app.core.exceptions import (
    AuthorizationError,
    CancellationWindowError,
    ConflictError,
    InvalidStatusTransitionError,
    NoAvailabilityError,
    NotFoundError,
)
from app.models import Reservation, User
from app.repositories.reservation import reservation_repository
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.schemas.table import TableInfo
from app.services.abuse_check import AbuseChecker, abuse_checker
from app.services.availability_service import AvailabilityService
from app.services.reservation_policy import ReservationPolicy
from app.services.send_email_service import NotificationService
from app.services.slot_lock import SlotLockRegistry, slot_locks
from app.services.table_selector import TableSelector
from app.utils.clock import local_now, to_local_naive, window_end
from app.utils.enums import STAFF_ROLES, STATUS_TRANSITIONS, ReservationStatus
from app.utils.logging_decorator import storage_errors


def is_staff(user: Optional[User]) -> bool:
    """Является ли пользователь сотрудником ресторана."""
    return user is not None and user.role in STAFF_ROLES


class ReservationService:
    """Жизненный цикл бронирования: создание, изменение, отмена, визит.

    Создание брони проходит проверку правил, антиспам-проверку и подбор
    стола. Сама запись выполняется под блокировкой (стол, дата) с
    повторной проверкой доступности. Гонку между процессами ловит
    уникальный индекс по активному слоту.
    """

    def __init__(
        self,
        locks: SlotLockRegistry = slot_locks,
        abuse: AbuseChecker = abuse_checker,
    ) -> None:
        """Зависимости можно подменить в тестах."""
        self.locks = locks
        self.abuse = abuse

    @storage_errors('создание бронирования')
    async def create(
        self,
        session: AsyncSession,
        data: ReservationCreate,
        user: Optional[User] = None,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """Создает бронирование на лучший свободный стол.

        Args:
            session: Асинхронная сессия базы данных.
            data: Запрос гостя.
            user: Авторизованный пользователь, для гостя None.
            now: Текущее локальное время, по умолчанию системное.

        Raises:
            ReservationValidationError: Запрос нарушает правила.
            SuspiciousRequestError: Запрос отклонён антиспам-проверкой.
            NoAvailabilityError: Свободного стола нет.

        """
        now = now or local_now()
        cleaned = ReservationPolicy.validate_request(data, now)
        user_id = user.id if user else None
        self.abuse.enforce(data, source=str(user_id) if user_id else None)

        # Каждый проигранный конфликт исключает стол, цикл конечен.
        excluded: set[UUID] = set()
        while True:
            table = await TableSelector.find_best_available_table(
                session,
                cleaned['party_size'],
                cleaned['reservation_date'],
                cleaned['start_time'],
                exclude_table_ids=excluded,
            )
            if table is None:
                break
            try:
                reservation = await self._book_table(
                    session,
                    table,
                    cleaned,
                    user_id,
                )
            except ConflictError:
                logger.info(
                    f'Стол №{table.number} занят параллельным запросом, '
                    'подбираем другой',
                )
                excluded.add(table.id)
                continue
            logger.info(
                f'Создано бронирование {reservation.id}: стол '
                f'№{table.number}, {reservation.reservation_date} '
                f'{reservation.start_time:%H:%M}, '
                f'гостей {reservation.party_size}',
            )
            NotificationService.send_reservation_confirmation(reservation)
            NotificationService.schedule_reservation_reminder(
                reservation,
                now=now,
            )
            return reservation
        raise NoAvailabilityError()

    async def _book_table(
        self,
        session: AsyncSession,
        table: TableInfo,
        cleaned: dict[str, Any],
        user_id: Optional[UUID],
    ) -> Reservation:
        """Записывает бронь на стол, если слот всё ещё свободен."""
        reservation_date: date = cleaned['reservation_date']
        async with self.locks.hold(session, table.id, reservation_date):
            availability = await AvailabilityService.is_table_available(
                session,
                table.id,
                reservation_date,
                cleaned['start_time'],
            )
            if not availability.available:
                raise ConflictError()
            try:
                return await reservation_repository.insert(
                    session,
                    {
                        **cleaned,
                        'table_id': table.id,
                        'user_id': user_id,
                        'end_time': window_end(cleaned['start_time']),
                        'status': ReservationStatus.CONFIRMED,
                    },
                )
            except IntegrityError as e:
                logger.warning(f'Конфликт уникальности слота: {e.orig}')
                raise ConflictError() from e

    async def _get_visible(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        user: Optional[User],
    ) -> Reservation:
        """Бронь, которую пользователь может видеть, иначе ошибка."""
        reservation = await reservation_repository.get_with_table(
            session,
            reservation_id,
        )
        if reservation is None:
            raise NotFoundError('Бронирование не найдено')
        if is_staff(user):
            return reservation
        if user is None or reservation.user_id != user.id:
            raise AuthorizationError(
                'Можно управлять только своими бронированиями',
            )
        return reservation

    @staticmethod
    def _ensure_transition(
        reservation: Reservation,
        target: ReservationStatus,
    ) -> None:
        if target not in STATUS_TRANSITIONS[reservation.status]:
            raise InvalidStatusTransitionError(
                f'Нельзя перевести бронирование из статуса '
                f'"{reservation.status.value}" в "{target.value}"',
            )

    @storage_errors('получение бронирования')
    async def get(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        user: Optional[User],
    ) -> Reservation:
        """Бронь владельца или любая бронь для персонала."""
        return await self._get_visible(session, reservation_id, user)

    @storage_errors('отмена бронирования')
    async def cancel(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        user: Optional[User],
        now: Optional[datetime] = None,
    ) -> Reservation:
        """Отменяет бронирование.

        Гость может отменить свою бронь не позднее чем за два часа до
        начала. Для персонала ограничения по времени нет.
        """
        now = now or local_now()
        reservation = await self._get_visible(session, reservation_id, user)
        self._ensure_transition(reservation, ReservationStatus.CANCELLED)
        if not is_staff(user):
            starts_at = datetime.combine(
                reservation.reservation_date,
                reservation.start_time,
            )
            if starts_at - now < timedelta(
                minutes=CANCELLATION_CUTOFF_MINUTES,
            ):
                raise CancellationWindowError()
        reservation = await reservation_repository.set_status(
            session,
            reservation,
            ReservationStatus.CANCELLED,
        )
        logger.info(f'Бронирование {reservation.id} отменено')
        NotificationService.send_reservation_cancelled(reservation)
        return reservation

    @storage_errors('изменение бронирования')
    async def update(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        data: ReservationUpdate,
        user: Optional[User],
    ) -> Reservation:
        """Меняет контакты и пожелания активной брони."""
        reservation = await self._get_visible(session, reservation_id, user)
        if reservation.status.is_terminal:
            raise InvalidStatusTransitionError(
                'Завершённое или отменённое бронирование изменить нельзя',
            )
        cleaned = ReservationPolicy.validate_update(data)
        if not cleaned:
            return reservation
        return await reservation_repository.update_obj(
            session,
            reservation,
            cleaned,
        )

    @staticmethod
    @storage_errors('получение бронирований пользователя')
    async def list_for_user(
        session: AsyncSession,
        user: User,
    ) -> list[Reservation]:
        """Все брони пользователя, сначала самые поздние."""
        return await reservation_repository.get_multi_by_user(session, user.id)

    @staticmethod
    @storage_errors('получение бронирований на дату')
    async def list_for_date(
        session: AsyncSession,
        reservation_date: date,
        status: Optional[ReservationStatus] = None,
    ) -> list[Reservation]:
        """Брони на дату для персонала."""
        return await reservation_repository.get_multi_by_date(
            session,
            reservation_date,
            status,
        )

    @storage_errors('отметка о приходе гостей')
    async def mark_arrived(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        user: User,
        arrival_time: Optional[datetime] = None,
    ) -> Reservation:
        """Отмечает приход гостей и сажает их за стол.

        Приход позже начала брони больше чем на льготный период
        помечается как опоздание, статус при этом тот же.
        """
        reservation = await self._get_visible(session, reservation_id, user)
        self._ensure_transition(reservation, ReservationStatus.SEATED)
        arrived_at = to_local_naive(arrival_time or local_now())
        starts_at = datetime.combine(
            reservation.reservation_date,
            reservation.start_time,
        )
        is_late = arrived_at > starts_at + timedelta(
            minutes=GRACE_PERIOD_MINUTES,
        )
        reservation = await reservation_repository.set_status(
            session,
            reservation,
            ReservationStatus.SEATED,
            actual_arrival_time=arrived_at.astimezone(),
            is_late_arrival=is_late,
        )
        logger.info(
            f'Гости по бронированию {reservation.id} пришли'
            f'{" с опозданием" if is_late else ""}',
        )
        return reservation

    @storage_errors('завершение бронирования')
    async def mark_completed(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        user: User,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """Гости ушли, стол освобождается."""
        reservation = await self._get_visible(session, reservation_id, user)
        self._ensure_transition(reservation, ReservationStatus.COMPLETED)
        departed_at = to_local_naive(now or local_now())
        return await reservation_repository.set_status(
            session,
            reservation,
            ReservationStatus.COMPLETED,
            actual_departure_time=departed_at.astimezone(),
        )

    @storage_errors('отметка о неявке')
    async def mark_no_show(
        self,
        session: AsyncSession,
        reservation_id: UUID,
        user: User,
    ) -> Reservation:
        """Гости не пришли, стол освобождается."""
        reservation = await self._get_visible(session, reservation_id, user)
        self._ensure_transition(reservation, ReservationStatus.NO_SHOW)
        reservation = await reservation_repository.set_status(
            session,
            reservation,
            ReservationStatus.NO_SHOW,
        )
        logger.info(f'Бронирование {reservation.id} отмечено как неявка')
        return reservation


reservation_service = ReservationService()
