from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.auth import CurrentUserDep, OptionalUser, StaffUser
from app.core.constants import (
    DEFAULT_REPORT_PARTY_SIZE,
    MAX_PARTY_SIZE,
    MIN_PARTY_SIZE,
)
from app.core.db import DbSession
from app.core.dependencies import (
    ReservationServiceDep,
    limit_reservation_creation,
)
from app.core.exceptions import TimeFormatError
from app.schemas.availability import DayAvailability
from app.schemas.common import ErrorResponse
from app.schemas.reservation import (
    ArrivalData,
    ReservationCreate,
    ReservationInfo,
    ReservationShortInfo,
    ReservationUpdate,
)
from app.schemas.table import TableInfo
from app.services.slot_report import SlotAvailabilityReporter
from app.utils.enums import ReservationStatus
from app.utils.http import build_error
from app.utils.logging_decorator import event_logger

router = APIRouter(prefix='/reservations', tags=['Бронирования'])

PartySizeQuery = Query(
    DEFAULT_REPORT_PARTY_SIZE,
    ge=MIN_PARTY_SIZE,
    le=MAX_PARTY_SIZE,
    description='Количество гостей',
)


@router.post(
    '/',
    response_model=ReservationInfo,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_reservation_creation)],
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_409_CONFLICT: {'model': ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Reservation')
async def create_reservation(
    reservation_data: ReservationCreate,
    session: DbSession,
    current_user: OptionalUser,
    service: ReservationServiceDep,
) -> ReservationInfo:
    """Бронирует лучший свободный стол на дату и время.

    Гость бронирует без авторизации, авторизованный пользователь
    становится владельцем брони.

    Args:
        reservation_data: Данные гостя, дата, время и количество гостей
        session: Асинхронная сессия базы данных
        current_user: Текущий пользователь или None для гостя
        service: Сервис бронирований

    Returns:
        ReservationInfo: Созданная бронь с назначенным столом

    Raises:
        ReservationValidationError: 400 со списком ошибок по полям
        NoAvailabilityError: 409 если свободных столов нет
        RateLimitExceededError: 429 если превышен лимит запросов

    """
    return await service.create(session, reservation_data, current_user)


@router.get(
    '/availability',
    response_model=DayAvailability,
    responses={
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_day_availability(
    session: DbSession,
    reservation_date: date = Query(..., alias='date'),
    party_size: int = PartySizeQuery,
) -> DayAvailability:
    """Доступность слотов расписания на дату."""
    slots = await SlotAvailabilityReporter.get_time_slot_availability(
        session,
        reservation_date,
        party_size,
    )
    return DayAvailability(
        date=reservation_date,
        party_size=party_size,
        slots=slots,
    )


@router.get(
    '/availability/tables',
    response_model=list[TableInfo],
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_available_tables(
    session: DbSession,
    reservation_date: date = Query(..., alias='date'),
    start_time: str = Query(..., alias='time', description='ЧЧ:ММ'),
    party_size: int = PartySizeQuery,
) -> list[TableInfo]:
    """Столы, свободные в указанное время, от лучшего к худшему."""
    try:
        return await SlotAvailabilityReporter.get_available_tables(
            session,
            reservation_date,
            start_time,
            party_size,
        )
    except TimeFormatError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=build_error(str(e), status.HTTP_400_BAD_REQUEST),
        )


@router.get(
    '/me',
    response_model=list[ReservationShortInfo],
    responses={
        status.HTTP_401_UNAUTHORIZED: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_my_reservations(
    session: DbSession,
    current_user: CurrentUserDep,
    service: ReservationServiceDep,
) -> list[ReservationShortInfo]:
    """Брони текущего пользователя, сначала самые поздние."""
    return await service.list_for_user(session, current_user)


@router.get(
    '/',
    response_model=list[ReservationInfo],
    responses={
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_reservations_for_date(
    session: DbSession,
    current_user: StaffUser,
    service: ReservationServiceDep,
    reservation_date: date = Query(..., alias='date'),
    reservation_status: Optional[ReservationStatus] = Query(
        None,
        alias='status',
    ),
) -> list[ReservationInfo]:
    """Брони на дату для персонала, по времени начала."""
    return await service.list_for_date(
        session,
        reservation_date,
        reservation_status,
    )


@router.get(
    '/{reservation_id}',
    response_model=ReservationInfo,
    responses={
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_reservation(
    reservation_id: UUID,
    session: DbSession,
    current_user: CurrentUserDep,
    service: ReservationServiceDep,
) -> ReservationInfo:
    """Бронь владельца или любая бронь для персонала."""
    return await service.get(session, reservation_id, current_user)


@router.patch(
    '/{reservation_id}',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Reservation')
async def update_reservation(
    reservation_id: UUID,
    update_data: ReservationUpdate,
    session: DbSession,
    current_user: CurrentUserDep,
    service: ReservationServiceDep,
) -> ReservationInfo:
    """Меняет контакты и пожелания. Стол, дату и время не меняет."""
    return await service.update(
        session,
        reservation_id,
        update_data,
        current_user,
    )


@router.post(
    '/{reservation_id}/cancel',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def cancel_reservation(
    reservation_id: UUID,
    session: DbSession,
    current_user: CurrentUserDep,
    service: ReservationServiceDep,
) -> ReservationInfo:
    """Отменяет бронь.

    Гость может отменить свою бронь не позднее чем за 2 часа до начала,
    персонал в любое время.
    """
    return await service.cancel(session, reservation_id, current_user)


@router.post(
    '/{reservation_id}/arrive',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def mark_arrived(
    reservation_id: UUID,
    session: DbSession,
    current_user: StaffUser,
    service: ReservationServiceDep,
    arrival: Optional[ArrivalData] = None,
) -> ReservationInfo:
    """Гости пришли и сели за стол."""
    return await service.mark_arrived(
        session,
        reservation_id,
        current_user,
        arrival.arrival_time if arrival else None,
    )


@router.post(
    '/{reservation_id}/complete',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def mark_completed(
    reservation_id: UUID,
    session: DbSession,
    current_user: StaffUser,
    service: ReservationServiceDep,
) -> ReservationInfo:
    """Гости ушли, стол свободен."""
    return await service.mark_completed(session, reservation_id, current_user)


@router.post(
    '/{reservation_id}/no-show',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def mark_no_show(
    reservation_id: UUID,
    session: DbSession,
    current_user: StaffUser,
    service: ReservationServiceDep,
) -> ReservationInfo:
    """Гости не пришли, стол свободен."""
    return await service.mark_no_show(session, reservation_id, current_user)
