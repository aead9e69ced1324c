from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from loguru import logger

from app.core.auth import OptionalUser, StaffUser
from app.core.db import DbSession
from app.core.exceptions import ReservationError
from app.repositories.table import table_repository
from app.schemas.common import ErrorResponse
from app.schemas.table import (
    TableCreate,
    TableInfo,
    TableOverview,
    TableUpdate,
)
from app.services.availability_service import AvailabilityService
from app.services.reservation_service import is_staff
from app.services.table_catalog import TableCatalog
from app.utils.http import build_error
from app.utils.logging_decorator import event_logger

router = APIRouter(prefix='/tables', tags=['Столы'])


def _internal_error(
    message: str = 'Внутренняя ошибка сервера',
) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=build_error(message, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


@router.get(
    '/',
    response_model=list[TableInfo],
    responses={
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_all_tables(
    session: DbSession,
    current_user: OptionalUser,
    show_all: bool = Query(
        False,
        description='Показывать неактивные столы (только персонал)',
    ),
) -> list[TableInfo]:
    """Получает список столов ресторана.

    Args:
        session: Асинхронная сессия базы данных
        current_user: Текущий пользователь или None для гостя
        show_all: Флаг показа всех столов (включая неактивные)

    Returns:
        list[TableInfo]: Столы по возрастанию вместимости

    """
    try:
        if show_all and is_staff(current_user):
            return await table_repository.get_multi_active(
                session,
                show_all=True,
            )
        return await TableCatalog.list_active_tables(session)
    except ReservationError:
        raise
    except Exception as e:
        logger.error(f'Ошибка при получении столов: {str(e)}')
        raise _internal_error()


@router.get(
    '/overview',
    response_model=list[TableOverview],
    responses={
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_tables_overview(
    session: DbSession,
    current_user: StaffUser,
    reservation_date: date = Query(..., alias='date'),
) -> list[TableOverview]:
    """Брони и ближайший свободный слот по каждому столу на дату."""
    return await AvailabilityService.get_availability_overview(
        session,
        reservation_date,
    )


@router.post(
    '/',
    response_model=TableInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Table')
async def create_table(
    table_data: TableCreate,
    session: DbSession,
    current_user: StaffUser,
) -> TableInfo:
    """Добавляет стол в каталог.

    Raises:
        HTTPException: 400 если стол с таким номером уже существует

    """
    try:
        return await TableCatalog.create_table(session, table_data)
    except ValueError as e:
        logger.warning(f'Ошибка валидации при создании стола: {str(e)}')
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=build_error(str(e), status.HTTP_400_BAD_REQUEST),
        )
    except Exception as e:
        logger.error(f'Неожиданная ошибка при создании стола: {str(e)}')
        raise _internal_error('Внутренняя ошибка сервера при создании стола')


@router.get(
    '/{table_id}',
    response_model=TableInfo,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_table_by_id(
    table_id: UUID,
    session: DbSession,
) -> TableInfo:
    """Получает активный стол по идентификатору."""
    return await TableCatalog.get_table(session, table_id)


@router.get(
    '/{table_id}/next-slot',
    response_model=Optional[str],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_next_available_slot(
    table_id: UUID,
    session: DbSession,
    reservation_date: date = Query(..., alias='date'),
    after: Optional[str] = Query(
        None,
        description='Искать слоты не раньше этого времени, ЧЧ:ММ',
    ),
) -> Optional[str]:
    """Ближайший свободный слот стола на дату или null."""
    await TableCatalog.get_table(session, table_id)
    try:
        return await AvailabilityService.next_available_slot(
            session,
            table_id,
            reservation_date,
            after,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=build_error(str(e), status.HTTP_400_BAD_REQUEST),
        )


@router.patch(
    '/{table_id}',
    response_model=TableInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Table')
async def update_table(
    table_id: UUID,
    update_data: TableUpdate,
    session: DbSession,
    current_user: StaffUser,
) -> TableInfo:
    """Обновляет стол, в том числе выводит его из работы.

    Raises:
        HTTPException: 400 если изменения нарушают границы гостей
        NotFoundError: 404 если стол не найден

    """
    try:
        return await TableCatalog.update_table(session, table_id, update_data)
    except ReservationError:
        raise
    except ValueError as e:
        logger.warning(f'Ошибка валидации при обновлении стола: {str(e)}')
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=build_error(str(e), status.HTTP_400_BAD_REQUEST),
        )
    except Exception as e:
        logger.error(f'Неожиданная ошибка при обновлении стола: {str(e)}')
        raise _internal_error('Внутренняя ошибка сервера при обновлении стола')
