"""Модуль схем Pydantic для валидации и сериализации данных.

Содержит схемы для сущностей системы бронирования:
- Столы (Table)
- Бронирования (Reservation)
- Доступность слотов (Availability)
- Токен аутентификации (Auth)
"""

from .auth import AuthData, AuthToken, CurrentUser
from .availability import (
    AvailabilityResult,
    ConflictSummary,
    DayAvailability,
    TimeSlotAvailability,
)
from .common import ErrorResponse, FieldError
from .reservation import (
    ArrivalData,
    ReservationCreate,
    ReservationInfo,
    ReservationShortInfo,
    ReservationUpdate,
)
from .table import (
    TableCreate,
    TableInfo,
    TableOverview,
    TableShortInfo,
    TableUpdate,
)

__all__ = [
    'TableCreate',
    'TableInfo',
    'TableOverview',
    'TableShortInfo',
    'TableUpdate',
    'ReservationCreate',
    'ReservationInfo',
    'ReservationShortInfo',
    'ReservationUpdate',
    'ArrivalData',
    'AvailabilityResult',
    'ConflictSummary',
    'DayAvailability',
    'TimeSlotAvailability',
    'ErrorResponse',
    'FieldError',
    'AuthToken',
    'AuthData',
    'CurrentUser',
]
