from datetime import date, datetime, time
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.types import StringConstraints

from app.core.constants import SPECIAL_REQUESTS_MAX_LENGTH
from app.schemas.table import TableShortInfo
from app.utils.enums import ReservationStatus

SpecialRequestsConstraint = StringConstraints(
    max_length=SPECIAL_REQUESTS_MAX_LENGTH,
)


def _normalize_text(value: Optional[str]) -> Optional[str]:
    """Очищает текст от лишних пробелов, пустые строки приводит к None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError('Пожелания должны быть строкой')
    cleaned = value.strip().replace('<', '').replace('>', '')
    return cleaned or None


class ReservationCreate(BaseModel):
    """Схема запроса на бронирование стола.

    Здесь проверяются только типы. Бизнес-правила (часы работы, горизонт
    бронирования, границы количества гостей) проверяются сервисом, чтобы
    вернуть все нарушения сразу.
    """

    customer_name: str
    customer_email: str
    customer_phone: str
    reservation_date: date
    start_time: str
    party_size: int
    special_requests: Optional[
        Annotated[str, SpecialRequestsConstraint]
    ] = None

    _normalize_requests = field_validator(
        'special_requests',
        mode='before',
    )(_normalize_text)


class ReservationUpdate(BaseModel):
    """Изменение контактов и пожеланий. Стол, дату и время не меняет."""

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    special_requests: Optional[
        Annotated[str, SpecialRequestsConstraint]
    ] = None

    _normalize_requests = field_validator(
        'special_requests',
        mode='before',
    )(_normalize_text)


class ArrivalData(BaseModel):
    """Отметка о приходе гостей."""

    arrival_time: Optional[datetime] = Field(
        None,
        description='Время прихода, по умолчанию текущее',
    )


class ReservationShortInfo(BaseModel):
    """Сокращенная схема бронирования для списков."""

    id: UUID
    table: TableShortInfo
    reservation_date: date
    start_time: time
    end_time: time
    party_size: int
    status: ReservationStatus

    model_config = ConfigDict(from_attributes=True)


class ReservationInfo(ReservationShortInfo):
    """Полная схема бронирования."""

    user_id: Optional[UUID] = None
    customer_name: str
    customer_email: str
    customer_phone: str
    special_requests: Optional[str] = None
    is_late_arrival: bool
    actual_arrival_time: Optional[datetime] = None
    actual_departure_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
