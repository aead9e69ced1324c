from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field


class ConflictSummary(BaseModel):
    """Публичная сводка о пересекающемся бронировании.

    Не содержит идентификаторов и контактов гостя.
    """

    customer_name: str
    party_size: int
    start_time: time
    end_time: time


class AvailabilityResult(BaseModel):
    """Результат проверки доступности стола."""

    available: bool
    conflicting_reservation: Optional[ConflictSummary] = None


class TimeSlotAvailability(BaseModel):
    """Доступность одного временного слота."""

    time: str
    available_tables: int
    total_capacity: int
    available: bool


class DayAvailability(BaseModel):
    """Доступность всех слотов на дату."""

    date: date
    party_size: int
    slots: list[TimeSlotAvailability] = Field(default_factory=list)
