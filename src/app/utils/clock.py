"""Операции над временем суток в минутах от полуночи.

Все интервалы полуоткрытые: [начало, конец). Бронь, заканчивающаяся
ровно в момент начала другой, с ней не пересекается.
"""
from datetime import datetime, time
from typing import Union

from app.core.constants import (
    END_OF_DAY_TIME,
    MINUTES_IN_DAY,
    MINUTES_IN_HOUR,
    SERVICE_DURATION_MINUTES,
)
from app.core.exceptions import TimeFormatError

TimeOfDay = Union[str, time]

MAX_HOUR = 23
MAX_MINUTE = 59


def _parse_parts(value: str) -> tuple[int, int, int]:
    parts = value.strip().split(':')
    if len(parts) not in (2, 3):
        raise TimeFormatError(
            f'Время должно быть в формате ЧЧ:ММ[:СС], получено: {value!r}',
        )
    if not all(part.isdigit() and len(part) == 2 for part in parts):
        raise TimeFormatError(f'Некорректное время: {value!r}')
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if hours > MAX_HOUR or minutes > MAX_MINUTE or seconds > MAX_MINUTE:
        raise TimeFormatError(f'Время вне допустимого диапазона: {value!r}')
    return hours, minutes, seconds


def parse_time(value: TimeOfDay) -> time:
    """Приводит строку ЧЧ:ММ[:СС] к datetime.time."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise TimeFormatError(f'Некорректное время: {value!r}')
    return time(*_parse_parts(value))


def to_minutes(value: TimeOfDay) -> int:
    """Переводит время суток в минуты от полуночи. Секунды отбрасываются."""
    parsed = parse_time(value)
    return parsed.hour * MINUTES_IN_HOUR + parsed.minute


def from_minutes(total: int) -> str:
    """Переводит минуты от полуночи в строку ЧЧ:ММ:СС."""
    if not 0 <= total < MINUTES_IN_DAY:
        raise TimeFormatError(
            f'Время выходит за пределы суток: {total} мин.',
        )
    hours, minutes = divmod(total, MINUTES_IN_HOUR)
    return f'{hours:02d}:{minutes:02d}:00'


def format_time(value: TimeOfDay) -> str:
    """Возвращает время в каноничном виде ЧЧ:ММ:СС."""
    return parse_time(value).strftime('%H:%M:%S')


def add_minutes(value: TimeOfDay, delta: int) -> str:
    """Сдвигает время на delta минут.

    Переход через полночь не допускается: что делать с концом дня,
    решает вызывающий код.
    """
    return from_minutes(to_minutes(value) + delta)


def intervals_overlap(
    start_a: int,
    end_a: int,
    start_b: int,
    end_b: int,
) -> bool:
    """Пересекаются ли интервалы [start_a, end_a) и [start_b, end_b)."""
    return start_a < end_b and start_b < end_a


def service_window(
    start: TimeOfDay,
    duration: int = SERVICE_DURATION_MINUTES,
) -> tuple[int, int]:
    """Окно занятости стола в минутах. Конец может выходить за полночь."""
    start_minutes = to_minutes(start)
    return start_minutes, start_minutes + duration


def window_end(
    start: TimeOfDay,
    duration: int = SERVICE_DURATION_MINUTES,
) -> time:
    """Время окончания брони для хранения, не позже 23:59:59."""
    _, end_minutes = service_window(start, duration)
    if end_minutes >= MINUTES_IN_DAY:
        return parse_time(END_OF_DAY_TIME)
    return parse_time(from_minutes(end_minutes))


def local_now() -> datetime:
    """Текущее локальное время ресторана без часового пояса."""
    return datetime.now()


def to_local_naive(moment: datetime) -> datetime:
    """Приводит момент к локальному времени без часового пояса.

    Наивное значение считается уже локальным.
    """
    return moment.astimezone().replace(tzinfo=None)
