from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from app.core.config import settings
from app.core.constants import (
    BUSINESS_CLOSE_TIME,
    BUSINESS_OPEN_TIME,
    MAX_PARTY_SIZE,
    MIN_PARTY_SIZE,
)
from app.core.exceptions import ReservationValidationError, TimeFormatError
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.utils.clock import parse_time, to_minutes
from app.utils.validators import (
    validate_customer_name,
    validate_email,
    validate_phone,
)


class _ErrorCollector:
    """Копит ошибки по полям, чтобы вернуть их все сразу."""

    def __init__(self) -> None:
        self.errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, []).append(message)

    def check(
        self,
        field: str,
        validator: Callable[[Any], Any],
        value: Any,
    ) -> Any:
        try:
            return validator(value)
        except ValueError as e:
            self.add(field, str(e))
            return None

    def require(self, field: str, value: Any, message: str) -> bool:
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(field, message)
            return False
        return True

    def raise_if_any(self) -> None:
        if self.errors:
            raise ReservationValidationError(self.errors)


class ReservationPolicy:
    """Правила, которым должен соответствовать запрос на бронирование."""

    @staticmethod
    def check_date(
        reservation_date: date,
        today: date,
    ) -> Optional[str]:
        """Сообщение об ошибке для даты брони или None."""
        if reservation_date < today:
            return 'Нельзя забронировать стол на прошедшую дату'
        horizon = today + timedelta(days=settings.RESERVATION_HORIZON_DAYS)
        if reservation_date > horizon:
            return (
                'Бронирование доступно не более чем на '
                f'{settings.RESERVATION_HORIZON_DAYS} дней вперёд'
            )
        return None

    @staticmethod
    def check_start_time(
        start_minutes: int,
        reservation_date: date,
        now: datetime,
    ) -> Optional[str]:
        """Сообщение об ошибке для времени начала или None.

        Часы работы ограничивают только начало брони: гости, пришедшие
        незадолго до закрытия, досиживают своё окно обслуживания.
        """
        if not (
            to_minutes(BUSINESS_OPEN_TIME)
            <= start_minutes
            < to_minutes(BUSINESS_CLOSE_TIME)
        ):
            return (
                'Бронирование возможно с '
                f'{BUSINESS_OPEN_TIME[:5]} до {BUSINESS_CLOSE_TIME[:5]}'
            )
        if reservation_date == now.date() and start_minutes <= to_minutes(
            now.time(),
        ):
            return 'Выбранное время уже прошло'
        return None

    @staticmethod
    def check_party_size(party_size: int) -> Optional[str]:
        """Сообщение об ошибке для количества гостей или None."""
        if not MIN_PARTY_SIZE <= party_size <= MAX_PARTY_SIZE:
            return (
                f'Количество гостей должно быть от {MIN_PARTY_SIZE} '
                f'до {MAX_PARTY_SIZE}'
            )
        return None

    @staticmethod
    def validate_request(
        data: ReservationCreate,
        now: datetime,
    ) -> dict[str, Any]:
        """Проверяет запрос и возвращает очищенные данные.

        Args:
            data: Запрос на бронирование.
            now: Текущее локальное время ресторана.

        Returns:
            dict: Поля брони в нормализованном виде, время начала как
                datetime.time.

        Raises:
            ReservationValidationError: Со всеми найденными нарушениями.

        """
        collector = _ErrorCollector()

        customer_name = None
        if collector.require(
            'customer_name',
            data.customer_name,
            'Укажите имя',
        ):
            customer_name = collector.check(
                'customer_name',
                validate_customer_name,
                data.customer_name,
            )
        customer_email = None
        if collector.require(
            'customer_email',
            data.customer_email,
            'Укажите адрес электронной почты',
        ):
            customer_email = collector.check(
                'customer_email',
                validate_email,
                data.customer_email,
            )
        customer_phone = None
        if collector.require(
            'customer_phone',
            data.customer_phone,
            'Укажите номер телефона',
        ):
            customer_phone = collector.check(
                'customer_phone',
                validate_phone,
                data.customer_phone,
            )

        date_error = ReservationPolicy.check_date(
            data.reservation_date,
            now.date(),
        )
        if date_error:
            collector.add('reservation_date', date_error)

        start_time = None
        if collector.require(
            'start_time',
            data.start_time,
            'Укажите время начала',
        ):
            try:
                start_time = parse_time(data.start_time)
            except TimeFormatError:
                collector.add(
                    'start_time',
                    'Время должно быть в формате ЧЧ:ММ',
                )
            else:
                time_error = ReservationPolicy.check_start_time(
                    to_minutes(start_time),
                    data.reservation_date,
                    now,
                )
                if time_error:
                    collector.add('start_time', time_error)

        party_error = ReservationPolicy.check_party_size(data.party_size)
        if party_error:
            collector.add('party_size', party_error)

        collector.raise_if_any()
        return {
            'customer_name': customer_name,
            'customer_email': customer_email,
            'customer_phone': customer_phone,
            'reservation_date': data.reservation_date,
            'start_time': start_time.replace(second=0, microsecond=0),
            'party_size': data.party_size,
            'special_requests': data.special_requests,
        }

    @staticmethod
    def validate_update(data: ReservationUpdate) -> dict[str, Any]:
        """Проверяет изменённые контакты и возвращает очищенные поля."""
        collector = _ErrorCollector()
        update_data = data.model_dump(exclude_unset=True)
        validators = {
            'customer_name': validate_customer_name,
            'customer_email': validate_email,
            'customer_phone': validate_phone,
        }
        cleaned: dict[str, Any] = {}
        for field, value in update_data.items():
            validator = validators.get(field)
            if validator is None:
                cleaned[field] = value
                continue
            if collector.require(field, value, 'Поле не может быть пустым'):
                cleaned[field] = collector.check(field, validator, value)
        collector.raise_if_any()
        return cleaned
