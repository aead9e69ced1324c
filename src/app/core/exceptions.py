from typing import Optional

from fastapi import status


class ReservationError(Exception):
    """Базовая ошибка бизнес-логики бронирования."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = 'Ошибка обработки бронирования'

    def __init__(self, message: Optional[str] = None) -> None:
        """Сохраняет сообщение для ответа клиенту."""
        self.message = message or self.default_message
        super().__init__(self.message)


class ReservationValidationError(ReservationError):
    """Запрос нарушает правила бронирования.

    Содержит список ошибок по полям, а не только первую найденную.
    """

    default_message = 'Некорректные данные бронирования'

    def __init__(self, errors: dict[str, list[str]]) -> None:
        """Принимает словарь вида {поле: [сообщения]}."""
        self.errors = errors
        fields = ', '.join(sorted(errors))
        super().__init__(f'{self.default_message}: {fields}')

    def as_list(self) -> list[dict[str, str]]:
        """Плоский список ошибок для ответа API."""
        return [
            {'field': field, 'message': message}
            for field, messages in self.errors.items()
            for message in messages
        ]


class NoAvailabilityError(ReservationError):
    """Нет свободного стола на запрошенные дату, время и число гостей."""

    status_code = status.HTTP_409_CONFLICT
    default_message = (
        'Нет свободных столов на выбранные дату, время и количество гостей'
    )


class NotFoundError(ReservationError):
    """Запись не найдена или недоступна запрашивающему."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Запись не найдена'


class AuthorizationError(ReservationError):
    """Пользователь не является владельцем бронирования."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'Недостаточно прав для выполнения операции'


class CancellationWindowError(ReservationError):
    """До начала бронирования осталось меньше допустимого времени."""

    default_message = (
        'Нельзя отменить бронирование менее чем за 2 часа до его начала'
    )


class InvalidStatusTransitionError(ReservationError):
    """Недопустимый переход статуса бронирования."""

    default_message = 'Недопустимое изменение статуса бронирования'


class RateLimitExceededError(ReservationError):
    """Превышен лимит запросов."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = 'Слишком много запросов, попробуйте позже'

    def __init__(
        self,
        message: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        """Сохраняет время до снятия ограничения в секундах."""
        self.retry_after = retry_after
        super().__init__(message)


class SuspiciousRequestError(ReservationError):
    """Запрос отклонён антиспам-проверкой."""

    default_message = 'Запрос на бронирование отклонён, свяжитесь с рестораном'


class ConflictError(ReservationError):
    """Нарушение уникальности слота при одновременной записи."""

    status_code = status.HTTP_409_CONFLICT
    default_message = 'Стол был занят другим запросом'


class StorageError(ReservationError):
    """Ошибка хранилища. Клиент получает общее сообщение."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Внутренняя ошибка сервера'


class TimeFormatError(ValueError):
    """Некорректная строка времени суток."""
