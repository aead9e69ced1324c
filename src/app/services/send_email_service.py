from datetime import datetime, timedelta
from typing import Optional

from loguru import logger

from app.models import Reservation
from app.services.notification import enqueue_email
from app.utils.clock import local_now

REMINDER_MINUTES = 60


def _describe(reservation: Reservation) -> str:
    """Общая часть письма: дата, время, стол и гости."""
    table = reservation.table
    table_info = 'уточняется'
    if table is not None:
        table_info = f'№{table.number} ({table.name})'
    return (
        f'Дата: {reservation.reservation_date:%d.%m.%Y}\n'
        f'Время: {reservation.start_time:%H:%M}-'
        f'{reservation.end_time:%H:%M}\n'
        f'Стол: {table_info}\n'
        f'Количество гостей: {reservation.party_size}\n'
        f'Пожелания: {reservation.special_requests or "Не указаны"}\n'
    )


class NotificationService:
    """Письма гостям о бронированиях.

    Отправка не влияет на результат операции: ошибка постановки письма
    в очередь только пишется в лог.
    """

    @staticmethod
    def send_reservation_confirmation(reservation: Reservation) -> None:
        """Письмо о созданном бронировании."""
        body = (
            f'Здравствуйте, {reservation.customer_name}!\n\n'
            'Ваше бронирование подтверждено.\n\n'
            f'{_describe(reservation)}\n'
            f'Номер бронирования: {reservation.id}\n'
        )
        NotificationService._enqueue(
            reservation,
            body,
            'Бронирование подтверждено',
        )

    @staticmethod
    def send_reservation_cancelled(reservation: Reservation) -> None:
        """Письмо об отмене бронирования."""
        body = (
            f'Здравствуйте, {reservation.customer_name}!\n\n'
            'Ваше бронирование отменено.\n\n'
            f'{_describe(reservation)}'
        )
        NotificationService._enqueue(
            reservation,
            body,
            'Бронирование отменено',
        )

    @staticmethod
    def schedule_reservation_reminder(
        reservation: Reservation,
        reminder_minutes: int = REMINDER_MINUTES,
        now: Optional[datetime] = None,
    ) -> bool:
        """Планирует напоминание за reminder_minutes до начала.

        Returns:
            bool: False, если время напоминания уже прошло.

        """
        starts_at = datetime.combine(
            reservation.reservation_date,
            reservation.start_time,
        )
        reminder_at = starts_at - timedelta(minutes=reminder_minutes)
        if reminder_at <= (now or local_now()):
            logger.debug(
                f'Напоминание о бронировании {reservation.id} '
                'не запланировано: время прошло',
            )
            return False
        body = (
            f'Здравствуйте, {reservation.customer_name}!\n\n'
            f'Напоминаем о бронировании через {reminder_minutes} минут.\n\n'
            f'{_describe(reservation)}'
        )
        return NotificationService._enqueue(
            reservation,
            body,
            'Напоминание о бронировании',
            eta=reminder_at,
        )

    @staticmethod
    def _enqueue(
        reservation: Reservation,
        body: str,
        subject: str,
        eta: Optional[datetime] = None,
    ) -> bool:
        try:
            enqueue_email([reservation.customer_email], body, subject, eta=eta)
        except Exception as e:
            logger.error(
                f'Не удалось поставить письмо "{subject}" для бронирования '
                f'{reservation.id} в очередь: {str(e)}',
            )
            return False
        logger.info(
            f'Письмо "{subject}" для бронирования {reservation.id} '
            'поставлено в очередь',
        )
        return True
