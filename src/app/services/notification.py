from datetime import datetime
from typing import Optional

from loguru import logger

from app.utils.clock import to_local_naive
from celery_app.tasks import send_reservation_email_task

DEFAULT_SUBJECT = 'Бронирование стола'


def enqueue_email(
    recipients: list[str],
    body: str,
    subject: str = DEFAULT_SUBJECT,
    eta: Optional[datetime] = None,
) -> None:
    """Ставит письмо гостю в очередь Celery.

    Args:
        recipients: Адреса получателей.
        body: Текст письма.
        subject: Тема письма.
        eta: Локальное время, к которому отправить письмо. Без него
            письмо уходит сразу.

    """
    recipients = [email for email in recipients if email]
    if not recipients:
        logger.warning(f'Письмо "{subject}" не отправлено: нет адресатов')
        return
    if eta is not None:
        eta = to_local_naive(eta).astimezone()
    send_reservation_email_task.apply_async(
        (recipients, body, subject),
        eta=eta,
        queue='default',
    )
