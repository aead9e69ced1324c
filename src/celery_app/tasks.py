import asyncio

from fastapi_mail.errors import ConnectionErrors

from app.core.notification import send_email
from celery_app.main import celery_app

EMAIL_RETRY_DELAY_SECONDS = 60
EMAIL_MAX_RETRIES = 3


@celery_app.task(
    name='send-reservation-email',
    autoretry_for=(ConnectionErrors,),
    retry_kwargs={
        'max_retries': EMAIL_MAX_RETRIES,
        'countdown': EMAIL_RETRY_DELAY_SECONDS,
    },
)
def send_reservation_email_task(
    recipients: list[str],
    body: str,
    subject: str,
) -> None:
    """Таска на отправку письма о бронировании.

    SMTP недоступен: задача повторяется несколько раз с паузой.
    """
    asyncio.run(
        send_email(
            recipients=recipients,
            body=body,
            subject=subject,
        ),
    )
