from functools import lru_cache

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from loguru import logger

from app.core.config import email_settings


def build_connection_config() -> ConnectionConfig:
    """Параметры SMTP из настроек с префиксом NOTIFY_."""
    return ConnectionConfig(
        MAIL_USERNAME=email_settings.MAIL_USERNAME,
        MAIL_PASSWORD=email_settings.MAIL_PASSWORD,
        MAIL_FROM=email_settings.MAIL_FROM,
        MAIL_PORT=email_settings.MAIL_PORT,
        MAIL_SERVER=email_settings.MAIL_SERVER,
        MAIL_STARTTLS=email_settings.MAIL_STARTTLS,
        MAIL_SSL_TLS=email_settings.MAIL_SSL_TLS,
        USE_CREDENTIALS=email_settings.USE_CREDENTIALS,
        VALIDATE_CERTS=email_settings.VALIDATE_CERTS,
    )


@lru_cache
def fastmail() -> FastMail:
    """Клиент FastMail, создаётся один раз на процесс."""
    return FastMail(build_connection_config())


async def send_email(
    recipients: list[str],
    body: str,
    subject: str,
    html: bool = False,
) -> None:
    """Отправляет письмо гостю по SMTP."""
    message = MessageSchema(
        subject=subject,
        recipients=sorted(set(recipients)),
        body=body,
        subtype=MessageType.html if html else MessageType.plain,
    )
    await fastmail().send_message(message)
    logger.info(f'Письмо "{subject}" отправлено: {", ".join(recipients)}')
