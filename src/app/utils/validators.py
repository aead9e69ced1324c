import re
from typing import Optional

from email_validator import EmailNotValidError
from email_validator import validate_email as ev_validate

from app.core.constants import (
    CUSTOMER_NAME_MAX_LENGTH,
    CUSTOMER_NAME_MIN_LENGTH,
    CUSTOMER_NAME_PATTERN,
    PHONE_PATTERN,
    PHONE_STRIP_CHARS,
)


def validate_email(value: Optional[str]) -> Optional[str]:
    """Возвращает читаемое сообщение при некорректном email."""
    if not (value and value.strip()):
        return None

    try:
        result = ev_validate(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValueError(
            'Укажите адрес электронной почты, например: user@example.com',
        )
    return result.normalized


def normalize_phone(value: str) -> str:
    """Убирает пробелы, дефисы, точки и скобки из номера."""
    return re.sub(PHONE_STRIP_CHARS, '', value)


def validate_phone(value: Optional[str]) -> Optional[str]:
    """Возвращает читаемое сообщение при некорректном номере телефона."""
    if not (value and value.strip()):
        return None

    cleaned = normalize_phone(value.strip())
    if not re.fullmatch(PHONE_PATTERN, cleaned):
        raise ValueError(
            'Введите номер телефона в формате +XXXXXXXXX',
        )
    digits = cleaned[1:]
    if len(set(digits)) <= 2:
        raise ValueError('Номер телефона выглядит недействительным')
    return cleaned


def validate_customer_name(value: Optional[str]) -> Optional[str]:
    """Проверяет имя гостя: буквы, пробелы, дефисы и апострофы."""
    if not (value and value.strip()):
        return None

    cleaned = value.strip()
    if not (
        CUSTOMER_NAME_MIN_LENGTH <= len(cleaned) <= CUSTOMER_NAME_MAX_LENGTH
    ):
        raise ValueError(
            f'Имя должно содержать от {CUSTOMER_NAME_MIN_LENGTH} '
            f'до {CUSTOMER_NAME_MAX_LENGTH} символов',
        )
    if not re.fullmatch(CUSTOMER_NAME_PATTERN, cleaned):
        raise ValueError(
            'Имя может содержать только буквы, пробелы, дефисы и апострофы',
        )
    return cleaned
