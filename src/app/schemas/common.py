from typing import Optional

from pydantic import BaseModel


class FieldError(BaseModel):
    """Нарушение правила для конкретного поля."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Базовая схема ответа с описанием ошибки."""

    code: int
    detail: str
    errors: Optional[list[FieldError]] = None
