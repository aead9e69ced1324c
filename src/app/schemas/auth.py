from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.utils.enums import UserRole


class AuthToken(BaseModel):
    """Схема токена аутентификации."""

    access_token: str
    token_type: str = 'bearer'


class AuthData(BaseModel):
    """Схема для запроса логина."""

    login: str  # имя пользователя, email или телефон
    password: str


class CurrentUser(BaseModel):
    """Сведения о владельце токена."""

    id: UUID
    username: str
    email: str | None = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)
