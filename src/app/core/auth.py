from datetime import datetime, timedelta, timezone
from typing import Annotated, Awaitable, Callable, Iterable, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.db import DbSession
from app.core.logging import logger
from app.models.user import User
from app.repositories.user import user_repository
from app.utils.enums import STAFF_ROLES, UserRole
from app.utils.http import build_error

# Токен необязателен: гости бронируют без авторизации
security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=['bcrypt'], deprecated='auto')


def get_token_expires() -> timedelta:
    """Возвращает время жизни токена."""
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверка пароля."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Хеширование пароля."""
    return pwd_context.hash(password)


def create_access_token(user_id: UUID, username: str) -> str:
    """Создает JWT токен."""
    expire = datetime.now(timezone.utc) + get_token_expires()
    to_encode = {
        'sub': str(user_id),
        'username': username,
        'exp': expire,
    }
    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=build_error(detail, status.HTTP_401_UNAUTHORIZED),
        headers={'WWW-Authenticate': 'Bearer'},
    )


def decode_user_id(token: str) -> UUID:
    """Идентификатор пользователя из токена.

    Raises:
        HTTPException: Токен просрочен, подделан или без sub.

    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
        return UUID(payload['sub'])
    except (JWTError, KeyError, ValueError) as e:
        logger.warning(f'Отклонён токен: {e}')
        raise _unauthorized('Неверные учетные данные')


async def authenticate(
    session: DbSession,
    login: str,
    password: str,
) -> Optional[User]:
    """Пользователь с таким логином и паролем или None."""
    user = await user_repository.get_by_login(session, login)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def get_current_user_optional(
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials],
        Depends(security),
    ],
    session: DbSession,
) -> Optional[User]:
    """Текущий пользователь или None для гостя.

    Предъявленный, но невалидный токен не превращает запрос в гостевой:
    клиент получает 401.
    """
    if credentials is None:
        return None
    user = await user_repository.get_active_by_id(
        session,
        decode_user_id(credentials.credentials),
    )
    if user is None:
        raise _unauthorized('Пользователь не найден или неактивен')
    return user


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_current_user_optional)],
) -> User:
    """Текущий пользователь, для гостя 401."""
    if user is None:
        logger.info('Отсутствует заголовок Authorization в headers')
        raise _unauthorized('Не авторизован')
    return user


def role_checker(
    allowed_roles: Iterable[UserRole],
) -> Callable[..., Awaitable[User]]:
    """Универсальная функция для проверки ролей пользователя."""
    allowed = frozenset(allowed_roles)

    async def checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=build_error(
                    'Недостаточно прав для выполнения операции',
                    status.HTTP_403_FORBIDDEN,
                ),
            )
        return current_user

    return checker


OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
StaffUser = Annotated[User, Depends(role_checker(STAFF_ROLES))]
