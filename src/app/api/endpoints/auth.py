from fastapi import APIRouter, HTTPException, status
from loguru import logger

from app.core.auth import CurrentUserDep, authenticate, create_access_token
from app.core.db import DbSession
from app.schemas.auth import AuthData, AuthToken, CurrentUser
from app.schemas.common import ErrorResponse
from app.utils.http import build_error

router = APIRouter(prefix='/auth', tags=['Аутентификация'])


@router.post(
    '/login',
    response_model=AuthToken,
    responses={
        status.HTTP_401_UNAUTHORIZED: {'model': ErrorResponse},
    },
)
async def login(
    session: DbSession,
    login_data: AuthData,
) -> AuthToken:
    """Аутентификация по имени, email или телефону и получение JWT."""
    user = await authenticate(session, login_data.login, login_data.password)
    if user is None:
        logger.warning(f'Неудачная попытка входа: {login_data.login}')
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=build_error(
                'Неверный логин или пароль',
                status.HTTP_401_UNAUTHORIZED,
            ),
        )
    access_token = create_access_token(
        user_id=user.id,
        username=user.username,
    )
    return AuthToken(access_token=access_token, token_type='bearer')


@router.get('/me', response_model=CurrentUser)
async def get_me(current_user: CurrentUserDep) -> CurrentUser:
    """Сведения о владельце токена."""
    return current_user
