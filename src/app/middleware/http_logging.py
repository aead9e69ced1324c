import time
import uuid
from typing import Callable

from fastapi import Request, Response
from jose import JWTError, jwt
from loguru import logger

from app.core.constants import HTTP_LOG_TEMPLATE, MS_IN_SECOND, NOISE_PATHS
from app.utils.http import get_client_ip


def _get_request_id(request: Request) -> str:
    """Возвращает X-Request-ID из заголовков или создаёт новый UUID."""
    return request.headers.get('X-Request-ID') or str(uuid.uuid4())


def _get_user_data(request: Request) -> tuple[str, str]:
    """Достаёт user_id и username из токена без проверки подписи.

    Только для логов: доступ проверяется зависимостями эндпоинтов.
    Для гостя возвращает ('-', 'GUEST').
    """
    auth = request.headers.get('authorization', '')
    scheme, _, token = auth.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return '-', 'GUEST'
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return '-', 'GUEST'
    return str(claims.get('sub', '-')), str(claims.get('username', 'GUEST'))


def _choose_level(status: int) -> str:
    """Возвращает уровень лога в зависимости от кода ответа."""
    if status >= 500:
        return 'ERROR'
    if status >= 400:
        return 'WARNING'
    return 'INFO'


async def logging_middleware(
    request: Request,
    call_next: Callable,
) -> Response:
    """Middleware для логирования HTTP-запросов.

    Записывает метод, путь, статус, время обработки, IP и user-agent
    в контексте request_id и пользователя. Ответ получает заголовок
    X-Request-ID. Пути из NOISE_PATHS логируются только при ошибках.
    """
    start = time.perf_counter()
    request_id = _get_request_id(request)
    user_id, username = _get_user_data(request)
    path = request.url.path

    status = 500
    response: Response | None = None
    with logger.contextualize(
        request_id=request_id,
        user_id=user_id,
        username=username,
    ):
        try:
            response = await call_next(request)
            status = response.status_code
        except Exception:
            logger.opt(exception=True).error(
                f'Необработанное исключение: {request.method} {path}',
            )
            raise
        finally:
            level = _choose_level(status)
            if level == 'ERROR' or path not in NOISE_PATHS:
                logger.log(
                    level,
                    HTTP_LOG_TEMPLATE,
                    method=request.method,
                    path=path,
                    status=status,
                    ms=(time.perf_counter() - start) * MS_IN_SECOND,
                    ip=get_client_ip(request),
                    ua=request.headers.get('user-agent', '-'),
                )

    response.headers.setdefault('X-Request-ID', request_id)
    return response
