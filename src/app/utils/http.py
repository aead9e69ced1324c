from typing import Any, Optional

from fastapi import Request


def build_error(
    detail: Any,
    code: int,
    errors: Optional[list[dict[str, str]]] = None,
) -> dict[str, Any]:
    """Формирует унифицированный ответ об ошибке для API."""
    body: dict[str, Any] = {
        'code': code,
        'detail': str(detail) if detail is not None else '',
    }
    if errors:
        body['errors'] = errors
    return body


def get_client_ip(request: Request) -> str:
    """Возвращает IP-адрес клиента с учётом X-Forwarded-For."""
    xff = request.headers.get('x-forwarded-for')
    if xff:
        return xff.split(',')[0].strip()
    return request.client.host if request.client else '-'
