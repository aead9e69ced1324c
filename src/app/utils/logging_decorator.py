import json
from functools import wraps
from typing import Any, Callable, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import ReservationError, StorageError

MASKED_FIELDS = frozenset({'customer_email', 'customer_phone'})


def _mask(value: str) -> str:
    """Оставляет первые и последние символы контакта."""
    if len(value) <= 4:
        return '***'
    return f'{value[:2]}***{value[-2:]}'


def _serialize(obj: Any, only_set: bool = True) -> Optional[dict]:
    """Сериализует объект Pydantic в словарь для логирования.

    Контакты гостя в лог попадают в замаскированном виде.
    """
    if not hasattr(obj, 'model_dump'):
        return None
    try:
        data = obj.model_dump(
            mode='json',
            exclude_none=True,
            exclude_unset=only_set,
        )
    except Exception as e:
        logger.debug(f'Ошибка сериализации модели {e}')
        return None
    return {
        key: _mask(value)
        if key in MASKED_FIELDS and isinstance(value, str)
        else value
        for key, value in data.items()
    }


def event_logger(
    event_type: str,
    table_name: str,
    only_set: bool = True,
) -> Callable:
    """Декоратор для логирования изменений через эндпоинт.

    После успешного вызова пишет в лог тип события, id записи и
    параметры запроса. Ошибки бизнес-правил пишутся как предупреждения,
    остальные как ошибки.

    Args:
        event_type: Тип события ('Создана', 'Обновлена').
        table_name: Название таблицы, над которой выполняется операция.
        only_set: Сериализовать ли только заданные поля.

    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            parameters = next(
                (
                    data
                    for data in (
                        _serialize(v, only_set) for v in kwargs.values()
                    )
                    if data is not None
                ),
                None,
            )
            try:
                result = await func(*args, **kwargs)
            except ReservationError as e:
                logger.warning(
                    f'Операция с таблицей "{table_name}" отклонена: '
                    f'{e.message}',
                )
                raise
            except Exception:
                logger.error(
                    f'Произошла ошибка при выполнении операции с '
                    f'таблицей "{table_name}"',
                )
                raise
            record_id = getattr(result, 'id', None)
            formatted_params = json.dumps(
                parameters or {},
                ensure_ascii=False,
                indent=4,
            )
            logger.info(
                f'{event_type} запись {record_id or ""} в таблице '
                f'"{table_name}", с параметрами:\n{formatted_params}',
            )
            return result

        return wrapper

    return decorator


def storage_errors(operation: str) -> Callable:
    """Декоратор для перевода ошибок БД в StorageError.

    Исходная ошибка пишется в лог вместе с названием операции, клиент
    получает только общее сообщение.

    Args:
        operation: Описание операции для лога, например 'создание брони'.

    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(
                    f'Ошибка хранилища при выполнении операции '
                    f'"{operation}": {e}',
                )
                raise StorageError() from e

        return wrapper

    return decorator
