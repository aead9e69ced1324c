import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from app.core.config import (
    LOG_DIR,
    settings,
)
from app.core.constants import (
    FILE_LOG_FORMAT,
    INTERCEPTED_LOGGERS,
    LOG_COMPRESSION,
    LOG_ENCODING,
    LOG_FORMAT,
    get_logger_header,
)

LOG_FILE_NAME = 'reservations.log'

_STD_INTERCEPT_CONFIGURED = False


class InterceptHandler(logging.Handler):
    """Перехват stdlib логов (uvicorn, sqlalchemy, celery) в loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Передаёт запись стандартного логгера в Loguru."""
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # Поднимаемся до кадра, откуда вызван стандартный логгер
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(
            level,
            record.getMessage(),
        )


def setup_stdlib_intercept() -> None:
    """Перенаправляет стандартные логи в Loguru."""
    global _STD_INTERCEPT_CONFIGURED
    if _STD_INTERCEPT_CONFIGURED:
        return
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        log = logging.getLogger(name)
        log.handlers = [InterceptHandler()]
        log.propagate = False
    _STD_INTERCEPT_CONFIGURED = True


def _ensure_defaults(record: dict) -> None:
    """Добавляет значения по умолчанию в extra-поля лог-записи."""
    record['extra'].setdefault('username', 'SYSTEM')
    record['extra'].setdefault('user_id', '-')
    record['extra'].setdefault('request_id', '-')


def _write_log_header(path: Path) -> None:
    """Записывает заголовок с датой в начало лог-файла при его создании."""
    if path.exists() and path.stat().st_size > 0:
        return
    try:
        with open(path, 'a', encoding=LOG_ENCODING) as f:
            f.write(get_logger_header())
    except OSError as e:
        print(f'Не удалось записать заголовок в файл {path}: {e}')


def configure_logging(
    log_dir: Optional[Path] = LOG_DIR,
    level: Optional[str] = None,
) -> None:
    """Настраивает Loguru и подключает перехват логов stdlib.

    Args:
        log_dir: Каталог для файла логов. None отключает запись в файл.
        level: Уровень логирования, по умолчанию из настроек.

    """
    level = level or settings.LOG_LEVEL
    logger.remove()
    logger.configure(patcher=_ensure_defaults)

    logger.add(
        sys.stdout,
        level=level,
        format=LOG_FORMAT,
        colorize=True,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME
        _write_log_header(log_file)
        logger.add(
            log_file,
            level=level,
            rotation=settings.LOG_ROTATION,
            retention=settings.LOG_RETENTION,
            compression=LOG_COMPRESSION,
            format=FILE_LOG_FORMAT,
            encoding=LOG_ENCODING,
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    setup_stdlib_intercept()
