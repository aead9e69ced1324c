from datetime import datetime

# Тайминги бронирования (в минутах)
SERVICE_DURATION_MINUTES = 105  # 90 минут ужина + 15 минут на уборку
GRACE_PERIOD_MINUTES = 15
MAX_SITTING_MINUTES = 120
CANCELLATION_CUTOFF_MINUTES = 120
MINUTES_IN_HOUR = 60
MINUTES_IN_DAY = 24 * MINUTES_IN_HOUR

# Часы работы: первое бронирование в 08:00, последнее начинается до 23:00
BUSINESS_OPEN_TIME = '08:00:00'
BUSINESS_CLOSE_TIME = '23:00:00'
END_OF_DAY_TIME = '23:59:59'

# Ограничения запроса
MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 20
CUSTOMER_NAME_MIN_LENGTH = 2
CUSTOMER_NAME_MAX_LENGTH = 100
SPECIAL_REQUESTS_MAX_LENGTH = 500
CUSTOMER_NAME_PATTERN = r"^[^\W\d_]+(?:[ '\-][^\W\d_]+)*$"
PHONE_PATTERN = r'^\+[1-9][0-9]{7,14}$'
PHONE_STRIP_CHARS = r'[\s\-().]'

# Штраф к оценке для приватных столов
PRIVATE_TABLE_PENALTY = 5

# Слоты обеда и ужина для отчёта о доступности
TIME_SLOTS = (
    '12:00:00',
    '12:30:00',
    '13:00:00',
    '13:30:00',
    '14:00:00',
    '14:30:00',
    '19:00:00',
    '19:30:00',
    '20:00:00',
    '20:30:00',
    '21:00:00',
    '21:30:00',
    '22:00:00',
)
DEFAULT_REPORT_PARTY_SIZE = 2

# Кеш и лимиты
ACTIVE_TABLES_CACHE_KEY = 'tables:active'
RATE_LIMIT_KEY_PREFIX = 'ratelimit'
SECONDS_IN_HOUR = 60 * 60
SECONDS_IN_DAY = 24 * SECONDS_IN_HOUR

# Эвристики антиспама
DISPOSABLE_EMAIL_DOMAINS = frozenset(
    {
        '10minutemail.com',
        'guerrillamail.com',
        'mailinator.com',
        'tempmail.org',
        'throwawaymail.com',
        'yopmail.com',
        'temp-mail.org',
        'sharklasers.com',
        'getairmail.com',
    },
)
SUSPICIOUS_NAME_PATTERNS = (
    r'\btest\b',
    r'\bfake\b',
    r'\basdf\b',
    r'\bqwerty\b',
)

# Настройки логгера
MS_IN_SECOND = 1000
LOG_ENCODING = 'utf-8'
LOG_COMPRESSION = 'zip'
LOG_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | '
    '<level>{level: <8}</level> | '
    '{extra[request_id]} | {extra[username]}({extra[user_id]}) | '
    '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
    '<level>{message}</level>'
)
FILE_LOG_FORMAT = (
    '{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | '
    '{extra[request_id]} | {extra[username]}({extra[user_id]}) | '
    '{name}:{function}:{line} | {message}'
)
INTERCEPTED_LOGGERS = (
    'uvicorn',
    'uvicorn.error',
    'sqlalchemy',
    'celery',
    'aiosqlite',
)
NOISE_PATHS = {
    '/docs',
    '/openapi.json',
    '/healthcheck/db',
    '/healthcheck/redis',
}
HTTP_LOG_TEMPLATE = '{method} {path} -> {status} ({ms:.1f} ms) ip={ip} ua={ua}'


def get_logger_header() -> str:
    """Формирует заголовок для нового лог-файла."""
    return (
        '\n'
        '================= LOGGER - TABLE_RESERVATIONS =================\n'
        f'Date: {datetime.now():%Y-%m-%d %H:%M:%S}\n'
        '================================================================\n\n'
    )
