"""Общие фикстуры: файловая SQLite, столы, пользователи и HTTP-клиент."""

import asyncio
import os

os.environ.update(
    {
        'POSTGRES_DB': 'reservations',
        'POSTGRES_USER': 'postgres',
        'POSTGRES_PASSWORD': 'postgres',
        'POSTGRES_PORT': '5432',
        'POSTGRES_HOST': 'localhost',
        'DATABASE_URL': 'sqlite+aiosqlite:///:memory:',
        'REDIS_HOST': 'localhost',
        'REDIS_PORT': '6379',
        'REDIS_DB': '0',
        'REDIS_CACHE_TTL': '60',
        'LOG_LEVEL': 'DEBUG',
        'LOG_ROTATION': '10 MB',
        'LOG_RETENTION': '1 day',
        'SECRET_KEY': 'test-secret-key',
        'RABBITMQ_DEFAULT_USER': 'guest',
        'RABBITMQ_DEFAULT_PASS': 'guest',
        'RABBITMQ_DEFAULT_VHOST': '/',
        'RABBITMQ_DEFAULT_HOST': 'localhost',
        'RABBITMQ_DEFAULT_PORT': '5672',
        'NOTIFY_MAIL_FROM': 'noreply@restaurant.ru',
        'NOTIFY_MAIL_USERNAME': 'noreply',
        'NOTIFY_MAIL_PASSWORD': 'secret',
        'NOTIFY_MAIL_PORT': '587',
        'NOTIFY_MAIL_SERVER': 'smtp.restaurant.ru',
    },
)

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    async_sessionmaker,
    create_async_engine,
)

from app.core.auth import create_access_token, get_password_hash  # noqa: E402
from app.core.db import Base, get_async_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Table, User  # noqa: E402
from app.schemas.reservation import ReservationCreate  # noqa: E402
from app.services import send_email_service  # noqa: E402
from app.services.abuse_check import AbuseChecker  # noqa: E402
from app.services.reservation_service import ReservationService  # noqa: E402
from app.services.slot_lock import SlotLockRegistry  # noqa: E402
from app.utils.enums import TableType, UserRole  # noqa: E402

# Фиксированное "сейчас" для сервисных тестов
NOW = datetime(2024, 1, 10, 10, 0)
RESERVATION_DATE = date(2024, 1, 15)


@pytest.fixture
async def engine(tmp_path):
    """Файловая БД: параллельные сессии видят общие данные."""
    engine = create_async_engine(
        f'sqlite+aiosqlite:///{tmp_path / "reservations.db"}',
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Письма не уходят в Celery, а складываются в список."""
    sent = []

    def fake_enqueue(recipients, body, subject, eta=None):
        sent.append(
            {
                'recipients': recipients,
                'body': body,
                'subject': subject,
                'eta': eta,
            },
        )

    monkeypatch.setattr(send_email_service, 'enqueue_email', fake_enqueue)
    return sent


@pytest.fixture
def service():
    """Сервис со своими блокировками и выключенной антиспам-проверкой."""
    return ReservationService(
        locks=SlotLockRegistry(),
        abuse=AbuseChecker(enabled=False),
    )


async def _add_tables(session, *tables):
    session.add_all(tables)
    await session.commit()
    return list(tables)


@pytest.fixture
async def tables(session):
    """Столы на 2, 4, 6 мест и приватный на 8."""
    return await _add_tables(
        session,
        Table(number=1, name='У окна', capacity=2, min_party_size=1),
        Table(number=2, name='Центр', capacity=4, min_party_size=2),
        Table(number=3, name='Диван', capacity=6, min_party_size=3),
        Table(
            number=4,
            name='Кабинет',
            capacity=8,
            min_party_size=4,
            table_type=TableType.PRIVATE,
        ),
    )


@pytest.fixture
async def single_table(session):
    """Один стол на 4 места."""
    return await _add_tables(
        session,
        Table(number=2, name='Центр', capacity=4, min_party_size=2),
    )


def make_request(**overrides):
    data = {
        'customer_name': 'Анна Иванова',
        'customer_email': 'anna.ivanova@gmail.com',
        'customer_phone': '+79161234567',
        'reservation_date': RESERVATION_DATE,
        'start_time': '19:00',
        'party_size': 4,
        'special_requests': None,
    }
    data.update(overrides)
    return ReservationCreate(**data)


@pytest.fixture
def reservation_request():
    return make_request


async def _add_user(session, username, role, email):
    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash('password123'),
        role=role,
    )
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def customer(session):
    return await _add_user(
        session,
        'anna',
        UserRole.USER,
        'anna.ivanova@gmail.com',
    )


@pytest.fixture
async def other_customer(session):
    return await _add_user(
        session,
        'boris',
        UserRole.USER,
        'boris.petrov@gmail.com',
    )


@pytest.fixture
async def manager(session):
    return await _add_user(
        session,
        'manager',
        UserRole.MANAGER,
        'manager@restaurant.ru',
    )


def auth_headers(user):
    token = create_access_token(user.id, user.username)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def client(session_factory):
    """HTTP-клиент: каждый запрос получает свою сессию тестовой БД."""

    async def override_get_async_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_async_session
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url='http://test',
    ) as client:
        yield client
    app.dependency_overrides.clear()


def future_date(days=5):
    return date.today() + timedelta(days=days)


class FakeRedis:
    """Sorted set в памяти с нужным ограничителю подмножеством команд.

    Каждая команда уступает управление циклу событий, как сетевой вызов.
    Команды pipeline выполняются подряд, без переключений, как MULTI/EXEC.
    """

    def __init__(self):
        self.sets = {}

    def __getattr__(self, name):
        command = getattr(type(self), f'_{name}', None)
        if command is None:
            raise AttributeError(name)

        async def call(*args, **kwargs):
            await asyncio.sleep(0)
            return command(self, *args, **kwargs)

        return call

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    @staticmethod
    def _bound(value):
        return float('inf') if value == '+inf' else float(value)

    def _in_range(self, key, low, high):
        low, high = self._bound(low), self._bound(high)
        return sorted(
            (
                (m, s)
                for m, s in self.sets.get(key, {}).items()
                if low <= s <= high
            ),
            key=lambda item: item[1],
        )

    def _zremrangebyscore(self, key, low, high):
        removed = self._in_range(key, low, high)
        for member, _ in removed:
            del self.sets[key][member]
        return len(removed)

    def _zcount(self, key, low, high):
        return len(self._in_range(key, low, high))

    def _zrangebyscore(
        self,
        key,
        low,
        high,
        start=None,
        num=None,
        withscores=False,
    ):
        items = self._in_range(key, low, high)
        if start is not None and num is not None:
            items = items[start:start + num]
        return items if withscores else [m for m, _ in items]

    def _zadd(self, key, mapping):
        self.sets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def _zrem(self, key, *members):
        items = self.sets.get(key, {})
        return sum(1 for m in members if items.pop(m, None) is not None)

    def _expire(self, key, seconds):
        return True

    def _aclose(self):
        return None


class FakePipeline:
    """Копит команды и выполняет их одним шагом в execute()."""

    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.commands = []

    def __getattr__(self, name):
        command = getattr(type(self.redis), f'_{name}')

        def queue(*args, **kwargs):
            self.commands.append((command, args, kwargs))
            return self

        return queue

    async def execute(self):
        await asyncio.sleep(0)
        results = [
            command(self.redis, *args, **kwargs)
            for command, args, kwargs in self.commands
        ]
        self.commands = []
        return results
