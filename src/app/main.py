from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.endpoints import routers
from app.core.db import SessionFactory
from app.core.exception_handler import (
    http_exception_handler,
    reservation_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import ReservationError
from app.core.init_admin import upsert_admin_if_not_exist
from app.core.logging import configure_logging
from app.middleware.http_logging import logging_middleware
from app.services.cache_service import cache_service
from app.services.rate_limiter import rate_limiter


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator:
    """Поднимает логгер, Redis и учётку администратора."""
    configure_logging()
    await cache_service.connect()
    await rate_limiter.connect()
    async with SessionFactory() as session:
        await upsert_admin_if_not_exist(session)
    yield
    await rate_limiter.disconnect()
    await cache_service.disconnect()


app = FastAPI(
    title='Бронирование столов в ресторане',
    description='API для бронирования столов и учёта визитов гостей',
    version='0.1.0',
    lifespan=lifespan,
    root_path='/api',
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(ReservationError, reservation_exception_handler)

app.middleware('http')(logging_middleware)


for router in routers:
    app.include_router(router)
