from .auth import router as auth_router
from .healthcheck import router as healthcheck_router
from .reservation import router as reservation_router
from .table import router as table_router

__all__ = [
    'auth_router',
    'healthcheck_router',
    'reservation_router',
    'table_router',
]

routers = [
    auth_router,
    table_router,
    reservation_router,
    healthcheck_router,
]
