from .base import CRUDBase
from .reservation import ReservationRepository, reservation_repository
from .table import TableRepository, table_repository
from .user import UserRepository, user_repository

__all__ = [
    'CRUDBase',
    'TableRepository',
    'table_repository',
    'ReservationRepository',
    'reservation_repository',
    'UserRepository',
    'user_repository',
]
