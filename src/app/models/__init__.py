from .reservation import Reservation
from .table import Table
from .user import User

__all__ = [
    'User',
    'Table',
    'Reservation',
]
