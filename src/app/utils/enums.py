from enum import Enum


class UserRole(str, Enum):
    """Enum класс для ролей пользователей."""

    USER = 'USER'
    MANAGER = 'MANAGER'
    ADMIN = 'ADMIN'


class TableType(str, Enum):
    """Enum класс для типов столов."""

    STANDARD = 'standard'
    PRIVATE = 'private'
    OUTDOOR = 'outdoor'


class ReservationStatus(str, Enum):
    """Enum класс для статусов бронирований."""

    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    SEATED = 'seated'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'

    @classmethod
    def terminal(cls) -> frozenset['ReservationStatus']:
        """Статусы, после которых стол считается свободным."""
        return frozenset({cls.CANCELLED, cls.COMPLETED, cls.NO_SHOW})

    @property
    def is_terminal(self) -> bool:
        """Является ли статус конечным."""
        return self in self.terminal()


STAFF_ROLES = (UserRole.MANAGER, UserRole.ADMIN)

# Допустимые переходы статусов бронирования
STATUS_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {
            ReservationStatus.SEATED,
            ReservationStatus.CANCELLED,
            ReservationStatus.NO_SHOW,
        },
    ),
    ReservationStatus.SEATED: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Значения enum для хранения в БД."""
    return [member.value for member in enum_cls]
