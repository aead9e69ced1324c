from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.utils.enums import UserRole

if TYPE_CHECKING:
    from app.models import Reservation


class User(Base):
    """Таблица пользователей: гости с аккаунтом и персонал."""

    email: Mapped[str | None] = mapped_column(
        String(length=320),
        unique=True,
        index=True,
        nullable=True,
    )
    username: Mapped[str] = mapped_column(
        String(128),
        index=True,
        unique=True,
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(32),
        unique=True,
        nullable=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(length=1024),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name='user_role'),
        nullable=False,
        default=UserRole.USER,
        server_default=UserRole.USER.value,
    )

    reservations: Mapped[List['Reservation']] = relationship(
        back_populates='user',
        lazy='noload',
    )

    __table_args__ = (
        CheckConstraint(
            'phone IS NOT NULL OR email IS NOT NULL',
            name='ck_user_contact',
        ),
    )
