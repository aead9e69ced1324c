from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.utils.enums import TableType, enum_values

if TYPE_CHECKING:
    from app.models import Reservation


class Table(Base):
    """Таблица столов ресторана."""

    number: Mapped[int] = mapped_column(
        Integer,
        unique=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    min_party_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default='1',
    )
    table_type: Mapped[TableType] = mapped_column(
        Enum(
            TableType,
            name='table_type',
            values_callable=enum_values,
        ),
        nullable=False,
        default=TableType.STANDARD,
        server_default=TableType.STANDARD.value,
    )
    location_description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    reservations: Mapped[List['Reservation']] = relationship(
        back_populates='table',
        lazy='raise',
    )

    __table_args__ = (
        CheckConstraint('capacity >= 1', name='ck_table_capacity_positive'),
        CheckConstraint(
            'min_party_size >= 1 AND min_party_size <= capacity',
            name='ck_table_min_party_size',
        ),
    )
