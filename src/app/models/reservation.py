import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.constants import MAX_PARTY_SIZE, MIN_PARTY_SIZE
from app.core.db import Base
from app.utils.enums import ReservationStatus, enum_values

if TYPE_CHECKING:
    from app.models import Table, User

ACTIVE_STATUS_CONDITION = text(
    "status NOT IN ('cancelled', 'completed', 'no_show')",
)


class Reservation(Base):
    """Таблица бронирований столов."""

    table_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('table.id', ondelete='RESTRICT'),
        index=True,
        nullable=False,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey('user.id', ondelete='SET NULL'),
        index=True,
        nullable=True,
    )
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(320), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            name='reservation_status',
            values_callable=enum_values,
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
        server_default=ReservationStatus.PENDING.value,
    )
    is_late_arrival: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    actual_arrival_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    actual_departure_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    table: Mapped['Table'] = relationship(
        back_populates='reservations',
        lazy='selectin',
    )
    user: Mapped[Optional['User']] = relationship(
        back_populates='reservations',
        lazy='selectin',
    )

    __table_args__ = (
        CheckConstraint(
            f'party_size >= {MIN_PARTY_SIZE} '
            f'AND party_size <= {MAX_PARTY_SIZE}',
            name='ck_reservation_party_size',
        ),
        Index(
            'uq_reservation_active_slot',
            'table_id',
            'reservation_date',
            'start_time',
            unique=True,
            postgresql_where=ACTIVE_STATUS_CONDITION,
            sqlite_where=ACTIVE_STATUS_CONDITION,
        ),
        Index('ix_reservation_table_date', 'table_id', 'reservation_date'),
    )
