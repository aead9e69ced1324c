"""tables, users and reservations

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STATUS_CLAUSE = "status NOT IN ('cancelled', 'completed', 'no_show')"


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'is_active',
            sa.Boolean(),
            server_default=sa.true(),
            nullable=False,
        ),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'user',
        *_base_columns(),
        sa.Column('email', sa.String(length=320), nullable=True),
        sa.Column('username', sa.String(length=128), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('hashed_password', sa.String(length=1024), nullable=False),
        sa.Column(
            'role',
            sa.Enum('USER', 'MANAGER', 'ADMIN', name='user_role'),
            server_default='USER',
            nullable=False,
        ),
        sa.CheckConstraint(
            'phone IS NOT NULL OR email IS NOT NULL',
            name='ck_user_contact',
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone'),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'table',
        *_base_columns(),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column(
            'min_party_size',
            sa.Integer(),
            server_default='1',
            nullable=False,
        ),
        sa.Column(
            'table_type',
            sa.Enum('standard', 'private', 'outdoor', name='table_type'),
            server_default='standard',
            nullable=False,
        ),
        sa.Column('location_description', sa.Text(), nullable=True),
        sa.CheckConstraint('capacity >= 1', name='ck_table_capacity_positive'),
        sa.CheckConstraint(
            'min_party_size >= 1 AND min_party_size <= capacity',
            name='ck_table_min_party_size',
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number'),
    )

    op.create_table(
        'reservation',
        *_base_columns(),
        sa.Column('table_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('customer_email', sa.String(length=320), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=False),
        sa.Column('reservation_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum(
                'pending',
                'confirmed',
                'seated',
                'completed',
                'cancelled',
                'no_show',
                name='reservation_status',
            ),
            server_default='pending',
            nullable=False,
        ),
        sa.Column(
            'is_late_arrival',
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column(
            'actual_arrival_time',
            sa.DateTime(timezone=True),
            nullable=True,
        ),
        sa.Column(
            'actual_departure_time',
            sa.DateTime(timezone=True),
            nullable=True,
        ),
        sa.CheckConstraint(
            'party_size >= 1 AND party_size <= 20',
            name='ck_reservation_party_size',
        ),
        sa.ForeignKeyConstraint(
            ['table_id'],
            ['table.id'],
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'],
            ['user.id'],
            ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_reservation_table_date',
        'reservation',
        ['table_id', 'reservation_date'],
    )
    op.create_index(
        'uq_reservation_active_slot',
        'reservation',
        ['table_id', 'reservation_date', 'start_time'],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STATUS_CLAUSE),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('uq_reservation_active_slot', table_name='reservation')
    op.drop_index('ix_reservation_table_date', table_name='reservation')
    op.drop_table('reservation')
    op.drop_table('table')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
    sa.Enum(name='reservation_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='table_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
