"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-02-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OCCUPIED_PREDICATE = "status = 'CONFIRMED' AND table_id IS NOT NULL AND checked_out_at IS NULL"
WAITLISTED_PREDICATE = "status = 'WAITLISTED'"

reservation_status = sa.Enum(
    'PENDING', 'WAITLISTED', 'CONFIRMED', 'REJECTED', 'CANCELLED',
    name='reservation_status',
)


def upgrade() -> None:
    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('restaurant_id', sa.String(64), nullable=False),
        sa.Column('guests', sa.Integer(), nullable=False),
        sa.Column('reserved_at', sa.DateTime(), nullable=False),
        sa.Column('duration_mins', sa.Integer(), nullable=False, server_default='90'),
        sa.Column('contact_phone', sa.String(32)),
        sa.Column('status', reservation_status, nullable=False, server_default='PENDING'),
        sa.Column('table_id', sa.String(64)),
        sa.Column('confirmed_at', sa.DateTime()),
        sa.Column('confirmed_by', sa.String(64)),
        sa.Column('checked_out_at', sa.DateTime()),
        sa.Column('checked_out_by', sa.String(64)),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('guests >= 1', name='ck_reservations_guests_positive'),
    )

    op.create_index('ix_reservations_restaurant_status', 'reservations', ['restaurant_id', 'status'])
    op.create_index('ix_reservations_user_restaurant', 'reservations', ['user_id', 'restaurant_id'])
    op.create_index('ix_reservations_status_created', 'reservations', ['status', 'created_at'])

    # One occupying reservation per physical table
    op.create_index(
        'uq_reservations_occupied_table',
        'reservations',
        ['restaurant_id', 'table_id'],
        unique=True,
        postgresql_where=sa.text(OCCUPIED_PREDICATE),
    )
    op.create_index(
        'uq_reservations_waitlisted_user',
        'reservations',
        ['user_id', 'restaurant_id'],
        unique=True,
        postgresql_where=sa.text(WAITLISTED_PREDICATE),
    )


def downgrade() -> None:
    op.drop_index('uq_reservations_waitlisted_user', table_name='reservations')
    op.drop_index('uq_reservations_occupied_table', table_name='reservations')
    op.drop_index('ix_reservations_status_created', table_name='reservations')
    op.drop_index('ix_reservations_user_restaurant', table_name='reservations')
    op.drop_index('ix_reservations_restaurant_status', table_name='reservations')
    op.drop_table('reservations')
    reservation_status.drop(op.get_bind(), checkfirst=True)
