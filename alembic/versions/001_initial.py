"""Initial migration

Revision ID: 001
Revises:
Create Date: 2024-05-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ZONES = ('Window View', 'Main Hall', 'Garden Section', 'Private Dining')


def upgrade() -> None:
    # Create tables table
    op.create_table(
        'tables',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('table_number', sa.Integer(), unique=True, nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('location', sa.Enum(*ZONES, name='table_location'), nullable=False),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.CheckConstraint('capacity >= 1', name='ck_tables_capacity_positive'),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('table_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tables.id'), nullable=False),
        sa.Column('reservation_date', sa.Date(), nullable=False),
        sa.Column('reservation_time', sa.String(5), nullable=False),
        sa.Column('guest_count', sa.Integer(), nullable=False),
        sa.Column('special_requests', sa.Text()),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint('guest_count BETWEEN 1 AND 8', name='ck_reservations_guest_count'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name='ck_reservations_status',
        ),
    )

    # One active reservation per table per slot
    op.create_index(
        'uq_reservations_active_slot',
        'reservations',
        ['table_id', 'reservation_date', 'reservation_time'],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'confirmed')"),
    )

    # Create indexes
    op.create_index('ix_reservations_user_id', 'reservations', ['user_id'])
    op.create_index('ix_reservations_slot', 'reservations', ['reservation_date', 'reservation_time'])


def downgrade() -> None:
    op.drop_index('ix_reservations_slot', table_name='reservations')
    op.drop_index('ix_reservations_user_id', table_name='reservations')
    op.drop_index('uq_reservations_active_slot', table_name='reservations')
    op.drop_table('reservations')
    op.drop_table('tables')
    sa.Enum(name='table_location').drop(op.get_bind(), checkfirst=True)
