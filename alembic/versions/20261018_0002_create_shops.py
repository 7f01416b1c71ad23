"""Create shops, services and schedules tables

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 00:02:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0002'
down_revision: str | None = '20261018_0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create shops, services and schedules tables."""
    op.create_table(
        'shops',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('slug', sa.String(50), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('address', sa.String(200), nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_shops_owner_id', 'shops', ['owner_id'])

    op.create_table(
        'services',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('shop_id', UUID(as_uuid=True), sa.ForeignKey('shops.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('duration_minutes BETWEEN 15 AND 480', name='services_duration_check'),
        sa.CheckConstraint('price > 0', name='services_price_check'),
    )
    op.create_index('idx_shop_services', 'services', ['shop_id', 'is_active'])

    op.create_table(
        'schedules',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('shop_id', UUID(as_uuid=True), sa.ForeignKey('shops.id'), nullable=False),
        sa.Column('day_of_week', sa.Integer, nullable=False),
        sa.Column('open_time', sa.String(5), nullable=False),
        sa.Column('close_time', sa.String(5), nullable=False),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='schedules_day_check'),
        sa.CheckConstraint('open_time < close_time', name='schedules_window_check'),
        sa.UniqueConstraint('shop_id', 'day_of_week', 'open_time', name='uq_schedule_window'),
    )
    op.create_index('idx_shop_schedules', 'schedules', ['shop_id', 'day_of_week'])


def downgrade() -> None:
    """Drop shops, services and schedules tables."""
    op.drop_index('idx_shop_schedules', table_name='schedules')
    op.drop_table('schedules')
    op.drop_index('idx_shop_services', table_name='services')
    op.drop_table('services')
    op.drop_index('ix_shops_owner_id', table_name='shops')
    op.drop_table('shops')
