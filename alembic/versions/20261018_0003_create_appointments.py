"""Create appointments table

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 00:03:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0003'
down_revision: str | None = '20261018_0002'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create appointments table."""
    op.create_table(
        'appointments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('shop_id', UUID(as_uuid=True), sa.ForeignKey('shops.id'), nullable=False),
        sa.Column('service_id', UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('customer_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('cancellation_reason', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'RESCHEDULED', 'CANCELLED', 'COMPLETED')",
            name='appointments_status_check',
        ),
        sa.CheckConstraint('start_time < end_time', name='appointments_interval_check'),
    )

    op.create_index('idx_shop_appointments', 'appointments', ['shop_id', 'start_time'])
    op.create_index('ix_appointments_customer_id', 'appointments', ['customer_id'])


def downgrade() -> None:
    """Drop appointments table."""
    op.drop_index('ix_appointments_customer_id', table_name='appointments')
    op.drop_index('idx_shop_appointments', table_name='appointments')
    op.drop_table('appointments')
