"""Create notifications table

Revision ID: 20261018_0004
Revises: 20261018_0003
Create Date: 2026-10-18 00:04:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261018_0004'
down_revision: str | None = '20261018_0003'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create notifications table."""
    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('appointment_id', UUID(as_uuid=True), sa.ForeignKey('appointments.id'), nullable=True),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "type IN ('APPOINTMENT_BOOKED', 'APPOINTMENT_CONFIRMED', 'APPOINTMENT_RESCHEDULED', "
            "'APPOINTMENT_CANCELLED', 'APPOINTMENT_COMPLETED')",
            name='notifications_type_check',
        ),
    )

    op.create_index('idx_user_notifications', 'notifications', ['user_id', 'is_read', 'created_at'])


def downgrade() -> None:
    """Drop notifications table."""
    op.drop_index('idx_user_notifications', table_name='notifications')
    op.drop_table('notifications')
