"""In-app notifications about appointment changes."""

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from barberbook.exceptions import NotFoundError
from barberbook.models.appointment import NotificationDB, NotificationType


class NotificationService:
    """Records and reads per-user notifications.

    ``notify`` only stages the row on the session so it commits atomically
    with the appointment change that caused it.
    """

    def __init__(self, db_session: AsyncSession):
        """Initialize notification service.

        Args:
            db_session: Database session for notification persistence
        """
        self.db_session = db_session

    def notify(
        self,
        user_id: uuid.UUID,
        notification_type: NotificationType,
        message: str,
        appointment_id: uuid.UUID | None = None,
    ) -> NotificationDB:
        """Stage a notification for ``user_id`` (caller commits)."""
        notification = NotificationDB(
            id=uuid.uuid4(),
            user_id=user_id,
            appointment_id=appointment_id,
            type=notification_type.value,
            message=message,
            is_read=False,
        )
        self.db_session.add(notification)
        return notification

    async def list_for_user(
        self, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50
    ) -> list[NotificationDB]:
        """List a user's notifications, newest first.

        Args:
            user_id: Recipient
            unread_only: Skip notifications already marked read
            limit: Maximum notifications to return

        Returns:
            Notification rows
        """
        query = select(NotificationDB).where(NotificationDB.user_id == user_id)
        if unread_only:
            query = query.where(NotificationDB.is_read.is_(False))
        query = query.order_by(NotificationDB.created_at.desc()).limit(limit)

        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> NotificationDB:
        """Mark one of the user's notifications as read.

        Raises:
            NotFoundError: If it does not exist or belongs to someone else
        """
        result = await self.db_session.execute(
            select(NotificationDB).where(
                NotificationDB.id == notification_id,
                NotificationDB.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError(f"Notification {notification_id} not found")

        notification.is_read = True
        await self.db_session.commit()
        return notification

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        """Mark every unread notification of the user as read.

        Returns:
            Number of notifications updated
        """
        update_stmt = (
            update(NotificationDB)
            .where(NotificationDB.user_id == user_id, NotificationDB.is_read.is_(False))
            .values(is_read=True)
        )
        result = await self.db_session.execute(update_stmt)
        await self.db_session.commit()
        return result.rowcount
