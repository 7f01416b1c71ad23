"""Notification inbox endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query

from barberbook.api.dependencies import get_notification_service
from barberbook.api.middleware.auth import get_current_user
from barberbook.auth.tokens import CurrentUser
from barberbook.models.appointment import Notification
from barberbook.services.notifications import NotificationService

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


@router.get("", response_model=list[Notification])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
) -> list[Notification]:
    rows = await notifications.list_for_user(current_user.id, unread_only=unread_only, limit=limit)
    return [Notification.model_validate(row) for row in rows]


@router.post("/read-all")
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
) -> dict:
    updated = await notifications.mark_all_read(current_user.id)
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_read(
    notification_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
) -> Notification:
    notification = await notifications.mark_read(notification_id, current_user.id)
    return Notification.model_validate(notification)
