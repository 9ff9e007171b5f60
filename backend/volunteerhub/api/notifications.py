"""Notification API endpoints."""

from fastapi import APIRouter, Depends, status

from volunteerhub.api.deps import get_notification_service
from volunteerhub.models import Notification
from volunteerhub.schemas import (
    MessageResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    NotificationUpdate,
)
from volunteerhub.services.notification import NotificationService

router = APIRouter()


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    service: NotificationService = Depends(get_notification_service),
) -> Notification:
    """Create a notification and push it to the recipient's topic."""
    return await service.create(data)


@router.get("/{user_id}", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """Notifications addressed to the user or to everyone, newest first."""
    notifications = await service.list_for_user(user_id)
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
    )


@router.patch("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: str,
    update: NotificationUpdate,
    service: NotificationService = Depends(get_notification_service),
) -> Notification:
    """Update the read status of a notification."""
    return await service.update_status(notification_id, update.status)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    """Delete a notification."""
    await service.delete(notification_id)
    return MessageResponse(message="Notification deleted")
