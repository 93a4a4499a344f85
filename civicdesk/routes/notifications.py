"""
Notification endpoints - polled per-user feed.
"""

from fastapi import APIRouter, Depends

from civicdesk.models.user import AuthenticatedUser
from civicdesk.routes.deps import get_current_user
from civicdesk.services.notification_service import NotificationService, get_notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
def list_notifications(
    user: AuthenticatedUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Caller's feed, newest first, plus the unread count."""
    feed = notifications.list_notifications(user.id)
    return {
        "notifications": [n.to_api_dict() for n in feed],
        "unreadCount": sum(1 for n in feed if not n.read),
    }


@router.put("/mark-all-read")
def mark_all_read(
    user: AuthenticatedUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    notifications.mark_all_read(user.id)
    return {"message": "All notifications marked as read"}


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Idempotent; an unknown id is not an error."""
    notifications.mark_read(user.id, notification_id)
    return {"message": "Notification marked as read"}
