"""
Notification inbox and public announcements
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from arena.core.db import get_db
from arena.models import User
from arena.schemas.notification import AnnouncementResponse, NotificationResponse
from arena.services.announcement_service import AnnouncementService
from arena.services.notification_service import NotificationService
from arena.utils.responses import paginate, pagination_params, success_response
from arena.utils.security import get_current_user

router = APIRouter()

@router.get("/notifications")
async def list_notifications(
    unread_only: bool = False,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    notifications, pagination = paginate(
        NotificationService.list_for_user(db, user.id, unread_only), *pages
    )
    return success_response(
        message="Notifications retrieved",
        data={
            "notifications": [NotificationResponse.model_validate(n) for n in notifications],
            "unread_count": NotificationService.unread_count(db, user.id),
            "pagination": pagination
        }
    )

@router.patch("/notifications/{notification_id}")
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    notification = NotificationService.mark_read(db, user.id, notification_id)
    return success_response(
        message="Notification marked as read",
        data=NotificationResponse.model_validate(notification)
    )

@router.post("/notifications/read-all")
async def mark_all_notifications_read(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    updated = NotificationService.mark_all_read(db, user.id)
    return success_response(message=f"{updated} notification(s) marked as read", data={"updated": updated})

@router.get("/announcements")
async def list_announcements(db: Session = Depends(get_db)):
    """Active announcements, most important first"""
    announcements = AnnouncementService.list_active(db)
    return success_response(
        message="Announcements retrieved",
        data=[AnnouncementResponse.model_validate(a) for a in announcements]
    )
