"""
User notifications

`notify` and `notify_many` are fire-and-forget sinks like the audit log;
reading and marking notifications are ordinary request operations.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from arena.core import db as db_module
from arena.core.errors import NotFound
from arena.models import Notification
from arena.models.enums import NotificationType

logger = logging.getLogger(__name__)

class NotificationService:
    """Service for creating and reading notifications"""
    
    @staticmethod
    def notify(
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
        event_id: Optional[int] = None,
        registration_id: Optional[int] = None,
        team_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        """Create one notification; returns its id or None on failure"""
        db = db_module.SessionLocal()
        try:
            notification = Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                link=link,
                event_id=event_id,
                registration_id=registration_id,
                team_id=team_id,
                extra=jsonable_encoder(metadata) if metadata else None,
            )
            db.add(notification)
            db.commit()
            return notification.id
        except Exception:
            db.rollback()
            logger.exception("Failed to create notification for user %s", user_id)
            return None
        finally:
            db.close()
    
    @staticmethod
    def notify_many(
        user_ids: Iterable[int],
        type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
        event_id: Optional[int] = None,
        team_id: Optional[int] = None
    ) -> int:
        """Create the same notification for many users; returns how many were written"""
        user_ids = list(dict.fromkeys(user_ids))
        if not user_ids:
            return 0
        db = db_module.SessionLocal()
        try:
            db.add_all([
                Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    link=link,
                    event_id=event_id,
                    team_id=team_id,
                )
                for user_id in user_ids
            ])
            db.commit()
            return len(user_ids)
        except Exception:
            db.rollback()
            logger.exception("Failed to create bulk notifications for %d users", len(user_ids))
            return 0
        finally:
            db.close()
    
    @staticmethod
    def list_for_user(db: Session, user_id: int, unread_only: bool = False):
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read == False)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc())
    
    @staticmethod
    def unread_count(db: Session, user_id: int) -> int:
        return db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.read == False
        ).count()
    
    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()
        if not notification:
            raise NotFound("Notification")
        if not notification.read:
            notification.read = True
            notification.read_at = datetime.utcnow()
            db.commit()
            db.refresh(notification)
        return notification
    
    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        updated = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.read == False
        ).update(
            {Notification.read: True, Notification.read_at: datetime.utcnow()},
            synchronize_session=False
        )
        db.commit()
        return updated
