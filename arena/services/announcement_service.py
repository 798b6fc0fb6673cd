"""
Announcements and their notification fan-out
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from arena.core.errors import NotFound, ValidationError
from arena.models import Announcement, Event, Registration, User
from arena.models.announcement import PRIORITY_RANK
from arena.models.enums import TargetAudience
from arena.schemas.notification import AnnouncementCreate
from arena.services.registration_service import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

class AnnouncementService:
    """Service for announcement operations"""
    
    @staticmethod
    def create(db: Session, creator_id: int, data: AnnouncementCreate) -> Announcement:
        if data.event_id is not None:
            if not db.query(Event).filter(Event.id == data.event_id).first():
                raise NotFound("Event")
        elif data.target_audience == TargetAudience.EVENT_PARTICIPANTS:
            raise ValidationError("event_id is required when targeting event participants")
        
        announcement = Announcement(
            title=data.title,
            content=data.content,
            priority=data.priority,
            target_audience=data.target_audience,
            event_id=data.event_id,
            end_date=data.end_date,
            creator_id=creator_id,
        )
        db.add(announcement)
        db.commit()
        db.refresh(announcement)
        return announcement
    
    @staticmethod
    def audience(db: Session, announcement: Announcement) -> List[int]:
        """User ids an announcement should be pushed to"""
        if announcement.target_audience == TargetAudience.ALL_USERS:
            rows = db.query(User.id).all()
        else:
            query = db.query(Registration.user_id).filter(Registration.status.in_(ACTIVE_STATUSES))
            if announcement.target_audience == TargetAudience.EVENT_PARTICIPANTS:
                query = query.filter(Registration.event_id == announcement.event_id)
            rows = query.distinct().all()
        return [user_id for (user_id,) in rows]
    
    @staticmethod
    def list_active(db: Session, now: Optional[datetime] = None) -> List[Announcement]:
        """Announcements currently showing, most important first"""
        now = now or datetime.utcnow()
        announcements = db.query(Announcement).filter(
            Announcement.is_active == True,
            Announcement.start_date <= now,
            or_(Announcement.end_date.is_(None), Announcement.end_date >= now)
        ).order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()
        return sorted(announcements, key=lambda a: PRIORITY_RANK[a.priority], reverse=True)
