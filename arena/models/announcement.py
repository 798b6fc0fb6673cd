"""
Announcement model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from arena.core.db import Base
from arena.models.enums import AnnouncementPriority, TargetAudience

# ordering weight, highest first
PRIORITY_RANK = {
    AnnouncementPriority.URGENT: 3,
    AnnouncementPriority.HIGH: 2,
    AnnouncementPriority.NORMAL: 1,
    AnnouncementPriority.LOW: 0,
}

class Announcement(Base):
    __tablename__ = "announcements"
    
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(Enum(AnnouncementPriority, native_enum=False, length=10), nullable=False, default=AnnouncementPriority.NORMAL)
    target_audience = Column(Enum(TargetAudience, native_enum=False, length=30), nullable=False, default=TargetAudience.ALL_USERS)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    end_date = Column(DateTime, nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    creator = relationship("User")
