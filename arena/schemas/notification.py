"""
Notification, audit log and announcement schemas
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from arena.models.enums import AnnouncementPriority, AuditAction, NotificationType, TargetAudience

class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    event_id: Optional[int] = None
    registration_id: Optional[int] = None
    team_id: Optional[int] = None
    read: bool
    read_at: Optional[datetime] = None
    created_at: datetime
    
    class Config:
        from_attributes = True

class AuditLogResponse(BaseModel):
    id: int
    action: AuditAction
    entity_type: str
    entity_id: Optional[int] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    changes: Optional[Any] = None
    metadata: Optional[Any] = Field(None, validation_alias="extra")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    
    class Config:
        from_attributes = True

class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    priority: AnnouncementPriority = AnnouncementPriority.NORMAL
    target_audience: TargetAudience = TargetAudience.ALL_USERS
    event_id: Optional[int] = None
    end_date: Optional[datetime] = None
    send_notification: bool = False

class AnnouncementResponse(BaseModel):
    id: int
    title: str
    content: str
    priority: AnnouncementPriority
    target_audience: TargetAudience
    event_id: Optional[int] = None
    is_active: bool
    start_date: datetime
    end_date: Optional[datetime] = None
    creator_id: int
    created_at: datetime
    
    class Config:
        from_attributes = True
