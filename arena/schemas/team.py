"""
Team and roster schemas
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from arena.models.enums import MemberStatus, TeamRole
from arena.schemas.common import UserSummary

class TeamCreate(BaseModel):
    event_id: int
    name: str = Field(..., max_length=100)
    tag: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None

class AdminTeamCreate(TeamCreate):
    """Organizer-created team; the named user becomes captain"""
    captain_id: int

class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    tag: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None

class MemberAdd(BaseModel):
    """Invite a user by email"""
    email: str
    role: TeamRole = TeamRole.MEMBER

class MemberRoleUpdate(BaseModel):
    # plain str so an unknown role is answered by the service with a clear message
    role: str

class InviteAnswer(BaseModel):
    action: Literal["accept", "decline"]

class TeamMemberResponse(BaseModel):
    id: int
    team_id: int
    user_id: int
    role: TeamRole
    status: MemberStatus
    joined_at: datetime
    user: Optional[UserSummary] = None
    
    class Config:
        from_attributes = True

class TeamResponse(BaseModel):
    id: int
    event_id: int
    name: str
    tag: Optional[str] = None
    description: Optional[str] = None
    creator_id: int
    member_count: int
    created_at: datetime
    members: List[TeamMemberResponse] = []
    
    class Config:
        from_attributes = True
