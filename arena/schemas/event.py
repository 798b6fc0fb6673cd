"""
Event-related Pydantic schemas
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from arena.models.enums import EventStatus

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; convert aware input to match"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

class SeatConfig(BaseModel):
    """Generate a fresh seat map for the event instead of reusing one"""
    total_seats: int = Field(..., ge=1, le=5000)
    seats_per_row: int = Field(..., ge=1, le=200)
    vip_seats: int = Field(0, ge=0)

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    game: Optional[str] = None
    venue: Optional[str] = None
    status: EventStatus = EventStatus.DRAFT
    max_teams: Optional[int] = Field(None, ge=1)
    max_players: Optional[int] = Field(None, ge=1)
    team_size: int = Field(1, ge=1)
    entry_fee: float = Field(0.0, ge=0)
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    event_start: datetime
    event_end: datetime
    seat_map_id: Optional[int] = None
    seat_config: Optional[SeatConfig] = None

    @field_validator("registration_start", "registration_end", "event_start", "event_end")
    @classmethod
    def normalize_timestamps(cls, value):
        return to_naive_utc(value)

class EventUpdate(BaseModel):
    """Schema for updating an event; omitted fields are left untouched"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    game: Optional[str] = None
    venue: Optional[str] = None
    status: Optional[EventStatus] = None
    max_teams: Optional[int] = Field(None, ge=1)
    max_players: Optional[int] = Field(None, ge=1)
    team_size: Optional[int] = Field(None, ge=1)
    entry_fee: Optional[float] = Field(None, ge=0)
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    event_start: Optional[datetime] = None
    event_end: Optional[datetime] = None
    seat_map_id: Optional[int] = None

    @field_validator("registration_start", "registration_end", "event_start", "event_end")
    @classmethod
    def normalize_timestamps(cls, value):
        return to_naive_utc(value)

class EventResponse(BaseModel):
    """Basic event response"""
    id: int
    name: str
    description: Optional[str] = None
    game: Optional[str] = None
    venue: Optional[str] = None
    status: EventStatus
    max_teams: Optional[int] = None
    max_players: Optional[int] = None
    team_size: int
    entry_fee: float
    team_count: int
    registration_count: int
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    event_start: datetime
    event_end: datetime
    seat_map_id: Optional[int] = None
    creator_id: int
    created_at: datetime
    
    class Config:
        from_attributes = True
