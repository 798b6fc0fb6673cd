"""
Seat map and seat schemas
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from arena.models.enums import SeatStatus, SeatType

class SeatInput(BaseModel):
    row: int = Field(..., ge=0)
    column: int = Field(..., ge=0)
    label: Optional[str] = Field(None, max_length=20)
    type: SeatType = SeatType.REGULAR
    status: SeatStatus = SeatStatus.AVAILABLE

class SeatMapCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    width: int = Field(..., ge=1, le=200)
    height: int = Field(..., ge=1, le=200)
    seats: List[SeatInput] = []

class SeatResponse(BaseModel):
    id: int
    row: int
    column: int
    label: str
    type: SeatType
    status: SeatStatus
    
    class Config:
        from_attributes = True

class ReservedBy(BaseModel):
    user_id: int
    name: str

class EventSeat(SeatResponse):
    """Seat as shown on an event's seat picker"""
    reserved_by: Optional[ReservedBy] = None

class SeatMapResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    width: int
    height: int
    creator_id: int
    created_at: datetime
    
    class Config:
        from_attributes = True

class SeatMapDetail(SeatMapResponse):
    seats: List[SeatResponse] = []
    event_count: int = 0
