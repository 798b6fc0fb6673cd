"""
Registration schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from arena.models.enums import CheckInStatus, PaymentStatus, RegistrationStatus
from arena.schemas.common import UserSummary
from arena.schemas.seat_map import SeatResponse

class RegistrationCreate(BaseModel):
    event_id: int
    seat_id: Optional[int] = None
    team_id: Optional[int] = None

class RegistrationUpdate(BaseModel):
    """Admin-side status changes"""
    status: Optional[RegistrationStatus] = None
    payment_status: Optional[PaymentStatus] = None
    check_in_status: Optional[CheckInStatus] = None

class RegistrationResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    seat_id: Optional[int] = None
    team_id: Optional[int] = None
    status: RegistrationStatus
    payment_status: PaymentStatus
    payment_amount: float
    check_in_status: CheckInStatus
    checked_in_at: Optional[datetime] = None
    registered_at: datetime
    
    class Config:
        from_attributes = True

class RegistrationDetail(RegistrationResponse):
    seat: Optional[SeatResponse] = None
    user: Optional[UserSummary] = None
