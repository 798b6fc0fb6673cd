"""
Real-time broadcasting of check-ins and seat changes
"""

from datetime import datetime
from typing import Dict, Optional

from arena.api.ws import WebSocketManager
from arena.models import Registration
from arena.models.enums import CheckInStatus

def registration_payload(registration: Registration) -> Dict:
    """Plain snapshot safe to hand to a background task after the session closes"""
    seat = registration.seat
    return {
        "registration_id": registration.id,
        "user_id": registration.user_id,
        "name": registration.user.name,
        "seat": seat.label if seat else None,
        "checked_in": registration.check_in_status == CheckInStatus.CHECKED_IN,
    }

class CheckInService:
    """Pushes event updates to the event's WebSocket room"""
    
    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager
    
    async def broadcast_check_in(self, event_id: int, registration: Dict, was_checked_in: bool):
        message = {
            "type": "checkin",
            "registration": registration,
            "timestamp": datetime.utcnow().isoformat(),
            "was_already_checked_in": was_checked_in
        }
        await self.websocket_manager.broadcast_to_event(event_id, message)
    
    async def broadcast_seat_update(self, event_id: int, seat_id: int, status: str, user_id: Optional[int] = None):
        message = {
            "type": "seat_update",
            "seat_id": seat_id,
            "status": status,
            "user_id": user_id,
            "timestamp": datetime.utcnow().isoformat()
        }
        await self.websocket_manager.broadcast_to_event(event_id, message)
