"""
Aggregate figures for the admin dashboard
"""

from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from arena.models import Event, Registration, Team, User

class AnalyticsService:
    """Service for dashboard statistics"""
    
    TOP_EVENTS = 5
    
    @staticmethod
    def _grouped(db: Session, column) -> Dict[str, int]:
        rows = db.query(column, func.count()).group_by(column).all()
        return {getattr(key, "value", key): count for key, count in rows}
    
    @staticmethod
    def summary(db: Session) -> Dict:
        top_events = db.query(Event).order_by(
            Event.registration_count.desc(), Event.id.asc()
        ).limit(AnalyticsService.TOP_EVENTS).all()
        
        return {
            "totals": {
                "users": db.query(func.count(User.id)).scalar(),
                "events": db.query(func.count(Event.id)).scalar(),
                "registrations": db.query(func.count(Registration.id)).scalar(),
                "teams": db.query(func.count(Team.id)).scalar(),
            },
            "users_by_role": AnalyticsService._grouped(db, User.role),
            "events_by_status": AnalyticsService._grouped(db, Event.status),
            "registrations_by_status": AnalyticsService._grouped(db, Registration.status),
            "top_events": [
                {
                    "id": event.id,
                    "name": event.name,
                    "registration_count": event.registration_count,
                    "max_players": event.max_players,
                }
                for event in top_events
            ],
        }
