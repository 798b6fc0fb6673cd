"""
Event lifecycle and capacity policy
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from arena.core.errors import Conflict, NotFound, ValidationError
from arena.models import Event, Registration, Seat
from arena.models.enums import EventStatus, SeatStatus
from arena.schemas.event import EventCreate, EventUpdate
from arena.services.audit_service import capture_changes, snapshot
from arena.services.registration_service import ACTIVE_STATUSES
from arena.services.seat_map_service import SeatMapService

logger = logging.getLogger(__name__)

PUBLIC_STATUSES = [
    EventStatus.REGISTRATION_OPEN,
    EventStatus.REGISTRATION_CLOSED,
    EventStatus.IN_PROGRESS,
]

UPDATABLE_FIELDS = [
    "name", "description", "game", "venue", "status", "max_teams", "max_players",
    "team_size", "entry_fee", "registration_start", "registration_end",
    "event_start", "event_end", "seat_map_id",
]

# may be changed but never cleared
REQUIRED_FIELDS = ["name", "status", "team_size", "entry_fee", "event_start", "event_end"]

def validate_time_window(values: Dict[str, Any]) -> None:
    """registration_end >= registration_start and event_end >= event_start"""
    if values.get("event_start") is None or values.get("event_end") is None:
        raise ValidationError("event_start and event_end are required")
    errors = []
    reg_start, reg_end = values.get("registration_start"), values.get("registration_end")
    if reg_start and reg_end and reg_end < reg_start:
        errors.append("registration_end must not be before registration_start")
    if values["event_end"] < values["event_start"]:
        errors.append("event_end must not be before event_start")
    if errors:
        raise ValidationError("; ".join(errors))

class EventService:
    """Service for event operations"""
    
    @staticmethod
    def get(db: Session, event_id: int) -> Event:
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise NotFound("Event")
        return event
    
    @staticmethod
    def list(
        db: Session,
        status: Optional[EventStatus] = None,
        show_all: bool = False,
        creator_id: Optional[int] = None
    ):
        """Public listing shows published events only unless `show_all`"""
        query = db.query(Event)
        if status:
            query = query.filter(Event.status == status)
        elif not show_all:
            query = query.filter(Event.status.in_(PUBLIC_STATUSES))
        if creator_id is not None:
            query = query.filter(Event.creator_id == creator_id)
        return query.order_by(Event.event_start.asc(), Event.id.asc())
    
    @staticmethod
    def create(db: Session, creator_id: int, data: EventCreate) -> Event:
        """Create an event, optionally generating its seat map in the same transaction"""
        values = data.model_dump(exclude={"seat_config"})
        validate_time_window(values)
        
        if data.seat_map_id is not None and data.seat_config is not None:
            raise ValidationError("Provide either seat_map_id or seat_config, not both")
        if data.seat_map_id is not None:
            SeatMapService.get(db, data.seat_map_id)
        
        event = Event(creator_id=creator_id, **values)
        try:
            if data.seat_config is not None:
                if data.seat_config.vip_seats > data.seat_config.total_seats:
                    raise ValidationError("vip_seats cannot exceed total_seats")
                event.seat_map = SeatMapService.build_generated(
                    creator_id, f"{data.name} seating", data.seat_config
                )
            db.add(event)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(event)
        logger.info(f"Event {event.id} created by user {creator_id}")
        return event
    
    @staticmethod
    def update(db: Session, event: Event, data: EventUpdate) -> Tuple[Event, Dict]:
        """Apply a partial update; returns the event and a before/after diff"""
        before = snapshot(event, UPDATABLE_FIELDS)
        updates = data.model_dump(exclude_unset=True)
        cleared = [field for field in REQUIRED_FIELDS if field in updates and updates[field] is None]
        if cleared:
            raise ValidationError(f"Cannot clear required field(s): {', '.join(cleared)}")
        merged = {**before, **updates}
        validate_time_window(merged)
        
        errors = []
        if merged["max_teams"] is not None and merged["max_teams"] < event.team_count:
            errors.append(f"max_teams cannot be below the {event.team_count} existing teams")
        if merged["max_players"] is not None and merged["max_players"] < event.registration_count:
            errors.append(f"max_players cannot be below the {event.registration_count} active registrations")
        if "team_size" in updates:
            largest = max((team.member_count for team in event.teams), default=0)
            if updates["team_size"] < largest:
                errors.append(f"team_size cannot be below the largest roster ({largest})")
        if errors:
            raise ValidationError("; ".join(errors))
        
        if "seat_map_id" in updates and updates["seat_map_id"] != event.seat_map_id:
            seated = db.query(Registration).filter(
                Registration.event_id == event.id,
                Registration.seat_id.isnot(None)
            ).count()
            if seated:
                raise Conflict("Cannot change the seat map while seats are reserved")
            if updates["seat_map_id"] is not None:
                SeatMapService.get(db, updates["seat_map_id"])
        
        for field, value in updates.items():
            setattr(event, field, value)
        db.commit()
        db.refresh(event)
        return event, capture_changes(before, snapshot(event, UPDATABLE_FIELDS))
    
    @staticmethod
    def delete(db: Session, event: Event) -> None:
        """Delete an event, releasing the seats its registrations held"""
        seat_ids = [
            seat_id for (seat_id,) in db.query(Registration.seat_id).filter(
                Registration.event_id == event.id,
                Registration.seat_id.isnot(None)
            )
        ]
        try:
            if seat_ids:
                db.query(Seat).filter(Seat.id.in_(seat_ids)).update(
                    {Seat.status: SeatStatus.AVAILABLE}, synchronize_session=False
                )
            db.delete(event)
            db.commit()
        except Exception:
            db.rollback()
            raise
    
    @staticmethod
    def participant_ids(db: Session, event_id: int) -> List[int]:
        """Users holding an active registration for the event"""
        rows = db.query(Registration.user_id).filter(
            Registration.event_id == event_id,
            Registration.status.in_(ACTIVE_STATUSES)
        ).all()
        return [user_id for (user_id,) in rows]
