"""
Event routes - public reads, organizer writes
"""

import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from arena.core import policy
from arena.core.db import get_db
from arena.core.errors import NotFound, ValidationError
from arena.models import User
from arena.models.enums import AuditAction, EventStatus, NotificationType
from arena.schemas.event import EventCreate, EventResponse, EventUpdate
from arena.schemas.seat_map import EventSeat
from arena.services.audit_service import Actor, AuditService
from arena.services.event_service import EventService
from arena.services.notification_service import NotificationService
from arena.services.qr_service import QRService
from arena.services.seat_map_service import SeatMapService
from arena.utils.responses import paginate, pagination_params, success_response
from arena.utils.security import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()

def get_visible_event(db: Session, event_id: int, user: Optional[User]):
    """Drafts are only visible to the people who may edit them"""
    event = EventService.get(db, event_id)
    if event.status == EventStatus.DRAFT:
        is_owner = user is not None and user.id == event.creator_id
        if user is None or not policy.is_allowed(user.role, "event.view_admin", is_owner):
            raise NotFound("Event")
    return event

@router.get("/events")
async def list_events(
    status: Optional[EventStatus] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db)
):
    """List published events, soonest first"""
    if status == EventStatus.DRAFT:
        raise ValidationError("Draft events are not listed publicly")
    events, pagination = paginate(EventService.list(db, status=status), *pages)
    return success_response(
        message="Events retrieved",
        data={
            "events": [EventResponse.model_validate(event) for event in events],
            "pagination": pagination
        }
    )

@router.post("/events", status_code=201)
async def create_event(
    event_data: EventCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create an event, optionally generating its seat map"""
    policy.authorize(user, "event.create")
    event = EventService.create(db, user.id, event_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.EVENT_CREATED,
        "Event",
        event.id,
        actor=Actor.from_user(user, request),
        metadata={"name": event.name, "seat_map_id": event.seat_map_id}
    )
    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event),
        status_code=201
    )

@router.get("/events/{event_id}")
async def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user)
):
    """Event details with seat availability"""
    event = get_visible_event(db, event_id, user)
    seats = SeatMapService.event_seats(db, event)

    data = EventResponse.model_validate(event).model_dump()
    data["seats_total"] = len(seats)
    data["seats_available"] = sum(1 for seat in seats if seat["status"] == "AVAILABLE")
    data["team_names"] = [team.name for team in event.teams]
    return success_response(message="Event details retrieved", data=data)

@router.put("/events/{event_id}")
async def update_event(
    event_id: int,
    event_data: EventUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Update an event; participants are told when something changed"""
    event = EventService.get(db, event_id)
    policy.authorize(user, "event.update", owner_id=event.creator_id)

    event, changes = EventService.update(db, event, event_data)

    if changes:
        background_tasks.add_task(
            AuditService.record,
            AuditAction.EVENT_UPDATED,
            "Event",
            event.id,
            actor=Actor.from_user(user, request),
            changes=changes
        )
        background_tasks.add_task(
            NotificationService.notify_many,
            EventService.participant_ids(db, event.id),
            NotificationType.EVENT_UPDATE,
            "Event updated",
            f"{event.name} has been updated",
            link=f"/events/{event.id}",
            event_id=event.id
        )
    return success_response(
        message="Event updated successfully",
        data={"event": EventResponse.model_validate(event), "changes": changes}
    )

@router.get("/events/{event_id}/seats")
async def get_event_seats(
    event_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user)
):
    """Seat grid of the event's map with the holder of each reserved seat"""
    event = get_visible_event(db, event_id, user)
    seats = [EventSeat(**seat) for seat in SeatMapService.event_seats(db, event)]
    return success_response(
        message="Seats retrieved",
        data={"event_id": event.id, "seat_map_id": event.seat_map_id, "seats": seats}
    )

@router.get("/events/{event_id}/qr.png")
async def get_event_qr(
    event_id: int,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user)
):
    """QR code linking to the event page"""
    event = get_visible_event(db, event_id, user)
    qr_bytes = QRService.generate_event_qr(event.id)
    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=event_{event.id}_qr.png"}
    )
