"""
Registration routes - players claim and cancel their own spots
"""

import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from arena.core.db import get_db
from arena.core.errors import RateLimited
from arena.models import User
from arena.models.enums import AuditAction, NotificationType, SeatStatus
from arena.schemas.registration import RegistrationCreate, RegistrationDetail
from arena.services.audit_service import Actor, AuditService
from arena.services.checkin_service import CheckInService
from arena.services.notification_service import NotificationService
from arena.services.registration_service import RegistrationService
from arena.api.ws import websocket_manager
from arena.utils.responses import success_response
from arena.utils.security import get_client_ip, get_current_user, rate_limit_check

logger = logging.getLogger(__name__)

router = APIRouter()

checkin_service = CheckInService(websocket_manager)

@router.get("/registrations")
async def list_my_registrations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """The caller's registrations, newest first"""
    registrations = RegistrationService.list_for_user(db, user.id)
    return success_response(
        message="Registrations retrieved",
        data=[RegistrationDetail.model_validate(r) for r in registrations]
    )

@router.post("/registrations", status_code=201)
async def create_registration(
    registration_data: RegistrationCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Register for an event, optionally claiming a seat"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        raise RateLimited()

    registration = RegistrationService.claim(
        db,
        user_id=user.id,
        event_id=registration_data.event_id,
        seat_id=registration_data.seat_id,
        team_id=registration_data.team_id
    )
    event_name = registration.event.name

    background_tasks.add_task(
        AuditService.record,
        AuditAction.REGISTRATION_CREATED,
        "Registration",
        registration.id,
        actor=Actor.from_user(user, request),
        metadata={
            "event_id": registration.event_id,
            "seat_id": registration.seat_id,
            "team_id": registration.team_id
        }
    )
    background_tasks.add_task(
        NotificationService.notify,
        user.id,
        NotificationType.REGISTRATION_CREATED,
        "Registration received",
        f"You are registered for {event_name}",
        link=f"/events/{registration.event_id}",
        event_id=registration.event_id,
        registration_id=registration.id
    )
    if registration.seat_id is not None:
        background_tasks.add_task(
            checkin_service.broadcast_seat_update,
            registration.event_id,
            registration.seat_id,
            SeatStatus.RESERVED.value,
            user.id
        )

    return success_response(
        message="Registration created successfully",
        data=RegistrationDetail.model_validate(registration),
        status_code=201
    )

@router.delete("/registrations/{registration_id}")
async def cancel_registration(
    registration_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Cancel one of the caller's registrations and release its seat"""
    released_seat = RegistrationService.get(db, registration_id).seat_id
    registration = RegistrationService.cancel(db, registration_id, user.id)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.REGISTRATION_CANCELLED,
        "Registration",
        registration.id,
        actor=Actor.from_user(user, request),
        metadata={"event_id": registration.event_id, "released_seat_id": released_seat}
    )
    background_tasks.add_task(
        NotificationService.notify,
        user.id,
        NotificationType.REGISTRATION_CANCELLED,
        "Registration cancelled",
        f"Your registration for {registration.event.name} was cancelled",
        event_id=registration.event_id,
        registration_id=registration.id
    )
    if released_seat is not None:
        background_tasks.add_task(
            checkin_service.broadcast_seat_update,
            registration.event_id,
            released_seat,
            SeatStatus.AVAILABLE.value
        )

    return success_response(
        message="Registration cancelled",
        data=RegistrationDetail.model_validate(registration)
    )
