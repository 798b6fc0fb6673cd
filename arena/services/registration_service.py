"""
Registration and seat claim service

A claim is one transaction: the event's registration counter is bumped with
a ceiling, the seat flips AVAILABLE -> RESERVED through a conditional UPDATE
and the registration row is written. The affected-row count of each
conditional UPDATE decides the winner when two requests race for the same
seat or the last slot.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arena.core.errors import (
    CapacityExceeded,
    DuplicateRegistration,
    Forbidden,
    NotFound,
    SeatUnavailable,
    ValidationError,
)
from arena.models import Event, Registration, Seat, Team, TeamMember
from arena.models.enums import (
    CheckInStatus,
    EventStatus,
    MemberStatus,
    PaymentStatus,
    RegistrationStatus,
    SeatStatus,
)
from arena.schemas.registration import RegistrationUpdate
from arena.services.audit_service import capture_changes, snapshot

logger = logging.getLogger(__name__)

# Registrations that hold a slot (and possibly a seat)
ACTIVE_STATUSES = [RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED]

# Statuses that end a registration; neither can be left again
CLOSED_STATUSES = [RegistrationStatus.CANCELLED, RegistrationStatus.REJECTED]

UPDATABLE_FIELDS = ["status", "payment_status", "check_in_status", "seat_id"]


class ClaimOutcome(str, enum.Enum):
    COMMITTED = "COMMITTED"
    ALREADY_TAKEN = "ALREADY_TAKEN"
    CAPACITY_FULL = "CAPACITY_FULL"


@dataclass
class ClaimResult:
    outcome: ClaimOutcome
    registration: Optional[Registration] = None


class RegistrationService:
    """Service for registration operations"""

    @staticmethod
    def get(db: Session, registration_id: int) -> Registration:
        registration = db.query(Registration).filter(Registration.id == registration_id).first()
        if not registration:
            raise NotFound("Registration")
        return registration

    @staticmethod
    def check_open(event: Event, now: datetime) -> None:
        """Registration is accepted only while open and inside the window"""
        if event.status != EventStatus.REGISTRATION_OPEN:
            raise ValidationError("Registration is not open for this event")
        if event.registration_start and now < event.registration_start:
            raise ValidationError("Registration has not started yet")
        if event.registration_end and now > event.registration_end:
            raise ValidationError("Registration has closed")

    @staticmethod
    def check_team(db: Session, event: Event, user_id: int, team_id: int) -> Team:
        team = db.query(Team).filter(Team.id == team_id).first()
        if not team or team.event_id != event.id:
            raise ValidationError("Team does not belong to this event")
        membership = db.query(TeamMember).filter(
            TeamMember.team_id == team_id,
            TeamMember.user_id == user_id,
            TeamMember.status == MemberStatus.ACTIVE
        ).first()
        if not membership:
            raise ValidationError("You are not an active member of this team")
        return team

    @staticmethod
    def _reserve_slot(db: Session, event_id: int) -> bool:
        """Increment registration_count unless max_players has been reached"""
        updated = db.query(Event).filter(
            Event.id == event_id,
            or_(Event.max_players.is_(None), Event.registration_count < Event.max_players)
        ).update(
            {Event.registration_count: Event.registration_count + 1},
            synchronize_session=False
        )
        return updated == 1

    @staticmethod
    def _reserve_seat(db: Session, seat_id: int) -> bool:
        updated = db.query(Seat).filter(
            Seat.id == seat_id,
            Seat.status == SeatStatus.AVAILABLE
        ).update({Seat.status: SeatStatus.RESERVED}, synchronize_session=False)
        return updated == 1

    @staticmethod
    def _release(db: Session, registration: Registration) -> None:
        """Give back the seat and the slot held by an active registration"""
        if registration.seat_id is not None:
            db.query(Seat).filter(
                Seat.id == registration.seat_id,
                Seat.status == SeatStatus.RESERVED
            ).update({Seat.status: SeatStatus.AVAILABLE}, synchronize_session=False)
            registration.seat_id = None
        db.query(Event).filter(
            Event.id == registration.event_id,
            Event.registration_count > 0
        ).update(
            {Event.registration_count: Event.registration_count - 1},
            synchronize_session=False
        )

    @staticmethod
    def try_claim(
        db: Session,
        user_id: int,
        event_id: int,
        seat_id: Optional[int] = None,
        team_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ClaimResult:
        """
        Register a user for an event, optionally on a seat.

        Validation failures raise; losing a race is reported through the
        returned outcome so callers can decide how to answer.
        """
        now = now or datetime.utcnow()

        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise NotFound("Event")
        RegistrationService.check_open(event, now)

        existing = db.query(Registration).filter(
            Registration.user_id == user_id,
            Registration.event_id == event_id
        ).first()
        if existing and existing.status != RegistrationStatus.CANCELLED:
            raise DuplicateRegistration()

        if team_id is not None:
            RegistrationService.check_team(db, event, user_id, team_id)

        if seat_id is not None:
            seat = db.query(Seat).filter(Seat.id == seat_id).first()
            if not seat or event.seat_map_id is None or seat.seat_map_id != event.seat_map_id:
                raise SeatUnavailable("Seat does not belong to this event")
            if seat.status != SeatStatus.AVAILABLE or seat.registration is not None:
                return ClaimResult(ClaimOutcome.ALREADY_TAKEN)

        if event.entry_fee > 0:
            payment_status, payment_amount = PaymentStatus.PENDING, event.entry_fee
        else:
            payment_status, payment_amount = PaymentStatus.PAID, 0.0

        try:
            if not RegistrationService._reserve_slot(db, event_id):
                db.rollback()
                return ClaimResult(ClaimOutcome.CAPACITY_FULL)

            if seat_id is not None and not RegistrationService._reserve_seat(db, seat_id):
                db.rollback()
                return ClaimResult(ClaimOutcome.ALREADY_TAKEN)

            if existing:
                registration = existing
                registration.status = RegistrationStatus.PENDING
                registration.check_in_status = CheckInStatus.NOT_CHECKED_IN
                registration.checked_in_at = None
                registration.registered_at = now
            else:
                registration = Registration(user_id=user_id, event_id=event_id, registered_at=now)
                db.add(registration)
            registration.seat_id = seat_id
            registration.team_id = team_id
            registration.payment_status = payment_status
            registration.payment_amount = payment_amount
            db.commit()
        except IntegrityError:
            db.rollback()
            duplicate = db.query(Registration).filter(
                Registration.user_id == user_id,
                Registration.event_id == event_id,
                Registration.status != RegistrationStatus.CANCELLED
            ).first()
            if duplicate:
                raise DuplicateRegistration()
            logger.info(f"Seat {seat_id} was bound by a concurrent registration")
            return ClaimResult(ClaimOutcome.ALREADY_TAKEN)
        except Exception:
            db.rollback()
            raise

        db.refresh(registration)
        logger.info(f"User {user_id} registered for event {event_id} (seat {seat_id})")
        return ClaimResult(ClaimOutcome.COMMITTED, registration)

    @staticmethod
    def claim(
        db: Session,
        user_id: int,
        event_id: int,
        seat_id: Optional[int] = None,
        team_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Registration:
        """Like `try_claim` but a lost race raises"""
        result = RegistrationService.try_claim(db, user_id, event_id, seat_id, team_id, now)
        if result.outcome == ClaimOutcome.ALREADY_TAKEN:
            raise SeatUnavailable()
        if result.outcome == ClaimOutcome.CAPACITY_FULL:
            raise CapacityExceeded("Event is full")
        return result.registration

    @staticmethod
    def cancel(
        db: Session,
        registration_id: int,
        user_id: int,
        now: Optional[datetime] = None
    ) -> Registration:
        """Owner cancels before the event starts; the seat is released"""
        now = now or datetime.utcnow()
        registration = RegistrationService.get(db, registration_id)
        if registration.user_id != user_id:
            raise Forbidden("You can only cancel your own registrations")
        if registration.status in CLOSED_STATUSES:
            raise ValidationError(f"Registration is already {registration.status.value.lower()}")

        event = registration.event
        if event.status in (EventStatus.IN_PROGRESS, EventStatus.COMPLETED) or now >= event.event_start:
            raise ValidationError("Cannot cancel a registration once the event has started")

        try:
            RegistrationService._release(db, registration)
            registration.status = RegistrationStatus.CANCELLED
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(registration)
        logger.info(f"Registration {registration.id} cancelled by user {user_id}")
        return registration

    @staticmethod
    def admin_update(
        db: Session,
        registration: Registration,
        data: RegistrationUpdate
    ) -> Tuple[Registration, Dict]:
        """Change status, payment or check-in; returns the registration and its diff"""
        before = snapshot(registration, UPDATABLE_FIELDS)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        new_status = updates.get("status")
        if new_status and new_status != registration.status:
            if registration.status in CLOSED_STATUSES:
                raise ValidationError("Cancelled or rejected registrations cannot be reopened")

        try:
            if new_status in CLOSED_STATUSES and registration.status not in CLOSED_STATUSES:
                RegistrationService._release(db, registration)
            if new_status:
                registration.status = new_status
            if "payment_status" in updates:
                registration.payment_status = updates["payment_status"]
            if "check_in_status" in updates:
                check_in = updates["check_in_status"]
                if check_in == CheckInStatus.CHECKED_IN and registration.check_in_status != CheckInStatus.CHECKED_IN:
                    registration.checked_in_at = datetime.utcnow()
                elif check_in == CheckInStatus.NOT_CHECKED_IN:
                    registration.checked_in_at = None
                registration.check_in_status = check_in
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(registration)
        return registration, capture_changes(before, snapshot(registration, UPDATABLE_FIELDS))

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> List[Registration]:
        return db.query(Registration).filter(
            Registration.user_id == user_id
        ).order_by(Registration.registered_at.desc()).all()

    @staticmethod
    def admin_list(
        db: Session,
        event_id: Optional[int] = None,
        status: Optional[RegistrationStatus] = None,
        creator_id: Optional[int] = None
    ):
        """Query of registrations; `creator_id` scopes to events an organizer owns"""
        query = db.query(Registration)
        if event_id is not None:
            query = query.filter(Registration.event_id == event_id)
        if status is not None:
            query = query.filter(Registration.status == status)
        if creator_id is not None:
            query = query.join(Event, Registration.event_id == Event.id).filter(Event.creator_id == creator_id)
        return query.order_by(Registration.registered_at.desc(), Registration.id.desc())
