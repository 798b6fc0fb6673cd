"""
User directory and role management
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from arena.core.errors import Forbidden, NotFound, ValidationError
from arena.models import Event, Registration, Team, TeamMember, User
from arena.models.enums import CheckInStatus, EventStatus, RegistrationStatus, Role

logger = logging.getLogger(__name__)

class UserService:
    """Service for user operations"""
    
    @staticmethod
    def get(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User")
        return user
    
    @staticmethod
    def list(db: Session, role: Optional[Role] = None, search: Optional[str] = None):
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern)
            ))
        return query.order_by(User.created_at.desc(), User.id.desc())
    
    @staticmethod
    def change_role(db: Session, actor: User, user_id: int, role: Role) -> Tuple[User, Role]:
        """Assign a new role; returns the user and the role it had before"""
        user = UserService.get(db, user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot change your own role")
        if actor.role != Role.SUPERADMIN and Role.SUPERADMIN in (user.role, role):
            raise Forbidden("Only a superadmin can grant or revoke the SUPERADMIN role")
        
        previous = user.role
        user.role = role
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.id} role changed from {previous.value} to {role.value} by user {actor.id}")
        return user, previous
    
    @staticmethod
    def profile(db: Session, user_id: int, viewer: Optional[User] = None) -> Dict[str, Any]:
        """
        Public profile: the user, their non-cancelled registrations split
        into upcoming and past, their teams and a few counts.
        The email is only shown to the user themself.
        """
        user = UserService.get(db, user_id)
        
        registrations = db.query(Registration).join(Event).options(
            joinedload(Registration.event),
            joinedload(Registration.team)
        ).filter(
            Registration.user_id == user_id,
            Registration.status != RegistrationStatus.CANCELLED
        ).order_by(Event.event_start.desc()).all()
        
        memberships = db.query(TeamMember).join(Team).options(
            joinedload(TeamMember.team)
        ).filter(TeamMember.user_id == user_id).order_by(Team.created_at.desc()).all()
        
        now = datetime.utcnow()
        upcoming, past = [], []
        for registration in registrations:
            event = registration.event
            entry = {
                "id": registration.id,
                "status": registration.status,
                "check_in_status": registration.check_in_status,
                "seat_id": registration.seat_id,
                "registered_at": registration.registered_at,
                "event": {
                    "id": event.id,
                    "name": event.name,
                    "game": event.game,
                    "event_start": event.event_start,
                    "status": event.status,
                },
                "team": None,
            }
            if registration.team is not None:
                entry["team"] = {
                    "id": registration.team.id,
                    "name": registration.team.name,
                    "tag": registration.team.tag,
                }
            if event.event_start > now and event.status != EventStatus.COMPLETED:
                upcoming.append(entry)
            else:
                past.append(entry)
        
        teams = [{
            "id": member.team.id,
            "name": member.team.name,
            "tag": member.team.tag,
            "event_id": member.team.event_id,
            "member_count": member.team.member_count,
            "user_role": member.role,
            "member_status": member.status,
        } for member in memberships]
        
        return {
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email if viewer is not None and viewer.id == user.id else None,
                "role": user.role,
                "created_at": user.created_at,
            },
            "stats": {
                "total_events": len(registrations),
                "upcoming_events": len(upcoming),
                "completed_events": sum(1 for r in registrations if r.event.status == EventStatus.COMPLETED),
                "checked_in_events": sum(
                    1 for r in registrations if r.check_in_status == CheckInStatus.CHECKED_IN
                ),
                "teams_joined": len(teams),
            },
            "upcoming_events": upcoming,
            "past_events": past,
            "teams": teams,
        }
