"""
Team and roster management

Roster capacity and the event's team cap are enforced with conditional
UPDATEs on the denormalised counters, in the same transaction as the row
they account for.
"""

import logging
from typing import Dict, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arena.core import policy
from arena.core.errors import (
    CapacityExceeded,
    Conflict,
    DuplicateTeamName,
    Forbidden,
    NotFound,
    ValidationError,
)
from arena.models import Event, Registration, Team, TeamMember, User
from arena.models.enums import EventStatus, MemberStatus, TeamRole
from arena.schemas.team import AdminTeamCreate, MemberAdd, TeamCreate, TeamUpdate
from arena.services.audit_service import capture_changes, snapshot
from arena.services.registration_service import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

CLOSED_EVENT_STATUSES = [EventStatus.COMPLETED, EventStatus.CANCELLED]

MANAGER_ROLES = [TeamRole.CAPTAIN, TeamRole.CO_CAPTAIN]


class TeamService:
    """Service for team operations"""

    @staticmethod
    def get(db: Session, team_id: int) -> Team:
        team = db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise NotFound("Team")
        return team

    @staticmethod
    def list(db: Session, event_id: Optional[int] = None, creator_id: Optional[int] = None):
        """Teams query; `creator_id` scopes to events an organizer owns"""
        query = db.query(Team)
        if event_id is not None:
            query = query.filter(Team.event_id == event_id)
        if creator_id is not None:
            query = query.join(Event, Team.event_id == Event.id).filter(Event.creator_id == creator_id)
        return query.order_by(Team.created_at.asc(), Team.id.asc())

    @staticmethod
    def get_member(db: Session, team: Team, member_id: int) -> TeamMember:
        member = db.query(TeamMember).filter(
            TeamMember.id == member_id,
            TeamMember.team_id == team.id
        ).first()
        if not member:
            raise NotFound("Team member")
        return member

    @staticmethod
    def membership(db: Session, team_id: int, user_id: int) -> Optional[TeamMember]:
        """Active membership of a user in a team, if any"""
        return db.query(TeamMember).filter(
            TeamMember.team_id == team_id,
            TeamMember.user_id == user_id,
            TeamMember.status == MemberStatus.ACTIVE
        ).first()

    @staticmethod
    def _require_role(db: Session, team: Team, user_id: int, roles, message: str) -> TeamMember:
        member = TeamService.membership(db, team.id, user_id)
        if not member or member.role not in roles:
            raise Forbidden(message)
        return member

    @staticmethod
    def _check_name(db: Session, event_id: int, name: Optional[str], exclude_id: Optional[int] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Team name is required")
        query = db.query(Team).filter(Team.event_id == event_id, Team.name == name)
        if exclude_id is not None:
            query = query.filter(Team.id != exclude_id)
        if query.first():
            raise DuplicateTeamName()
        return name

    @staticmethod
    def _check_not_on_team(db: Session, event_id: int, user_id: int, message: str) -> None:
        existing = db.query(TeamMember).filter(
            TeamMember.event_id == event_id,
            TeamMember.user_id == user_id
        ).first()
        if existing:
            raise Conflict(message)

    @staticmethod
    def _reserve_team_slot(db: Session, event_id: int) -> bool:
        """Increment team_count unless max_teams has been reached"""
        updated = db.query(Event).filter(
            Event.id == event_id,
            or_(Event.max_teams.is_(None), Event.team_count < Event.max_teams)
        ).update({Event.team_count: Event.team_count + 1}, synchronize_session=False)
        return updated == 1

    @staticmethod
    def _reserve_roster_slot(db: Session, team_id: int, team_size: int) -> bool:
        updated = db.query(Team).filter(
            Team.id == team_id,
            Team.member_count < team_size
        ).update({Team.member_count: Team.member_count + 1}, synchronize_session=False)
        return updated == 1

    @staticmethod
    def _release_roster_slot(db: Session, team_id: int) -> None:
        db.query(Team).filter(
            Team.id == team_id,
            Team.member_count > 0
        ).update({Team.member_count: Team.member_count - 1}, synchronize_session=False)

    @staticmethod
    def _create(db: Session, event: Event, captain_id: int, data: TeamCreate) -> Team:
        name = TeamService._check_name(db, event.id, data.name)
        TeamService._check_not_on_team(db, event.id, captain_id, "Captain is already on a team for this event")

        try:
            if not TeamService._reserve_team_slot(db, event.id):
                raise CapacityExceeded("Event has reached its maximum number of teams")
            team = Team(
                event_id=event.id,
                name=name,
                tag=data.tag,
                description=data.description,
                creator_id=captain_id,
                member_count=1,
            )
            team.members = [TeamMember(
                event_id=event.id,
                user_id=captain_id,
                role=TeamRole.CAPTAIN,
                status=MemberStatus.ACTIVE,
            )]
            db.add(team)
            db.commit()
        except IntegrityError:
            db.rollback()
            if db.query(Team).filter(Team.event_id == event.id, Team.name == name).first():
                raise DuplicateTeamName()
            raise Conflict("Captain is already on a team for this event")
        except Exception:
            db.rollback()
            raise

        db.refresh(team)
        logger.info(f"Team {team.id} created for event {event.id} with captain {captain_id}")
        return team

    @staticmethod
    def create_team(db: Session, user: User, data: TeamCreate) -> Team:
        """A player founds a team and becomes its captain"""
        event = db.query(Event).filter(Event.id == data.event_id).first()
        if not event:
            raise NotFound("Event")
        if event.status != EventStatus.REGISTRATION_OPEN:
            raise ValidationError("Teams can only be created while registration is open")
        return TeamService._create(db, event, user.id, data)

    @staticmethod
    def create_for_event(db: Session, data: AdminTeamCreate) -> Team:
        """Staff create a team on behalf of the named captain"""
        event = db.query(Event).filter(Event.id == data.event_id).first()
        if not event:
            raise NotFound("Event")
        if event.status in CLOSED_EVENT_STATUSES:
            raise ValidationError("Cannot add teams to a finished event")
        captain = db.query(User).filter(User.id == data.captain_id).first()
        if not captain:
            raise NotFound("User")
        return TeamService._create(db, event, captain.id, data)

    @staticmethod
    def invite_member(db: Session, team: Team, inviter_id: int, data: MemberAdd) -> TeamMember:
        """Captain or co-captain invites a user by email"""
        TeamService._require_role(
            db, team, inviter_id, MANAGER_ROLES, "Only the captain or a co-captain can invite members"
        )
        if data.role == TeamRole.CAPTAIN:
            raise ValidationError("A new member cannot join as captain; change roles after they accept")

        invitee = db.query(User).filter(User.email == data.email.strip().lower()).first()
        if not invitee:
            raise NotFound("User")
        TeamService._check_not_on_team(db, team.event_id, invitee.id, "User is already on a team for this event")

        try:
            if not TeamService._reserve_roster_slot(db, team.id, team.event.team_size):
                raise CapacityExceeded(f"Team is full (max {team.event.team_size} members)")
            member = TeamMember(
                team_id=team.id,
                event_id=team.event_id,
                user_id=invitee.id,
                role=data.role,
                status=MemberStatus.INVITED,
            )
            db.add(member)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("User is already on a team for this event")
        except Exception:
            db.rollback()
            raise

        db.refresh(member)
        return member

    @staticmethod
    def respond_to_invite(
        db: Session,
        team: Team,
        member_id: int,
        user_id: int,
        action: str
    ) -> Optional[TeamMember]:
        """Accept (member becomes ACTIVE) or decline (invite removed); None on decline"""
        member = TeamService.get_member(db, team, member_id)
        if member.user_id != user_id:
            raise Forbidden("Only the invited user can answer this invitation")
        if member.status != MemberStatus.INVITED:
            raise ValidationError("There is no pending invitation to answer")

        if action == "accept":
            member.status = MemberStatus.ACTIVE
            db.commit()
            db.refresh(member)
            return member

        try:
            db.delete(member)
            TeamService._release_roster_slot(db, team.id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return None

    @staticmethod
    def change_role(
        db: Session,
        team: Team,
        member_id: int,
        actor_id: int,
        role: str
    ) -> Tuple[TeamMember, TeamRole]:
        """Captain-only; returns the member and its previous role"""
        actor = TeamService._require_role(
            db, team, actor_id, [TeamRole.CAPTAIN], "Only the captain can change roles"
        )
        try:
            new_role = TeamRole(role)
        except ValueError:
            raise ValidationError(
                f"Invalid role. Must be one of: {', '.join(r.value for r in TeamRole)}"
            )

        member = TeamService.get_member(db, team, member_id)
        if member.status != MemberStatus.ACTIVE:
            raise ValidationError("Roles can only be changed for active members")
        previous = member.role

        if member.id == actor.id:
            if new_role != TeamRole.CAPTAIN:
                raise ValidationError("The captain cannot demote themselves; promote another member first")
            return member, previous

        if new_role == TeamRole.CAPTAIN:
            actor.role = TeamRole.CO_CAPTAIN
        member.role = new_role
        db.commit()
        db.refresh(member)
        return member, previous

    @staticmethod
    def remove_member(db: Session, team: Team, member_id: int, actor_id: int) -> TeamMember:
        """Captain removes anyone, members may leave; creator and captain stay"""
        member = TeamService.get_member(db, team, member_id)
        if member.user_id != actor_id:
            TeamService._require_role(
                db, team, actor_id, [TeamRole.CAPTAIN], "Only the captain can remove other members"
            )
        if member.user_id == team.creator_id:
            raise ValidationError("The team creator cannot be removed")
        if member.role == TeamRole.CAPTAIN:
            raise ValidationError("The captain cannot be removed; transfer captaincy first")

        try:
            db.query(Registration).filter(
                Registration.team_id == team.id,
                Registration.user_id == member.user_id
            ).update({Registration.team_id: None}, synchronize_session=False)
            db.delete(member)
            TeamService._release_roster_slot(db, team.id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"User {member.user_id} removed from team {team.id}")
        return member

    @staticmethod
    def update_team(db: Session, team: Team, actor_id: int, data: TeamUpdate) -> Tuple[Team, Dict]:
        TeamService._require_role(
            db, team, actor_id, MANAGER_ROLES, "Only the captain or a co-captain can edit the team"
        )
        return TeamService.apply_update(db, team, data)

    @staticmethod
    def apply_update(db: Session, team: Team, data: TeamUpdate) -> Tuple[Team, Dict]:
        fields = ["name", "tag", "description"]
        before = snapshot(team, fields)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates:
            updates["name"] = TeamService._check_name(db, team.event_id, updates["name"], exclude_id=team.id)
        for field, value in updates.items():
            setattr(team, field, value)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateTeamName()
        db.refresh(team)
        return team, capture_changes(before, snapshot(team, fields))

    @staticmethod
    def delete_team(db: Session, team: Team, user: User) -> None:
        """Creator or superadmin; refused while active registrations point at the team"""
        if user.id != team.creator_id and not policy.is_allowed(user.role, "team.delete"):
            raise Forbidden("Only the team creator can delete the team")
        active = db.query(Registration).filter(
            Registration.team_id == team.id,
            Registration.status.in_(ACTIVE_STATUSES)
        ).count()
        if active:
            raise Conflict(f"Team has {active} active registration(s) and cannot be deleted")

        try:
            db.delete(team)
            db.query(Event).filter(
                Event.id == team.event_id,
                Event.team_count > 0
            ).update({Event.team_count: Event.team_count - 1}, synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Team {team.id} deleted by user {user.id}")
