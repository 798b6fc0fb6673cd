"""
Team routes - captains manage their rosters
"""

import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from arena.core.db import get_db
from arena.models import User
from arena.models.enums import AuditAction, NotificationType, TeamRole
from arena.schemas.team import InviteAnswer, MemberAdd, MemberRoleUpdate, TeamCreate, TeamMemberResponse, TeamResponse, TeamUpdate
from arena.services.audit_service import Actor, AuditService
from arena.services.notification_service import NotificationService
from arena.services.team_service import TeamService
from arena.utils.responses import paginate, pagination_params, success_response
from arena.utils.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/teams")
async def list_teams(
    event_id: Optional[int] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db)
):
    teams, pagination = paginate(TeamService.list(db, event_id=event_id), *pages)
    return success_response(
        message="Teams retrieved",
        data={
            "teams": [TeamResponse.model_validate(team) for team in teams],
            "pagination": pagination
        }
    )

@router.post("/teams", status_code=201)
async def create_team(
    team_data: TeamCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Found a team for an event; the caller becomes captain"""
    team = TeamService.create_team(db, user, team_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_CREATED,
        "Team",
        team.id,
        actor=Actor.from_user(user, request),
        metadata={"event_id": team.event_id, "name": team.name}
    )
    return success_response(
        message="Team created successfully",
        data=TeamResponse.model_validate(team),
        status_code=201
    )

@router.get("/teams/{team_id}")
async def get_team(team_id: int, db: Session = Depends(get_db)):
    team = TeamService.get(db, team_id)
    return success_response(message="Team retrieved", data=TeamResponse.model_validate(team))

@router.patch("/teams/{team_id}")
async def update_team(
    team_id: int,
    team_data: TeamUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    team = TeamService.get(db, team_id)
    team, changes = TeamService.update_team(db, team, user.id, team_data)

    if changes:
        background_tasks.add_task(
            AuditService.record,
            AuditAction.TEAM_UPDATED,
            "Team",
            team.id,
            actor=Actor.from_user(user, request),
            changes=changes
        )
    return success_response(message="Team updated successfully", data=TeamResponse.model_validate(team))

@router.delete("/teams/{team_id}")
async def delete_team(
    team_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Delete a team the caller created"""
    team = TeamService.get(db, team_id)
    team_name, event_id = team.name, team.event_id
    member_ids = [member.user_id for member in team.members if member.user_id != user.id]
    TeamService.delete_team(db, team, user)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_DELETED,
        "Team",
        team_id,
        actor=Actor.from_user(user, request),
        metadata={"event_id": event_id, "name": team_name}
    )
    background_tasks.add_task(
        NotificationService.notify_many,
        member_ids,
        NotificationType.TEAM_UPDATE,
        "Team disbanded",
        f"Team {team_name} has been deleted",
        event_id=event_id
    )
    return success_response(message="Team deleted successfully")

@router.post("/teams/{team_id}/members", status_code=201)
async def invite_member(
    team_id: int,
    member_data: MemberAdd,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Invite a user by email; they join once they accept"""
    team = TeamService.get(db, team_id)
    member = TeamService.invite_member(db, team, user.id, member_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_MEMBER_ADDED,
        "TeamMember",
        member.id,
        actor=Actor.from_user(user, request),
        metadata={"team_id": team.id, "user_id": member.user_id, "role": member.role.value}
    )
    background_tasks.add_task(
        NotificationService.notify,
        member.user_id,
        NotificationType.TEAM_INVITE,
        "Team invitation",
        f"{user.name} invited you to join {team.name}",
        link=f"/teams/{team.id}",
        event_id=team.event_id,
        team_id=team.id,
        metadata={"member_id": member.id}
    )
    return success_response(
        message="Invitation sent",
        data=TeamMemberResponse.model_validate(member),
        status_code=201
    )

@router.post("/teams/{team_id}/members/{member_id}/respond")
async def respond_to_invite(
    team_id: int,
    member_id: int,
    answer: InviteAnswer,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Accept or decline a pending invitation"""
    team = TeamService.get(db, team_id)
    member = TeamService.respond_to_invite(db, team, member_id, user.id, answer.action)

    captain_ids = [m.user_id for m in team.members if m.role == TeamRole.CAPTAIN]
    verb = "accepted" if member is not None else "declined"
    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_MEMBER_UPDATED if member is not None else AuditAction.TEAM_MEMBER_REMOVED,
        "TeamMember",
        member_id,
        actor=Actor.from_user(user, request),
        metadata={"team_id": team.id, "answer": answer.action}
    )
    background_tasks.add_task(
        NotificationService.notify_many,
        captain_ids,
        NotificationType.TEAM_UPDATE,
        f"Invitation {verb}",
        f"{user.name} {verb} the invitation to {team.name}",
        link=f"/teams/{team.id}",
        team_id=team.id
    )
    return success_response(
        message=f"Invitation {verb}",
        data=TeamMemberResponse.model_validate(member) if member is not None else None
    )

@router.patch("/teams/{team_id}/members/{member_id}")
async def change_member_role(
    team_id: int,
    member_id: int,
    role_data: MemberRoleUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Captain changes a member's role; promoting a new captain hands over captaincy"""
    team = TeamService.get(db, team_id)
    member, previous = TeamService.change_role(db, team, member_id, user.id, role_data.role)

    if member.role != previous:
        background_tasks.add_task(
            AuditService.record,
            AuditAction.TEAM_MEMBER_UPDATED,
            "TeamMember",
            member.id,
            actor=Actor.from_user(user, request),
            changes={"role": {"from": previous.value, "to": member.role.value}}
        )
        background_tasks.add_task(
            NotificationService.notify,
            member.user_id,
            NotificationType.TEAM_UPDATE,
            "Role changed",
            f"Your role in {team.name} is now {member.role.value}",
            link=f"/teams/{team.id}",
            team_id=team.id
        )
    return success_response(message="Member role updated", data=TeamResponse.model_validate(team))

@router.delete("/teams/{team_id}/members/{member_id}")
async def remove_member(
    team_id: int,
    member_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Captain removes a member, or a member leaves"""
    team = TeamService.get(db, team_id)
    member = TeamService.remove_member(db, team, member_id, user.id)
    removed_user_id = member.user_id

    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_MEMBER_REMOVED,
        "TeamMember",
        member_id,
        actor=Actor.from_user(user, request),
        metadata={"team_id": team.id, "user_id": removed_user_id}
    )
    if removed_user_id != user.id:
        background_tasks.add_task(
            NotificationService.notify,
            removed_user_id,
            NotificationType.TEAM_UPDATE,
            "Removed from team",
            f"You were removed from {team.name}",
            team_id=team.id
        )
    return success_response(message="Member removed", data=TeamResponse.model_validate(team))
