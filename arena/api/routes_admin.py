"""
Admin API routes - staff and organizer views across the system
"""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from arena.core import policy
from arena.core.db import get_db
from arena.models import User
from arena.models.enums import (
    AuditAction,
    CheckInStatus,
    EventStatus,
    NotificationType,
    RegistrationStatus,
    Role,
)
from arena.schemas.event import EventResponse
from arena.schemas.notification import AnnouncementCreate, AnnouncementResponse, AuditLogResponse
from arena.schemas.registration import RegistrationDetail, RegistrationUpdate
from arena.schemas.seat_map import SeatMapResponse
from arena.schemas.team import AdminTeamCreate, TeamResponse, TeamUpdate
from arena.schemas.user import RoleUpdate, UserResponse
from arena.services.analytics_service import AnalyticsService
from arena.services.announcement_service import AnnouncementService
from arena.services.audit_service import Actor, AuditService
from arena.services.checkin_service import CheckInService, registration_payload
from arena.services.event_service import EventService
from arena.services.export_service import ExportService
from arena.services.notification_service import NotificationService
from arena.services.registration_service import RegistrationService
from arena.services.seat_map_service import SeatMapService
from arena.services.team_service import TeamService
from arena.services.user_service import UserService
from arena.api.ws import websocket_manager
from arena.utils.responses import paginate, pagination_params, success_response
from arena.utils.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

checkin_service = CheckInService(websocket_manager)

# Events

@router.get("/events")
async def admin_list_events(
    status: Optional[EventStatus] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """All events including drafts; organizers see their own"""
    creator_id = policy.owner_scope(user, "event.view_admin")
    query = EventService.list(db, status=status, show_all=True, creator_id=creator_id)
    events, pagination = paginate(query, *pages)
    return success_response(
        message="Events retrieved",
        data={
            "events": [EventResponse.model_validate(event) for event in events],
            "pagination": pagination
        }
    )

@router.delete("/events/{event_id}")
async def admin_delete_event(
    event_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Delete an event with its registrations, teams and brackets"""
    policy.authorize(user, "event.delete")
    event = EventService.get(db, event_id)
    event_name = event.name
    participant_ids = EventService.participant_ids(db, event.id)
    EventService.delete(db, event)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.EVENT_DELETED,
        "Event",
        event_id,
        actor=Actor.from_user(user, request),
        metadata={"name": event_name, "registrations": len(participant_ids)}
    )
    background_tasks.add_task(
        NotificationService.notify_many,
        participant_ids,
        NotificationType.EVENT_UPDATE,
        "Event removed",
        f"{event_name} has been removed and your registration with it"
    )
    return success_response(message="Event deleted successfully")

@router.get("/events/{event_id}/registrations/export.xlsx")
async def export_registrations(
    event_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Download the event's registrations as an Excel workbook"""
    event = EventService.get(db, event_id)
    policy.authorize(user, "registration.view_admin", owner_id=event.creator_id)

    excel_bytes = ExportService.export_registrations(db, event)
    filename = f"event_{event.id}_registrations_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return Response(
        content=excel_bytes,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

# Users

@router.get("/users")
async def admin_list_users(
    role: Optional[Role] = None,
    search: Optional[str] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    policy.authorize(user, "user.list")
    users, pagination = paginate(UserService.list(db, role=role, search=search), *pages)
    return success_response(
        message="Users retrieved",
        data={
            "users": [UserResponse.model_validate(u) for u in users],
            "pagination": pagination
        }
    )

@router.patch("/users/{user_id}")
async def admin_change_role(
    user_id: int,
    role_data: RoleUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    policy.authorize(user, "user.change_role")
    target, previous = UserService.change_role(db, user, user_id, role_data.role)

    if previous != target.role:
        background_tasks.add_task(
            AuditService.record,
            AuditAction.USER_ROLE_CHANGED,
            "User",
            target.id,
            actor=Actor.from_user(user, request),
            changes={"role": {"from": previous.value, "to": target.role.value}}
        )
    return success_response(message="User role updated", data=UserResponse.model_validate(target))

# Teams

@router.get("/teams")
async def admin_list_teams(
    event_id: Optional[int] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    creator_id = policy.owner_scope(user, "team.view_admin")
    teams, pagination = paginate(TeamService.list(db, event_id=event_id, creator_id=creator_id), *pages)
    return success_response(
        message="Teams retrieved",
        data={
            "teams": [TeamResponse.model_validate(team) for team in teams],
            "pagination": pagination
        }
    )

@router.post("/teams", status_code=201)
async def admin_create_team(
    team_data: AdminTeamCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a team on behalf of a player, who becomes its captain"""
    event = EventService.get(db, team_data.event_id)
    policy.authorize(user, "team.create_for_event", owner_id=event.creator_id)
    team = TeamService.create_for_event(db, team_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_CREATED,
        "Team",
        team.id,
        actor=Actor.from_user(user, request),
        metadata={"event_id": team.event_id, "name": team.name, "captain_id": team_data.captain_id}
    )
    background_tasks.add_task(
        NotificationService.notify,
        team_data.captain_id,
        NotificationType.TEAM_UPDATE,
        "Team created",
        f"You are captain of {team.name}",
        link=f"/teams/{team.id}",
        event_id=team.event_id,
        team_id=team.id
    )
    return success_response(
        message="Team created successfully",
        data=TeamResponse.model_validate(team),
        status_code=201
    )

@router.patch("/teams/{team_id}")
async def admin_update_team(
    team_id: int,
    team_data: TeamUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    team = TeamService.get(db, team_id)
    policy.authorize(user, "team.create_for_event", owner_id=team.event.creator_id)
    team, changes = TeamService.apply_update(db, team, team_data)

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
async def admin_delete_team(
    team_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    team = TeamService.get(db, team_id)
    team_name, event_id = team.name, team.event_id
    TeamService.delete_team(db, team, user)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.TEAM_DELETED,
        "Team",
        team_id,
        actor=Actor.from_user(user, request),
        metadata={"event_id": event_id, "name": team_name}
    )
    return success_response(message="Team deleted successfully")

# Registrations

@router.get("/registrations")
async def admin_list_registrations(
    event_id: Optional[int] = None,
    status: Optional[RegistrationStatus] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    creator_id = policy.owner_scope(user, "registration.view_admin")
    query = RegistrationService.admin_list(db, event_id=event_id, status=status, creator_id=creator_id)
    registrations, pagination = paginate(query, *pages)
    return success_response(
        message="Registrations retrieved",
        data={
            "registrations": [RegistrationDetail.model_validate(r) for r in registrations],
            "pagination": pagination
        }
    )

@router.patch("/registrations/{registration_id}")
async def admin_update_registration(
    registration_id: int,
    registration_data: RegistrationUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Confirm, reject, mark paid or check in a registration"""
    registration = RegistrationService.get(db, registration_id)
    policy.authorize(user, "registration.update", owner_id=registration.event.creator_id)

    was_checked_in = registration.check_in_status == CheckInStatus.CHECKED_IN
    registration, changes = RegistrationService.admin_update(db, registration, registration_data)

    if changes:
        background_tasks.add_task(
            AuditService.record,
            AuditAction.REGISTRATION_UPDATED,
            "Registration",
            registration.id,
            actor=Actor.from_user(user, request),
            changes=changes
        )
        background_tasks.add_task(
            NotificationService.notify,
            registration.user_id,
            NotificationType.REGISTRATION_UPDATED,
            "Registration updated",
            f"Your registration for {registration.event.name} is now {registration.status.value}",
            link=f"/events/{registration.event_id}",
            event_id=registration.event_id,
            registration_id=registration.id
        )
    if registration_data.check_in_status == CheckInStatus.CHECKED_IN:
        background_tasks.add_task(
            checkin_service.broadcast_check_in,
            registration.event_id,
            registration_payload(registration),
            was_checked_in
        )
    if "seat_id" in changes:
        background_tasks.add_task(
            checkin_service.broadcast_seat_update,
            registration.event_id,
            changes["seat_id"]["from"],
            "AVAILABLE"
        )
    return success_response(
        message="Registration updated",
        data=RegistrationDetail.model_validate(registration)
    )

# Seat maps

@router.get("/seat-maps")
async def admin_list_seat_maps(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    creator_id = policy.owner_scope(user, "seat_map.view_admin")
    seat_maps = SeatMapService.list(db, creator_id=creator_id)
    return success_response(
        message="Seat maps retrieved",
        data=[
            {
                **SeatMapResponse.model_validate(seat_map).model_dump(),
                "seat_count": len(seat_map.seats),
                "event_count": SeatMapService.event_count(db, seat_map.id)
            }
            for seat_map in seat_maps
        ]
    )

# Audit log

@router.get("/audit-logs")
async def admin_list_audit_logs(
    action: Optional[AuditAction] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    pages: tuple = Depends(pagination_params),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    policy.authorize(user, "audit.read")
    query = AuditService.query(
        db,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date
    )
    logs, pagination = paginate(query, *pages)
    return success_response(
        message="Audit logs retrieved",
        data={
            "logs": [AuditLogResponse.model_validate(log) for log in logs],
            "pagination": pagination
        }
    )

# Announcements

@router.post("/announcements", status_code=201)
async def admin_create_announcement(
    announcement_data: AnnouncementCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Publish an announcement, optionally pushing it to its audience"""
    policy.authorize(user, "announcement.create")
    announcement = AnnouncementService.create(db, user.id, announcement_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.ANNOUNCEMENT_CREATED,
        "Announcement",
        announcement.id,
        actor=Actor.from_user(user, request),
        metadata={
            "title": announcement.title,
            "target_audience": announcement.target_audience.value,
            "send_notification": announcement_data.send_notification
        }
    )
    if announcement_data.send_notification:
        background_tasks.add_task(
            NotificationService.notify_many,
            AnnouncementService.audience(db, announcement),
            NotificationType.ANNOUNCEMENT,
            announcement.title,
            announcement.content,
            event_id=announcement.event_id
        )
    return success_response(
        message="Announcement created successfully",
        data=AnnouncementResponse.model_validate(announcement),
        status_code=201
    )

# Analytics

@router.get("/analytics")
async def admin_analytics(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    policy.authorize(user, "analytics.read")
    return success_response(message="Analytics retrieved", data=AnalyticsService.summary(db))
