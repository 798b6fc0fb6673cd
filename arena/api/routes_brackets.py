"""
Bracket routes - organizers run the tournament tree
"""

import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from arena.core import policy
from arena.core.db import get_db
from arena.models import User
from arena.models.enums import AuditAction, MatchStatus, NotificationType
from arena.schemas.bracket import BracketCreate, BracketResponse, BracketUpdate, MatchResponse, MatchUpdate
from arena.services.audit_service import Actor, AuditService
from arena.services.bracket_service import BracketService
from arena.services.event_service import EventService
from arena.services.notification_service import NotificationService
from arena.utils.responses import success_response
from arena.utils.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

def participant_user_ids(bracket):
    """Users to notify about a bracket: solo entrants and every member of a team entrant"""
    user_ids = []
    for participant in bracket.participants:
        if participant.user_id:
            user_ids.append(participant.user_id)
    team_ids = {participant.team_id for participant in bracket.participants if participant.team_id}
    for team in bracket.event.teams:
        if team.id in team_ids:
            user_ids.extend(member.user_id for member in team.members)
    return user_ids

@router.get("/events/{event_id}/brackets")
async def list_brackets(event_id: int, db: Session = Depends(get_db)):
    event = EventService.get(db, event_id)
    brackets = BracketService.list_for_event(db, event.id)
    return success_response(
        message="Brackets retrieved",
        data=[BracketResponse.model_validate(bracket) for bracket in brackets]
    )

@router.post("/events/{event_id}/brackets", status_code=201)
async def create_bracket(
    event_id: int,
    bracket_data: BracketCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Seed a bracket from the confirmed, checked-in registrations"""
    event = EventService.get(db, event_id)
    policy.authorize(user, "bracket.create", owner_id=event.creator_id)
    bracket = BracketService.create(db, event, bracket_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.BRACKET_CREATED,
        "Bracket",
        bracket.id,
        actor=Actor.from_user(user, request),
        metadata={
            "event_id": event.id,
            "participants": len(bracket.participants),
            "seeding_method": bracket_data.seeding_method
        }
    )
    background_tasks.add_task(
        NotificationService.notify_many,
        participant_user_ids(bracket),
        NotificationType.BRACKET_UPDATE,
        "Bracket published",
        f"The {bracket.name} bracket is out",
        link=f"/brackets/{bracket.id}",
        event_id=event.id
    )
    return success_response(
        message="Bracket created successfully",
        data=BracketResponse.model_validate(bracket),
        status_code=201
    )

@router.get("/brackets/{bracket_id}")
async def get_bracket(bracket_id: int, db: Session = Depends(get_db)):
    bracket = BracketService.get(db, bracket_id)
    return success_response(message="Bracket retrieved", data=BracketResponse.model_validate(bracket))

@router.patch("/brackets/{bracket_id}")
async def update_bracket(
    bracket_id: int,
    bracket_data: BracketUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    bracket = BracketService.get(db, bracket_id)
    policy.authorize(user, "bracket.update", owner_id=bracket.event.creator_id)
    before = {"status": bracket.status.value, "current_round": bracket.current_round}
    bracket = BracketService.update(db, bracket, bracket_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.BRACKET_UPDATED,
        "Bracket",
        bracket.id,
        actor=Actor.from_user(user, request),
        changes={
            key: {"from": value, "to": after}
            for key, value, after in [
                ("status", before["status"], bracket.status.value),
                ("current_round", before["current_round"], bracket.current_round),
            ]
            if value != after
        }
    )
    return success_response(message="Bracket updated successfully", data=BracketResponse.model_validate(bracket))

@router.delete("/brackets/{bracket_id}")
async def delete_bracket(
    bracket_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    policy.authorize(user, "bracket.delete")
    BracketService.delete(db, bracket_id)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.BRACKET_DELETED,
        "Bracket",
        bracket_id,
        actor=Actor.from_user(user, request)
    )
    return success_response(message="Bracket deleted successfully")

@router.patch("/brackets/{bracket_id}/matches/{match_id}")
async def update_match(
    bracket_id: int,
    match_id: int,
    match_data: MatchUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Report scores or a winner; the winner moves on automatically"""
    bracket = BracketService.get(db, bracket_id)
    policy.authorize(user, "bracket.update", owner_id=bracket.event.creator_id)
    match = BracketService.report_match(db, bracket, match_id, match_data)

    background_tasks.add_task(
        AuditService.record,
        AuditAction.MATCH_UPDATED,
        "BracketMatch",
        match.id,
        actor=Actor.from_user(user, request),
        metadata={
            "bracket_id": bracket.id,
            "winner_id": match.winner_id,
            "score1": match.score1,
            "score2": match.score2,
            "status": match.status.value
        }
    )
    if match.status == MatchStatus.COMPLETED:
        background_tasks.add_task(
            NotificationService.notify_many,
            participant_user_ids(bracket),
            NotificationType.BRACKET_UPDATE,
            "Match result",
            f"{match.winner.name} won round {match.round} match {match.match_number}",
            link=f"/brackets/{bracket.id}",
            event_id=bracket.event_id
        )
    return success_response(
        message="Match updated successfully",
        data={
            "match": MatchResponse.model_validate(match),
            "bracket_status": bracket.status.value,
            "current_round": bracket.current_round
        }
    )
