"""
Tests for teams, rosters and the event team cap
"""

import pytest

from arena.core.db import SessionLocal
from arena.core.errors import (
    CapacityExceeded,
    Conflict,
    DuplicateTeamName,
    Forbidden,
    NotFound,
    ValidationError,
)
from arena.models import Event, Team, TeamMember
from arena.models.enums import MemberStatus, TeamRole
from arena.schemas.team import AdminTeamCreate, MemberAdd, TeamCreate, TeamUpdate
from arena.services.registration_service import RegistrationService
from arena.services.team_service import TeamService

from conftest import make_event, make_user

@pytest.fixture
def team_event(db_session, users, seat_map):
    return make_event(db_session, users["organizer"], seat_map, team_size=3, max_teams=4)

@pytest.fixture
def team(db_session, users, team_event):
    return TeamService.create_team(db_session, users["player"], TeamCreate(event_id=team_event.id, name="Night Owls", tag="NO"))

def invite_and_accept(db, team, captain, user, role=TeamRole.MEMBER):
    member = TeamService.invite_member(db, team, captain.id, MemberAdd(email=user.email, role=role))
    return TeamService.respond_to_invite(db, team, member.id, user.id, "accept")

def test_create_team_makes_creator_captain(db_session, users, team_event, team):
    assert team.creator_id == users["player"].id
    assert team.member_count == 1
    assert len(team.members) == 1
    captain = team.members[0]
    assert captain.role == TeamRole.CAPTAIN
    assert captain.status == MemberStatus.ACTIVE

    db_session.refresh(team_event)
    assert team_event.team_count == 1

def test_second_team_over_max_teams(db_session, users, seat_map):
    """max_teams=1 leaves room for exactly one team"""
    event = make_event(db_session, users["organizer"], seat_map, team_size=2, max_teams=1)
    TeamService.create_team(db_session, users["player"], TeamCreate(event_id=event.id, name="First"))

    with pytest.raises(CapacityExceeded):
        TeamService.create_team(db_session, users["player2"], TeamCreate(event_id=event.id, name="Second"))

    db_session.refresh(event)
    assert event.team_count == 1
    assert db_session.query(Team).filter(Team.event_id == event.id).count() == 1

def test_stale_team_create_hits_the_cap(db_session, users, seat_map):
    """A session that saw a free team slot still loses once the last slot is taken"""
    event = make_event(db_session, users["organizer"], seat_map, team_size=2, max_teams=1)

    stale = SessionLocal()
    try:
        seen = stale.query(Event).filter(Event.id == event.id).first()
        assert seen.team_count < seen.max_teams

        TeamService.create_team(db_session, users["player"], TeamCreate(event_id=event.id, name="First"))

        with pytest.raises(CapacityExceeded):
            TeamService.create_team(stale, users["player2"], TeamCreate(event_id=event.id, name="Second"))
    finally:
        stale.close()

    db_session.expire_all()
    assert db_session.get(Event, event.id).team_count == 1
    assert [t.name for t in db_session.query(Team).filter(Team.event_id == event.id)] == ["First"]

def test_duplicate_team_name(db_session, users, team_event, team):
    with pytest.raises(DuplicateTeamName):
        TeamService.create_team(db_session, users["player2"], TeamCreate(event_id=team_event.id, name="Night Owls"))
    db_session.refresh(team_event)
    assert team_event.team_count == 1

def test_blank_team_name(db_session, users, team_event):
    with pytest.raises(ValidationError):
        TeamService.create_team(db_session, users["player"], TeamCreate(event_id=team_event.id, name="   "))

def test_one_team_per_event(db_session, users, team_event, team):
    with pytest.raises(Conflict):
        TeamService.create_team(db_session, users["player"], TeamCreate(event_id=team_event.id, name="Another"))

def test_invite_and_accept(db_session, users, team):
    member = TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player2"].email))
    assert member.status == MemberStatus.INVITED

    accepted = TeamService.respond_to_invite(db_session, team, member.id, users["player2"].id, "accept")
    assert accepted.status == MemberStatus.ACTIVE
    db_session.refresh(team)
    assert team.member_count == 2

def test_decline_frees_roster_slot(db_session, users, team):
    member = TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player2"].email))
    assert TeamService.respond_to_invite(db_session, team, member.id, users["player2"].id, "decline") is None

    db_session.refresh(team)
    assert team.member_count == 1
    assert db_session.query(TeamMember).filter(TeamMember.user_id == users["player2"].id).count() == 0

def test_only_invitee_answers(db_session, users, team):
    member = TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player2"].email))
    with pytest.raises(Forbidden):
        TeamService.respond_to_invite(db_session, team, member.id, users["player3"].id, "accept")

def test_roster_never_exceeds_team_size(db_session, users, team):
    """team_size=3: captain plus two invites fill the roster"""
    TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player2"].email))
    TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player3"].email))

    extra = make_user(db_session, "Dave")
    with pytest.raises(CapacityExceeded):
        TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=extra.email))

    db_session.refresh(team)
    assert team.member_count == 3
    assert db_session.query(TeamMember).filter(TeamMember.team_id == team.id).count() == 3

def test_invite_unknown_email(db_session, users, team):
    with pytest.raises(NotFound):
        TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email="nobody@example.com"))

def test_invite_user_on_another_team(db_session, users, team_event, team):
    TeamService.create_team(db_session, users["player2"], TeamCreate(event_id=team_event.id, name="Rivals"))
    with pytest.raises(Conflict):
        TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player2"].email))

def test_plain_member_cannot_invite(db_session, users, team):
    invite_and_accept(db_session, team, users["player"], users["player2"])
    with pytest.raises(Forbidden):
        TeamService.invite_member(db_session, team, users["player2"].id, MemberAdd(email=users["player3"].email))

def test_co_captain_can_invite(db_session, users, team):
    invite_and_accept(db_session, team, users["player"], users["player2"], TeamRole.CO_CAPTAIN)
    member = TeamService.invite_member(db_session, team, users["player2"].id, MemberAdd(email=users["player3"].email))
    assert member.status == MemberStatus.INVITED

def test_promote_new_captain_demotes_old(db_session, users, team):
    member = invite_and_accept(db_session, team, users["player"], users["player2"])

    promoted, previous = TeamService.change_role(db_session, team, member.id, users["player"].id, "CAPTAIN")
    assert previous == TeamRole.MEMBER
    assert promoted.role == TeamRole.CAPTAIN

    old_captain = TeamService.membership(db_session, team.id, users["player"].id)
    assert old_captain.role == TeamRole.CO_CAPTAIN
    captains = [m for m in team.members if m.role == TeamRole.CAPTAIN]
    assert len(captains) == 1

def test_invalid_role(db_session, users, team):
    member = invite_and_accept(db_session, team, users["player"], users["player2"])
    with pytest.raises(ValidationError) as exc:
        TeamService.change_role(db_session, team, member.id, users["player"].id, "COACH")
    assert "CAPTAIN, CO_CAPTAIN, MEMBER" in exc.value.message

def test_captain_cannot_demote_self(db_session, users, team):
    captain = TeamService.membership(db_session, team.id, users["player"].id)
    with pytest.raises(ValidationError):
        TeamService.change_role(db_session, team, captain.id, users["player"].id, "MEMBER")

def test_only_captain_changes_roles(db_session, users, team):
    co_captain = invite_and_accept(db_session, team, users["player"], users["player2"], TeamRole.CO_CAPTAIN)
    with pytest.raises(Forbidden):
        TeamService.change_role(db_session, team, co_captain.id, users["player2"].id, "CAPTAIN")

def test_creator_is_never_removed(db_session, users, team):
    """Even after handing over captaincy the creator stays"""
    member = invite_and_accept(db_session, team, users["player"], users["player2"])
    TeamService.change_role(db_session, team, member.id, users["player"].id, "CAPTAIN")

    creator = TeamService.membership(db_session, team.id, users["player"].id)
    with pytest.raises(ValidationError):
        TeamService.remove_member(db_session, team, creator.id, users["player2"].id)
    with pytest.raises(ValidationError):
        TeamService.remove_member(db_session, team, creator.id, users["player"].id)

def test_sole_captain_is_never_removed(db_session, users, team):
    captain = TeamService.membership(db_session, team.id, users["player"].id)
    with pytest.raises(ValidationError):
        TeamService.remove_member(db_session, team, captain.id, users["player"].id)

def test_member_leaves_and_captain_removes(db_session, users, team):
    leaving = invite_and_accept(db_session, team, users["player"], users["player2"])
    removed = invite_and_accept(db_session, team, users["player"], users["player3"])

    TeamService.remove_member(db_session, team, leaving.id, users["player2"].id)
    TeamService.remove_member(db_session, team, removed.id, users["player"].id)

    db_session.refresh(team)
    assert team.member_count == 1

def test_member_cannot_remove_others(db_session, users, team):
    first = invite_and_accept(db_session, team, users["player"], users["player2"])
    second = invite_and_accept(db_session, team, users["player"], users["player3"])
    with pytest.raises(Forbidden):
        TeamService.remove_member(db_session, team, second.id, users["player2"].id)
    assert first.id != second.id

def test_update_team_name_unique(db_session, users, team_event, team):
    TeamService.create_team(db_session, users["player2"], TeamCreate(event_id=team_event.id, name="Rivals"))
    with pytest.raises(DuplicateTeamName):
        TeamService.update_team(db_session, team, users["player"].id, TeamUpdate(name="Rivals"))

    updated, changes = TeamService.update_team(db_session, team, users["player"].id, TeamUpdate(tag="OWL"))
    assert updated.tag == "OWL"
    assert changes == {"tag": {"from": "NO", "to": "OWL"}}

def test_delete_team_blocked_by_active_registration(db_session, users, team_event, team):
    RegistrationService.claim(db_session, users["player"].id, team_event.id, team_id=team.id)
    with pytest.raises(Conflict):
        TeamService.delete_team(db_session, team, users["player"])

def test_delete_team_releases_event_slot(db_session, users, team_event, team):
    with pytest.raises(Forbidden):
        TeamService.delete_team(db_session, team, users["player2"])

    TeamService.delete_team(db_session, team, users["player"])
    db_session.refresh(team_event)
    assert team_event.team_count == 0
    assert db_session.query(TeamMember).count() == 0

def test_superadmin_deletes_any_team(db_session, users, team_event, team):
    TeamService.delete_team(db_session, team, users["superadmin"])
    assert db_session.get(Event, team_event.id).team_count == 0

def test_staff_create_team_for_captain(db_session, users, team_event):
    team = TeamService.create_for_event(
        db_session, AdminTeamCreate(event_id=team_event.id, name="House Team", captain_id=users["player3"].id)
    )
    assert team.creator_id == users["player3"].id
    assert team.members[0].role == TeamRole.CAPTAIN

    with pytest.raises(NotFound):
        TeamService.create_for_event(
            db_session, AdminTeamCreate(event_id=team_event.id, name="Ghosts", captain_id=9999)
        )
