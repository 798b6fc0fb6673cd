"""
Tests for bracket seeding, byes and result propagation
"""

import pytest
from datetime import datetime, timedelta

from arena.core.errors import ValidationError
from arena.models import BracketMatch, BracketParticipant, Registration, Team, TeamMember
from arena.models.enums import (
    BracketStatus,
    BracketType,
    CheckInStatus,
    MatchStatus,
    MemberStatus,
    RegistrationStatus,
    TeamRole,
)
from arena.schemas.bracket import BracketCreate, BracketUpdate, MatchUpdate
from arena.services.bracket_service import (
    BracketService,
    match_templates,
    round_count,
    seed_order,
    seed_pairings,
)

from conftest import make_event, make_user

def checked_in(db, event, players, team=None):
    """Confirmed, checked-in registrations in the given order"""
    start = datetime.utcnow() - timedelta(hours=len(players))
    registrations = []
    for offset, player in enumerate(players):
        registration = Registration(
            user_id=player.id,
            event_id=event.id,
            team_id=team.id if team else None,
            status=RegistrationStatus.CONFIRMED,
            check_in_status=CheckInStatus.CHECKED_IN,
            registered_at=start + timedelta(minutes=offset),
        )
        db.add(registration)
        registrations.append(registration)
    db.commit()
    return registrations

def field_of(db, event, count):
    players = [make_user(db, f"Seed {i}") for i in range(1, count + 1)]
    checked_in(db, event, players)
    return players

def find(bracket, round_no, number, third_place=False):
    return next(
        m for m in bracket.matches
        if m.round == round_no and m.match_number == number and m.is_third_place == third_place
    )

def seed_id(bracket, seed):
    return next(p.id for p in bracket.participants if p.seed == seed)

def test_seed_order():
    assert seed_order(2) == [1, 2]
    assert seed_order(4) == [1, 4, 2, 3]
    assert seed_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]

def test_round_count():
    assert round_count(2) == 1
    assert round_count(5) == 3
    assert round_count(8) == 3
    assert round_count(9) == 4

def test_top_seeds_get_byes():
    assert seed_pairings(5) == [(1, None), (4, 5), (2, None), (3, None)]
    assert seed_pairings(4) == [(1, 4), (2, 3)]

def test_match_templates_link_rounds():
    templates = match_templates(8)
    assert len(templates) == 7
    first = [t for t in templates if t["round"] == 1]
    assert [(t["next"], t["slot"]) for t in first] == [
        ((2, 1), 1), ((2, 1), 2), ((2, 2), 1), ((2, 2), 2)
    ]
    final = templates[-1]
    assert final["round"] == 3 and final["next"] is None

def test_third_place_template_needs_four():
    assert not any(t["is_third_place"] for t in match_templates(3, third_place=True))
    third = [t for t in match_templates(4, third_place=True) if t["is_third_place"]]
    assert [(t["round"], t["match_number"]) for t in third] == [(2, 2)]

def test_bracket_with_byes(db_session, users, open_event):
    field_of(db_session, open_event, 5)
    bracket = BracketService.create(db_session, open_event, BracketCreate())

    assert bracket.status == BracketStatus.PENDING
    assert bracket.round_count == 3
    assert len(bracket.participants) == 5
    assert len(bracket.matches) == 7
    assert bracket.name == "Spring Major - Single Elimination Bracket"

    byes = [m for m in bracket.matches if m.status == MatchStatus.BYE]
    assert len(byes) == 3
    assert {m.winner_id for m in byes} == {seed_id(bracket, s) for s in (1, 2, 3)}

    # seeds 2 and 3 both had byes, so their second round match is ready
    assert find(bracket, 2, 2).status == MatchStatus.READY
    waiting = find(bracket, 2, 1)
    assert waiting.participant1_id == seed_id(bracket, 1)
    assert waiting.participant2_id is None
    assert waiting.status == MatchStatus.PENDING

def test_results_advance_to_completion(db_session, users, open_event):
    field_of(db_session, open_event, 5)
    bracket = BracketService.create(db_session, open_event, BracketCreate())

    opener = find(bracket, 1, 2)
    BracketService.report_match(db_session, bracket, opener.id, MatchUpdate(winner_id=seed_id(bracket, 4), score1=2, score2=1))
    db_session.refresh(bracket)
    assert bracket.status == BracketStatus.IN_PROGRESS
    assert bracket.current_round == 2

    semi = find(bracket, 2, 1)
    assert semi.participant2_id == seed_id(bracket, 4)
    assert semi.status == MatchStatus.READY

    BracketService.report_match(db_session, bracket, semi.id, MatchUpdate(winner_id=seed_id(bracket, 1)))
    BracketService.report_match(db_session, bracket, find(bracket, 2, 2).id, MatchUpdate(winner_id=seed_id(bracket, 3)))
    final = find(bracket, 3, 1)
    assert {final.participant1_id, final.participant2_id} == {seed_id(bracket, 1), seed_id(bracket, 3)}

    BracketService.report_match(db_session, bracket, final.id, MatchUpdate(winner_id=seed_id(bracket, 1)))
    db_session.refresh(bracket)
    assert bracket.status == BracketStatus.COMPLETED
    assert bracket.completed_at is not None

    champion = db_session.get(BracketParticipant, seed_id(bracket, 1))
    db_session.refresh(champion)
    assert (champion.wins, champion.losses) == (2, 0)

    with pytest.raises(ValidationError):
        BracketService.report_match(db_session, bracket, final.id, MatchUpdate(score1=5))

def test_third_place_match(db_session, users, open_event):
    field_of(db_session, open_event, 4)
    bracket = BracketService.create(db_session, open_event, BracketCreate(third_place_match=True))
    assert bracket.third_place_match is True
    assert len(bracket.matches) == 4

    semi1, semi2 = find(bracket, 1, 1), find(bracket, 1, 2)
    BracketService.report_match(db_session, bracket, semi1.id, MatchUpdate(winner_id=seed_id(bracket, 1)))
    BracketService.report_match(db_session, bracket, semi2.id, MatchUpdate(winner_id=seed_id(bracket, 3)))

    third = find(bracket, 2, 2, third_place=True)
    assert (third.participant1_id, third.participant2_id) == (seed_id(bracket, 4), seed_id(bracket, 2))
    assert third.status == MatchStatus.READY

    BracketService.report_match(db_session, bracket, find(bracket, 2, 1).id, MatchUpdate(winner_id=seed_id(bracket, 3)))
    db_session.refresh(bracket)
    assert bracket.status == BracketStatus.IN_PROGRESS

    BracketService.report_match(db_session, bracket, third.id, MatchUpdate(winner_id=seed_id(bracket, 2)))
    db_session.refresh(bracket)
    assert bracket.status == BracketStatus.COMPLETED

def test_third_place_ignored_for_three(db_session, users, open_event):
    field_of(db_session, open_event, 3)
    bracket = BracketService.create(db_session, open_event, BracketCreate(third_place_match=True))
    assert bracket.third_place_match is False
    assert not any(m.is_third_place for m in bracket.matches)

def test_winner_must_be_in_match(db_session, users, open_event):
    field_of(db_session, open_event, 4)
    bracket = BracketService.create(db_session, open_event, BracketCreate())
    with pytest.raises(ValidationError):
        BracketService.report_match(db_session, bracket, find(bracket, 1, 1).id, MatchUpdate(winner_id=seed_id(bracket, 2)))

def test_match_waiting_for_participants(db_session, users, open_event):
    field_of(db_session, open_event, 4)
    bracket = BracketService.create(db_session, open_event, BracketCreate())
    final = find(bracket, 2, 1)
    with pytest.raises(ValidationError):
        BracketService.report_match(db_session, bracket, final.id, MatchUpdate(status=MatchStatus.IN_PROGRESS))

def test_start_match(db_session, users, open_event):
    field_of(db_session, open_event, 2)
    bracket = BracketService.create(db_session, open_event, BracketCreate())
    match = BracketService.report_match(db_session, bracket, bracket.matches[0].id, MatchUpdate(status=MatchStatus.IN_PROGRESS))
    assert match.status == MatchStatus.IN_PROGRESS
    assert match.started_at is not None

    with pytest.raises(ValidationError):
        BracketService.report_match(db_session, bracket, match.id, MatchUpdate(status=MatchStatus.COMPLETED))

def test_status_transitions(db_session, users, open_event):
    field_of(db_session, open_event, 2)
    bracket = BracketService.create(db_session, open_event, BracketCreate())

    with pytest.raises(ValidationError):
        BracketService.update(db_session, bracket, BracketUpdate(status=BracketStatus.COMPLETED))

    bracket = BracketService.update(db_session, bracket, BracketUpdate(status=BracketStatus.IN_PROGRESS))
    assert bracket.started_at is not None

    with pytest.raises(ValidationError):
        BracketService.update(db_session, bracket, BracketUpdate(status=BracketStatus.PENDING))
    with pytest.raises(ValidationError):
        BracketService.update(db_session, bracket, BracketUpdate(current_round=2))

def test_only_checked_in_players_are_seeded(db_session, users, open_event):
    field_of(db_session, open_event, 2)
    db_session.add(Registration(user_id=users["player"].id, event_id=open_event.id, status=RegistrationStatus.CONFIRMED))
    db_session.commit()

    bracket = BracketService.create(db_session, open_event, BracketCreate())
    assert [p.name for p in bracket.participants] == ["Seed 1", "Seed 2"]

def test_too_few_participants(db_session, users, open_event):
    field_of(db_session, open_event, 1)
    with pytest.raises(ValidationError):
        BracketService.create(db_session, open_event, BracketCreate())

def test_unsupported_bracket_type(db_session, users, open_event):
    field_of(db_session, open_event, 4)
    with pytest.raises(ValidationError):
        BracketService.create(db_session, open_event, BracketCreate(type=BracketType.ROUND_ROBIN))

def test_manual_seeding(db_session, users, open_event):
    field_of(db_session, open_event, 3)
    ids = [r.id for r in BracketService.eligible_registrations(db_session, open_event)]

    bracket = BracketService.create(
        db_session, open_event, BracketCreate(seeding_method="MANUAL", custom_seeding=list(reversed(ids)))
    )
    assert [p.name for p in bracket.participants] == ["Seed 3", "Seed 2", "Seed 1"]

    with pytest.raises(ValidationError):
        BracketService.create(
            db_session, open_event, BracketCreate(seeding_method="MANUAL", custom_seeding=ids[:2])
        )

def test_team_event_seeds_teams(db_session, users, seat_map):
    event = make_event(db_session, users["organizer"], seat_map, team_size=2)
    rosters = [
        ("Red", [users["player"], users["player2"]]),
        ("Blue", [users["player3"], make_user(db_session, "Dana")]),
    ]
    for name, players in rosters:
        team = Team(event_id=event.id, name=name, creator_id=players[0].id, member_count=len(players))
        team.members = [
            TeamMember(event_id=event.id, user_id=p.id, role=TeamRole.MEMBER, status=MemberStatus.ACTIVE)
            for p in players
        ]
        db_session.add(team)
        db_session.commit()
        checked_in(db_session, event, players, team)

    bracket = BracketService.create(db_session, event, BracketCreate())
    assert [(p.name, p.is_team) for p in bracket.participants] == [("Red", True), ("Blue", True)]

def test_delete_bracket(db_session, users, open_event):
    field_of(db_session, open_event, 4)
    bracket = BracketService.create(db_session, open_event, BracketCreate())
    BracketService.delete(db_session, bracket.id)

    assert BracketService.list_for_event(db_session, open_event.id) == []
    assert db_session.query(BracketMatch).count() == 0
    assert db_session.query(BracketParticipant).count() == 0
