"""
Tests for event lifecycle rules
"""

import pytest
from datetime import datetime, timedelta

from arena.core.errors import Conflict, NotFound, ValidationError
from arena.models import Event, Registration, Seat
from arena.models.enums import EventStatus, SeatStatus
from arena.schemas.event import EventCreate, EventUpdate, SeatConfig
from arena.schemas.team import TeamCreate, MemberAdd
from arena.services.event_service import EventService
from arena.services.registration_service import RegistrationService
from arena.services.team_service import TeamService

from conftest import make_event, make_seat_map

def event_data(**overrides):
    now = datetime.utcnow()
    values = dict(
        name="Autumn Open",
        game="Rocket League",
        event_start=now + timedelta(days=10),
        event_end=now + timedelta(days=11),
    )
    values.update(overrides)
    return EventCreate(**values)

def test_create_defaults_to_draft(db_session, users):
    event = EventService.create(db_session, users["organizer"].id, event_data())
    assert event.status == EventStatus.DRAFT
    assert event.creator_id == users["organizer"].id
    assert event.registration_count == 0
    assert event.seat_map_id is None

def test_event_end_before_start(db_session, users):
    now = datetime.utcnow()
    with pytest.raises(ValidationError):
        EventService.create(db_session, users["organizer"].id, event_data(
            event_start=now + timedelta(days=2), event_end=now + timedelta(days=1)
        ))

def test_registration_end_before_start(db_session, users):
    now = datetime.utcnow()
    with pytest.raises(ValidationError):
        EventService.create(db_session, users["organizer"].id, event_data(
            registration_start=now + timedelta(days=3), registration_end=now + timedelta(days=1)
        ))

def test_seat_map_and_config_are_exclusive(db_session, users, seat_map):
    with pytest.raises(ValidationError):
        EventService.create(db_session, users["organizer"].id, event_data(
            seat_map_id=seat_map.id,
            seat_config=SeatConfig(total_seats=4, seats_per_row=2),
        ))

def test_unknown_seat_map(db_session, users):
    with pytest.raises(NotFound):
        EventService.create(db_session, users["organizer"].id, event_data(seat_map_id=999))

def test_vip_seats_over_total(db_session, users):
    with pytest.raises(ValidationError):
        EventService.create(db_session, users["organizer"].id, event_data(
            seat_config=SeatConfig(total_seats=4, seats_per_row=2, vip_seats=5)
        ))
    assert db_session.query(Event).count() == 0

def test_public_list_hides_drafts(db_session, users, open_event):
    make_event(db_session, users["organizer"], name="Secret", status=EventStatus.DRAFT)
    make_event(db_session, users["organizer"], name="Done", status=EventStatus.COMPLETED)

    public = EventService.list(db_session).all()
    assert [e.id for e in public] == [open_event.id]
    assert EventService.list(db_session, show_all=True).count() == 3
    assert EventService.list(db_session, status=EventStatus.COMPLETED).one().name == "Done"

def test_update_returns_diff(db_session, users, open_event):
    event, changes = EventService.update(db_session, open_event, EventUpdate(name="Spring Finals", max_players=10))
    assert event.name == "Spring Finals"
    assert changes == {
        "name": {"from": "Spring Major", "to": "Spring Finals"},
        "max_players": {"from": None, "to": 10},
    }

def test_update_noop_has_no_changes(db_session, users, open_event):
    _, changes = EventService.update(db_session, open_event, EventUpdate(name="Spring Major"))
    assert changes == {}

def test_cannot_clear_required_field(db_session, users, open_event):
    with pytest.raises(ValidationError):
        EventService.update(db_session, open_event, EventUpdate(event_start=None))

def test_update_keeps_time_window(db_session, users, open_event):
    with pytest.raises(ValidationError):
        EventService.update(
            db_session, open_event, EventUpdate(event_end=open_event.event_start - timedelta(hours=1))
        )

def test_update_with_utc_timestamp(db_session, users, open_event):
    """A trailing Z, as sent by browsers, compares against the stored naive values"""
    new_end = (open_event.event_start + timedelta(days=5)).replace(microsecond=0)
    update = EventUpdate.model_validate({"event_end": new_end.isoformat() + "Z"})
    assert update.event_end.tzinfo is None

    event, changes = EventService.update(db_session, open_event, update)
    assert event.event_end == new_end
    assert changes["event_end"]["to"] == new_end.isoformat()

    with pytest.raises(ValidationError):
        EventService.update(db_session, open_event, EventUpdate.model_validate(
            {"event_end": (open_event.event_start - timedelta(hours=1)).isoformat() + "Z"}
        ))

def test_offset_timestamps_convert_to_utc():
    update = EventUpdate.model_validate({"event_start": "2030-06-01T12:00:00+02:00"})
    assert update.event_start == datetime(2030, 6, 1, 10, 0)

def test_create_with_mixed_timestamps(db_session, users):
    start = (datetime.utcnow() + timedelta(days=10)).replace(microsecond=0)
    data = EventCreate.model_validate({
        "name": "Autumn Open",
        "event_start": start.isoformat(),
        "event_end": (start + timedelta(days=1)).isoformat() + "+00:00",
    })
    event = EventService.create(db_session, users["organizer"].id, data)
    assert event.event_end - event.event_start == timedelta(days=1)

def test_max_players_below_registrations(db_session, users, open_event):
    RegistrationService.claim(db_session, users["player"].id, open_event.id)
    RegistrationService.claim(db_session, users["player2"].id, open_event.id)

    with pytest.raises(ValidationError):
        EventService.update(db_session, open_event, EventUpdate(max_players=1))
    event, _ = EventService.update(db_session, open_event, EventUpdate(max_players=2))
    assert event.max_players == 2

def test_team_size_below_largest_roster(db_session, users, seat_map):
    event = make_event(db_session, users["organizer"], seat_map, team_size=3)
    team = TeamService.create_team(db_session, users["player"], TeamCreate(event_id=event.id, name="Wolves"))
    TeamService.invite_member(db_session, team, users["player"].id, MemberAdd(email=users["player2"].email))

    with pytest.raises(ValidationError):
        EventService.update(db_session, event, EventUpdate(team_size=1))
    updated, _ = EventService.update(db_session, event, EventUpdate(team_size=2))
    assert updated.team_size == 2

def test_seat_map_change_with_reserved_seats(db_session, users, open_event, seat_map):
    RegistrationService.claim(db_session, users["player"].id, open_event.id, seat_id=seat_map.seats[0].id)
    other_map = make_seat_map(db_session, users["organizer"], width=2, height=2)

    with pytest.raises(Conflict):
        EventService.update(db_session, open_event, EventUpdate(seat_map_id=other_map.id))

def test_delete_releases_seats(db_session, users, open_event, seat_map):
    seat_id = seat_map.seats[0].id
    RegistrationService.claim(db_session, users["player"].id, open_event.id, seat_id=seat_id)

    EventService.delete(db_session, open_event)

    assert db_session.query(Event).count() == 0
    assert db_session.query(Registration).count() == 0
    assert db_session.get(Seat, seat_id).status == SeatStatus.AVAILABLE

def test_participant_ids(db_session, users, open_event):
    RegistrationService.claim(db_session, users["player"].id, open_event.id)
    cancelled = RegistrationService.claim(db_session, users["player2"].id, open_event.id)
    RegistrationService.cancel(db_session, cancelled.id, users["player2"].id)

    assert EventService.participant_ids(db_session, open_event.id) == [users["player"].id]
