"""
Tests for seat map layouts and their event view
"""

import pytest
from datetime import datetime, timedelta

from arena.core.errors import Conflict, ValidationError
from arena.models import Event, Seat, SeatMap
from arena.models.enums import SeatStatus, SeatType
from arena.schemas.event import EventCreate, SeatConfig
from arena.schemas.seat_map import SeatInput, SeatMapCreate
from arena.services.event_service import EventService
from arena.services.registration_service import RegistrationService
from arena.services.seat_map_service import SeatMapService, seat_label

from conftest import make_event

def layout(width=3, height=2, seats=None):
    if seats is None:
        seats = [SeatInput(row=r, column=c) for r in range(height) for c in range(width)]
    return SeatMapCreate(name="LAN Hall", width=width, height=height, seats=seats)

def test_seat_label():
    assert seat_label(0, 0) == "A1"
    assert seat_label(2, 9) == "C10"
    assert seat_label(26, 0) == "R27C1"

def test_create_seat_map(db_session, users):
    seats = [
        SeatInput(row=0, column=0, type=SeatType.VIP),
        SeatInput(row=0, column=1, label="Stage"),
        SeatInput(row=1, column=2, status=SeatStatus.BLOCKED),
    ]
    seat_map = SeatMapService.create(db_session, users["organizer"].id, layout(seats=seats))

    assert seat_map.id is not None
    by_label = {seat.label: seat for seat in seat_map.seats}
    assert set(by_label) == {"A1", "Stage", "B3"}
    assert by_label["A1"].type == SeatType.VIP
    assert by_label["B3"].status == SeatStatus.BLOCKED

def test_seat_outside_grid(db_session, users):
    seats = [SeatInput(row=0, column=3), SeatInput(row=2, column=0)]
    with pytest.raises(ValidationError) as exc:
        SeatMapService.create(db_session, users["organizer"].id, layout(seats=seats))
    assert "row 0, column 3" in exc.value.message
    assert "row 2, column 0" in exc.value.message
    assert db_session.query(SeatMap).count() == 0

def test_duplicate_position(db_session, users):
    seats = [SeatInput(row=1, column=1), SeatInput(row=1, column=1, label="again")]
    with pytest.raises(ValidationError) as exc:
        SeatMapService.create(db_session, users["organizer"].id, layout(seats=seats))
    assert "Duplicate seat" in exc.value.message

def test_reserved_status_is_rejected(db_session, users):
    seats = [SeatInput(row=0, column=0, status=SeatStatus.RESERVED)]
    with pytest.raises(ValidationError):
        SeatMapService.create(db_session, users["organizer"].id, layout(seats=seats))

def test_delete_unused_seat_map(db_session, users):
    seat_map = SeatMapService.create(db_session, users["organizer"].id, layout())
    SeatMapService.delete(db_session, seat_map.id)

    assert db_session.query(SeatMap).count() == 0
    assert db_session.query(Seat).count() == 0

def test_delete_referenced_seat_map(db_session, users, open_event, seat_map):
    seat_count = len(seat_map.seats)
    with pytest.raises(Conflict):
        SeatMapService.delete(db_session, seat_map.id)

    assert SeatMapService.get(db_session, seat_map.id) is not None
    assert db_session.query(Seat).filter(Seat.seat_map_id == seat_map.id).count() == seat_count

def test_delete_loses_to_late_event_link(db_session, users, open_event, seat_map, monkeypatch):
    """An event linked after the usage check still blocks the delete"""
    monkeypatch.setattr(SeatMapService, "event_count", staticmethod(lambda db, seat_map_id: 0))
    seat_count = len(seat_map.seats)

    with pytest.raises(Conflict):
        SeatMapService.delete(db_session, seat_map.id)

    db_session.expire_all()
    assert db_session.get(Event, open_event.id).seat_map_id == seat_map.id
    assert db_session.query(Seat).filter(Seat.seat_map_id == seat_map.id).count() == seat_count

def test_list_scoped_to_creator(db_session, users, seat_map):
    SeatMapService.create(db_session, users["admin"].id, layout())
    assert [m.id for m in SeatMapService.list(db_session, users["organizer"].id)] == [seat_map.id]
    assert len(SeatMapService.list(db_session)) == 2

def test_event_seats_show_holder(db_session, users, open_event, seat_map):
    seat = seat_map.seats[0]
    RegistrationService.claim(db_session, users["player"].id, open_event.id, seat_id=seat.id)

    seats = SeatMapService.event_seats(db_session, open_event)
    assert len(seats) == 8
    taken = [s for s in seats if s["status"] == SeatStatus.RESERVED]
    assert len(taken) == 1
    assert taken[0]["id"] == seat.id
    assert taken[0]["reserved_by"] == {"user_id": users["player"].id, "name": "Alice"}
    assert all(s["reserved_by"] is None for s in seats if s["id"] != seat.id)

def test_event_without_seat_map(db_session, users):
    event = make_event(db_session, users["organizer"])
    assert SeatMapService.event_seats(db_session, event) == []

def test_event_with_generated_seats(db_session, users):
    now = datetime.utcnow()
    event = EventService.create(db_session, users["organizer"].id, EventCreate(
        name="Summer Cup",
        event_start=now + timedelta(days=5),
        event_end=now + timedelta(days=6),
        seat_config=SeatConfig(total_seats=10, seats_per_row=4, vip_seats=3),
    ))

    seat_map = event.seat_map
    assert seat_map.width == 4
    assert seat_map.height == 3
    assert len(seat_map.seats) == 10
    vip = sorted(s.label for s in seat_map.seats if s.type == SeatType.VIP)
    assert vip == ["A1", "A2", "A3"]
    assert all(s.status == SeatStatus.AVAILABLE for s in seat_map.seats)
