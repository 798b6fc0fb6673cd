"""
Shared fixtures: a throwaway SQLite database wired into the app's engine
"""

import os

# must be set before arena.core.config is imported
os.environ["DATABASE_URL"] = "sqlite:///./test_arena.db"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from datetime import datetime, timedelta

from arena.core.db import Base, SessionLocal, engine
from arena.models import Event, Seat, SeatMap, User
from arena.models.enums import EventStatus, Role, SeatStatus, SeatType
from arena.utils.security import issue_session_token, rate_limiter

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.clear()
    yield
    rate_limiter.clear()

def make_user(db, name, role=Role.PLAYER):
    user = User(name=name, email=f"{name.lower().replace(' ', '.')}@example.com", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def make_seat_map(db, creator, width=4, height=2, blocked=()):
    """Full grid of REGULAR seats; positions in `blocked` start BLOCKED"""
    seat_map = SeatMap(name="Main Hall", width=width, height=height, creator_id=creator.id)
    seat_map.seats = [
        Seat(
            row=row,
            column=column,
            label=f"{chr(65 + row)}{column + 1}",
            type=SeatType.REGULAR,
            status=SeatStatus.BLOCKED if (row, column) in blocked else SeatStatus.AVAILABLE,
        )
        for row in range(height)
        for column in range(width)
    ]
    db.add(seat_map)
    db.commit()
    db.refresh(seat_map)
    return seat_map

def make_event(db, creator, seat_map=None, **overrides):
    """An event with registration open right now"""
    now = datetime.utcnow()
    values = dict(
        name="Spring Major",
        game="Valorant",
        venue="Arena Hall",
        status=EventStatus.REGISTRATION_OPEN,
        team_size=1,
        entry_fee=0.0,
        registration_start=now - timedelta(days=1),
        registration_end=now + timedelta(days=1),
        event_start=now + timedelta(days=2),
        event_end=now + timedelta(days=3),
        seat_map_id=seat_map.id if seat_map else None,
        creator_id=creator.id,
    )
    values.update(overrides)
    event = Event(**values)
    db.add(event)
    db.commit()
    db.refresh(event)
    return event

def auth(user):
    """Authorization header for a user"""
    return {"Authorization": f"Bearer {issue_session_token(user.id)}"}

@pytest.fixture
def users(db_session):
    return {
        "player": make_user(db_session, "Alice"),
        "player2": make_user(db_session, "Bob"),
        "player3": make_user(db_session, "Carol"),
        "organizer": make_user(db_session, "Olivia", Role.ORGANIZER),
        "admin": make_user(db_session, "Adam", Role.ADMIN),
        "superadmin": make_user(db_session, "Sue", Role.SUPERADMIN),
    }

@pytest.fixture
def seat_map(db_session, users):
    return make_seat_map(db_session, users["organizer"])

@pytest.fixture
def open_event(db_session, users, seat_map):
    return make_event(db_session, users["organizer"], seat_map)
