"""
Event model

`team_count` and `registration_count` are denormalised counters; they only
move through conditional UPDATE statements so a cap can never be overshot.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from arena.core.db import Base
from arena.models.enums import EventStatus

class Event(Base):
    __tablename__ = "events"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    game = Column(String(100), nullable=True)
    venue = Column(String(255), nullable=True)
    status = Column(Enum(EventStatus, native_enum=False, length=30), nullable=False, default=EventStatus.DRAFT)
    
    # Capacity policy
    max_teams = Column(Integer, nullable=True)
    max_players = Column(Integer, nullable=True)
    team_size = Column(Integer, nullable=False, default=1)
    entry_fee = Column(Float, nullable=False, default=0.0)
    team_count = Column(Integer, nullable=False, default=0)
    registration_count = Column(Integer, nullable=False, default=0)
    
    # Time window
    registration_start = Column(DateTime, nullable=True)
    registration_end = Column(DateTime, nullable=True)
    event_start = Column(DateTime, nullable=False)
    event_end = Column(DateTime, nullable=False)
    
    seat_map_id = Column(Integer, ForeignKey("seat_maps.id", ondelete="RESTRICT"), nullable=True, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    creator = relationship("User")
    seat_map = relationship("SeatMap", back_populates="events")
    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")
    teams = relationship("Team", back_populates="event", cascade="all, delete-orphan")
    brackets = relationship("Bracket", back_populates="event", cascade="all, delete-orphan")
    
    __table_args__ = (
        CheckConstraint("team_count >= 0", name="check_team_count_non_negative"),
        CheckConstraint("registration_count >= 0", name="check_registration_count_non_negative"),
        CheckConstraint("team_size >= 1", name="check_team_size_positive"),
    )
