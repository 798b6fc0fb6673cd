"""
Seat map and seat models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from arena.core.db import Base
from arena.models.enums import SeatStatus, SeatType

class SeatMap(Base):
    __tablename__ = "seat_maps"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    creator = relationship("User")
    events = relationship("Event", back_populates="seat_map", passive_deletes="all")
    seats = relationship(
        "Seat",
        back_populates="seat_map",
        cascade="all, delete-orphan",
        order_by="(Seat.row, Seat.column)",
    )

class Seat(Base):
    __tablename__ = "seats"
    
    id = Column(Integer, primary_key=True, index=True)
    seat_map_id = Column(Integer, ForeignKey("seat_maps.id", ondelete="CASCADE"), nullable=False, index=True)
    row = Column("seat_row", Integer, nullable=False)
    column = Column("seat_column", Integer, nullable=False)
    label = Column(String(20), nullable=False)
    type = Column(Enum(SeatType, native_enum=False, length=10), nullable=False, default=SeatType.REGULAR)
    status = Column(Enum(SeatStatus, native_enum=False, length=10), nullable=False, default=SeatStatus.AVAILABLE)
    
    # Relationships
    seat_map = relationship("SeatMap", back_populates="seats")
    registration = relationship("Registration", back_populates="seat", uselist=False)
    
    __table_args__ = (
        UniqueConstraint("seat_map_id", "seat_row", "seat_column", name="uq_seat_position"),
    )
