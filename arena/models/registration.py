"""
Registration model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, Float, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from arena.core.db import Base
from arena.models.enums import CheckInStatus, PaymentStatus, RegistrationStatus

class Registration(Base):
    __tablename__ = "registrations"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    # unique: a seat is bound to at most one registration at a time
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="SET NULL"), nullable=True, unique=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    status = Column(Enum(RegistrationStatus, native_enum=False, length=20), nullable=False, default=RegistrationStatus.PENDING)
    payment_status = Column(Enum(PaymentStatus, native_enum=False, length=20), nullable=False, default=PaymentStatus.PAID)
    payment_amount = Column(Float, nullable=False, default=0.0)
    check_in_status = Column(Enum(CheckInStatus, native_enum=False, length=20), nullable=False, default=CheckInStatus.NOT_CHECKED_IN)
    checked_in_at = Column(DateTime, nullable=True)
    registered_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    user = relationship("User", back_populates="registrations")
    event = relationship("Event", back_populates="registrations")
    seat = relationship("Seat", back_populates="registration")
    team = relationship("Team")
    
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_registration_user_event"),
    )
