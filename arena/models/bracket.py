"""
Bracket, participant and match models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from arena.core.db import Base
from arena.models.enums import BracketStatus, BracketType, MatchStatus

class Bracket(Base):
    __tablename__ = "brackets"
    
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(Enum(BracketType, native_enum=False, length=30), nullable=False, default=BracketType.SINGLE_ELIMINATION)
    status = Column(Enum(BracketStatus, native_enum=False, length=20), nullable=False, default=BracketStatus.PENDING)
    round_count = Column(Integer, nullable=False)
    current_round = Column(Integer, nullable=False, default=1)
    third_place_match = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    event = relationship("Event", back_populates="brackets")
    participants = relationship(
        "BracketParticipant",
        back_populates="bracket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BracketParticipant.seed",
    )
    matches = relationship(
        "BracketMatch",
        back_populates="bracket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="(BracketMatch.round, BracketMatch.match_number)",
    )

class BracketParticipant(Base):
    __tablename__ = "bracket_participants"
    
    id = Column(Integer, primary_key=True, index=True)
    bracket_id = Column(Integer, ForeignKey("brackets.id", ondelete="CASCADE"), nullable=False, index=True)
    seed = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    is_team = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    
    bracket = relationship("Bracket", back_populates="participants")
    
    __table_args__ = (
        UniqueConstraint("bracket_id", "seed", name="uq_participant_seed"),
    )

class BracketMatch(Base):
    __tablename__ = "bracket_matches"
    
    id = Column(Integer, primary_key=True, index=True)
    bracket_id = Column(Integer, ForeignKey("brackets.id", ondelete="CASCADE"), nullable=False, index=True)
    round = Column(Integer, nullable=False)
    match_number = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False)
    is_third_place = Column(Boolean, nullable=False, default=False)
    participant1_id = Column(Integer, ForeignKey("bracket_participants.id", ondelete="SET NULL"), nullable=True)
    participant2_id = Column(Integer, ForeignKey("bracket_participants.id", ondelete="SET NULL"), nullable=True)
    winner_id = Column(Integer, ForeignKey("bracket_participants.id", ondelete="SET NULL"), nullable=True)
    score1 = Column(Integer, nullable=True)
    score2 = Column(Integer, nullable=True)
    status = Column(Enum(MatchStatus, native_enum=False, length=20), nullable=False, default=MatchStatus.PENDING)
    next_match_id = Column(Integer, ForeignKey("bracket_matches.id", ondelete="SET NULL"), nullable=True)
    # semifinal losers drop into the third place match
    loser_next_match_id = Column(Integer, ForeignKey("bracket_matches.id", ondelete="SET NULL"), nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    
    bracket = relationship("Bracket", back_populates="matches")
    participant1 = relationship("BracketParticipant", foreign_keys=[participant1_id])
    participant2 = relationship("BracketParticipant", foreign_keys=[participant2_id])
    winner = relationship("BracketParticipant", foreign_keys=[winner_id])
