"""
Bracket schemas
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel

from arena.models.enums import BracketStatus, BracketType, MatchStatus

class BracketCreate(BaseModel):
    name: Optional[str] = None
    type: BracketType = BracketType.SINGLE_ELIMINATION
    third_place_match: bool = False
    seeding_method: Literal["REGISTRATION_ORDER", "RANDOM", "MANUAL"] = "REGISTRATION_ORDER"
    # registration ids in seed order, used with MANUAL
    custom_seeding: List[int] = []

class BracketUpdate(BaseModel):
    status: Optional[BracketStatus] = None
    current_round: Optional[int] = None

class MatchUpdate(BaseModel):
    winner_id: Optional[int] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    status: Optional[MatchStatus] = None

class ParticipantResponse(BaseModel):
    id: int
    seed: int
    name: str
    is_team: bool
    user_id: Optional[int] = None
    team_id: Optional[int] = None
    wins: int
    losses: int
    
    class Config:
        from_attributes = True

class MatchResponse(BaseModel):
    id: int
    round: int
    match_number: int
    position: int
    is_third_place: bool
    participant1_id: Optional[int] = None
    participant2_id: Optional[int] = None
    winner_id: Optional[int] = None
    score1: Optional[int] = None
    score2: Optional[int] = None
    status: MatchStatus
    next_match_id: Optional[int] = None
    
    class Config:
        from_attributes = True

class BracketResponse(BaseModel):
    id: int
    event_id: int
    name: str
    type: BracketType
    status: BracketStatus
    round_count: int
    current_round: int
    third_place_match: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    participants: List[ParticipantResponse] = []
    matches: List[MatchResponse] = []
    
    class Config:
        from_attributes = True
