"""
Database models package
"""

from .user import User
from .seat_map import SeatMap, Seat
from .event import Event
from .registration import Registration
from .team import Team, TeamMember
from .bracket import Bracket, BracketParticipant, BracketMatch
from .notification import Notification
from .audit_log import AuditLog
from .announcement import Announcement

__all__ = [
    "User",
    "SeatMap",
    "Seat",
    "Event",
    "Registration",
    "Team",
    "TeamMember",
    "Bracket",
    "BracketParticipant",
    "BracketMatch",
    "Notification",
    "AuditLog",
    "Announcement",
]
