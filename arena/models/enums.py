"""
Closed value sets shared by models, schemas and the authorization policy
"""

import enum


class Role(str, enum.Enum):
    PLAYER = "PLAYER"
    ORGANIZER = "ORGANIZER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SeatType(str, enum.Enum):
    VIP = "VIP"
    REGULAR = "REGULAR"


class SeatStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    BLOCKED = "BLOCKED"


class RegistrationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class CheckInStatus(str, enum.Enum):
    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    CHECKED_IN = "CHECKED_IN"


class TeamRole(str, enum.Enum):
    CAPTAIN = "CAPTAIN"
    CO_CAPTAIN = "CO_CAPTAIN"
    MEMBER = "MEMBER"


class MemberStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INVITED = "INVITED"


class BracketType(str, enum.Enum):
    SINGLE_ELIMINATION = "SINGLE_ELIMINATION"
    DOUBLE_ELIMINATION = "DOUBLE_ELIMINATION"
    ROUND_ROBIN = "ROUND_ROBIN"
    SWISS = "SWISS"


class BracketStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class MatchStatus(str, enum.Enum):
    PENDING = "PENDING"
    READY = "READY"
    BYE = "BYE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class NotificationType(str, enum.Enum):
    REGISTRATION_CREATED = "REGISTRATION_CREATED"
    REGISTRATION_UPDATED = "REGISTRATION_UPDATED"
    REGISTRATION_CANCELLED = "REGISTRATION_CANCELLED"
    TEAM_INVITE = "TEAM_INVITE"
    TEAM_UPDATE = "TEAM_UPDATE"
    EVENT_UPDATE = "EVENT_UPDATE"
    BRACKET_UPDATE = "BRACKET_UPDATE"
    ANNOUNCEMENT = "ANNOUNCEMENT"


class AuditAction(str, enum.Enum):
    EVENT_CREATED = "EVENT_CREATED"
    EVENT_UPDATED = "EVENT_UPDATED"
    EVENT_DELETED = "EVENT_DELETED"
    SEAT_MAP_CREATED = "SEAT_MAP_CREATED"
    SEAT_MAP_DELETED = "SEAT_MAP_DELETED"
    REGISTRATION_CREATED = "REGISTRATION_CREATED"
    REGISTRATION_UPDATED = "REGISTRATION_UPDATED"
    REGISTRATION_CANCELLED = "REGISTRATION_CANCELLED"
    TEAM_CREATED = "TEAM_CREATED"
    TEAM_UPDATED = "TEAM_UPDATED"
    TEAM_DELETED = "TEAM_DELETED"
    TEAM_MEMBER_ADDED = "TEAM_MEMBER_ADDED"
    TEAM_MEMBER_UPDATED = "TEAM_MEMBER_UPDATED"
    TEAM_MEMBER_REMOVED = "TEAM_MEMBER_REMOVED"
    BRACKET_CREATED = "BRACKET_CREATED"
    BRACKET_UPDATED = "BRACKET_UPDATED"
    BRACKET_DELETED = "BRACKET_DELETED"
    MATCH_UPDATED = "MATCH_UPDATED"
    USER_ROLE_CHANGED = "USER_ROLE_CHANGED"
    ANNOUNCEMENT_CREATED = "ANNOUNCEMENT_CREATED"


class AnnouncementPriority(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TargetAudience(str, enum.Enum):
    ALL_USERS = "ALL_USERS"
    REGISTERED_USERS = "REGISTERED_USERS"
    EVENT_PARTICIPANTS = "EVENT_PARTICIPANTS"
