"""
Role-based authorization policy

Every mutating route names an action; the table below says which roles may
perform it outright and which may perform it only on resources they own.
`authorize` is the single check evaluated before any write.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional

from arena.core.errors import Forbidden, Unauthorized
from arena.models.enums import Role

STAFF = frozenset({Role.ADMIN, Role.SUPERADMIN})


@dataclass(frozen=True)
class Rule:
    allow: FrozenSet[Role]
    allow_if_owner: FrozenSet[Role] = frozenset()


POLICY = {
    "event.create": Rule(allow=STAFF | {Role.ORGANIZER}),
    "event.update": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "event.delete": Rule(allow=frozenset({Role.SUPERADMIN})),
    "event.view_admin": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "seat_map.create": Rule(allow=STAFF | {Role.ORGANIZER}),
    "seat_map.delete": Rule(allow=frozenset({Role.SUPERADMIN})),
    "seat_map.view_admin": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "team.create_for_event": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "team.view_admin": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "team.delete": Rule(allow=frozenset({Role.SUPERADMIN})),
    "registration.update": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "registration.view_admin": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "bracket.create": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "bracket.update": Rule(allow=STAFF, allow_if_owner=frozenset({Role.ORGANIZER})),
    "bracket.delete": Rule(allow=frozenset({Role.SUPERADMIN})),
    "user.list": Rule(allow=STAFF),
    "user.change_role": Rule(allow=STAFF),
    "announcement.create": Rule(allow=STAFF | {Role.ORGANIZER}),
    "audit.read": Rule(allow=STAFF),
    "analytics.read": Rule(allow=STAFF),
}


def is_allowed(role: Role, action: str, is_owner: bool = False) -> bool:
    """Pure predicate over (role, ownership) for an action"""
    rule = POLICY.get(action)
    if rule is None:
        return False
    if role in rule.allow:
        return True
    return is_owner and role in rule.allow_if_owner


def authorize(user, action: str, owner_id: Optional[int] = None) -> None:
    """Raise Unauthorized/Forbidden unless `user` may perform `action`"""
    if user is None:
        raise Unauthorized()
    is_owner = owner_id is not None and owner_id == user.id
    if not is_allowed(user.role, action, is_owner):
        raise Forbidden(f"Forbidden: {action} requires a different role")


def owner_scope(user, action: str) -> Optional[int]:
    """
    For listing actions: None when the user may see everything, the user's
    own id when only owned resources are visible.
    """
    if user is None:
        raise Unauthorized()
    if is_allowed(user.role, action):
        return None
    if is_allowed(user.role, action, is_owner=True):
        return user.id
    raise Forbidden(f"Forbidden: {action} requires a different role")
