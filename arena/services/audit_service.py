"""
Audit log sink

Writes are best-effort: they run in their own session after the primary
transaction has committed, and a failure is logged, never raised.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from arena.core import db as db_module
from arena.models import AuditLog
from arena.models.enums import AuditAction
from arena.utils.security import get_client_ip, get_user_agent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Detached snapshot of the user performing an action"""
    id: Optional[int]
    name: Optional[str]
    role: Optional[str]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_user(cls, user, request=None) -> "Actor":
        return cls(
            id=user.id,
            name=user.name,
            role=getattr(user.role, "value", user.role),
            ip_address=get_client_ip(request) if request is not None else None,
            user_agent=get_user_agent(request) if request is not None else None,
        )


def snapshot(obj, fields: Iterable[str]) -> Dict[str, Any]:
    """Read the given attributes off a model into a plain dict"""
    return {field: getattr(obj, field) for field in fields}


def capture_changes(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Return {field: {"from": old, "to": new}} for every field that changed"""
    changes = {}
    for key, new_value in after.items():
        old_value = before.get(key)
        if new_value != old_value:
            changes[key] = {"from": old_value, "to": new_value}
    return jsonable_encoder(changes)


class AuditService:
    """Record and query audit log entries"""
    
    @staticmethod
    def record(
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[int],
        actor: Optional[Actor] = None,
        changes: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        """Append an audit entry; returns its id or None if the write failed"""
        db = db_module.SessionLocal()
        try:
            log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=actor.id if actor else None,
                user_name=actor.name if actor else None,
                user_role=actor.role if actor else None,
                changes=jsonable_encoder(changes) if changes else None,
                extra=jsonable_encoder(metadata) if metadata else None,
                ip_address=actor.ip_address if actor else None,
                user_agent=actor.user_agent if actor else None,
            )
            db.add(log)
            db.commit()
            return log.id
        except Exception:
            # audit logging must never break the main flow
            db.rollback()
            logger.exception("Failed to create audit log for %s %s", entity_type, entity_id)
            return None
        finally:
            db.close()
    
    @staticmethod
    def query(
        db: Session,
        action: Optional[AuditAction] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ):
        """Filtered audit query, newest first"""
        query = db.query(AuditLog)
        if action:
            query = query.filter(AuditLog.action == action)
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.filter(AuditLog.entity_id == entity_id)
        if user_id is not None:
            query = query.filter(AuditLog.user_id == user_id)
        if start_date:
            query = query.filter(AuditLog.created_at >= start_date)
        if end_date:
            query = query.filter(AuditLog.created_at <= end_date)
        return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
