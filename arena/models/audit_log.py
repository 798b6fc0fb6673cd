"""
Append-only audit log model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum, JSON

from arena.core.db import Base
from arena.models.enums import AuditAction

class AuditLog(Base):
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True)
    action = Column(Enum(AuditAction, native_enum=False, length=40), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True, index=True)
    # actor snapshot, kept even if the user row is later deleted
    user_id = Column(Integer, nullable=True, index=True)
    user_name = Column(String(255), nullable=True)
    user_role = Column(String(20), nullable=True)
    changes = Column(JSON, nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
