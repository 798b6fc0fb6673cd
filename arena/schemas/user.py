"""
User-related Pydantic schemas
"""

from datetime import datetime
from pydantic import BaseModel

from arena.models.enums import Role

class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    created_at: datetime
    
    class Config:
        from_attributes = True

class RoleUpdate(BaseModel):
    """Admin role change"""
    role: Role
