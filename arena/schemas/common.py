"""
Common Pydantic schemas
"""

from typing import Any, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    error: str
    details: Optional[Any] = None

class UserSummary(BaseModel):
    """Public slice of a user embedded in other responses"""
    id: int
    name: str
    email: str
    
    class Config:
        from_attributes = True
