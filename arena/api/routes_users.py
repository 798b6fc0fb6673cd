"""
Public user profiles
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from arena.core.db import get_db
from arena.models import User
from arena.services.user_service import UserService
from arena.utils.responses import success_response
from arena.utils.security import get_optional_user

router = APIRouter()

@router.get("/profile/{user_id}")
async def get_profile(
    user_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """Anyone may view a profile; the email is only returned to its owner"""
    return success_response(
        message="Profile retrieved",
        data=UserService.profile(db, user_id, viewer)
    )
