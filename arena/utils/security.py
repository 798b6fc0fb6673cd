"""
Security utilities and authentication

Sessions are issued by the identity provider as `<user_id>.<signature>`
bearer tokens; this module only verifies them and resolves the user.
"""

import hashlib
import hmac
import time
from collections import defaultdict
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from arena.core.config import settings
from arena.core.db import get_db
from arena.core.errors import Unauthorized
from arena.models import User

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer(auto_error=False)

def _sign(user_id: int) -> str:
    return hmac.new(
        settings.SECRET_KEY.encode("utf-8"),
        str(user_id).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

def issue_session_token(user_id: int) -> str:
    """Issue a signed session token (used by the identity provider and tests)"""
    return f"{user_id}.{_sign(user_id)}"

def verify_session_token(token: str) -> Optional[int]:
    """Return the user id carried by a valid token, None otherwise"""
    user_id, _, signature = token.partition(".")
    if not user_id.isdigit() or not signature:
        return None
    if not hmac.compare_digest(signature, _sign(int(user_id))):
        return None
    return int(user_id)

def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Resolve the session user if a valid token was sent"""
    if credentials is None:
        return None
    user_id = verify_session_token(credentials.credentials)
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id).first()

def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Require an authenticated session"""
    if user is None:
        raise Unauthorized()
    return user

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE
    
    current_time = time.time()
    minute_ago = current_time - 60
    
    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip] 
        if req_time > minute_ago
    ]
    
    # Check limit
    if len(rate_limiter[client_ip]) >= limit:
        return False
    
    # Add current request
    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    
    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    
    # Fall back to direct client IP
    return request.client.host if request.client else "unknown"

def get_user_agent(request) -> str:
    return request.headers.get("User-Agent", "unknown")
