from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session
from typing import Optional
import os

from activity_tracker.database import get_db
from activity_tracker.models import User
from activity_tracker.repositories.user_repository import UserRepository

# API key protecting every non-public endpoint.
# The session/identity layer in front of this service sets X-User-Id.
API_KEY = os.getenv("ACTIVITY_TRACKER_API_KEY", "your-secret-key-change-me")

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated user forwarded by the identity layer"""
    user = UserRepository.get_by_id(db, x_user_id) if x_user_id is not None else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only admin users"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
