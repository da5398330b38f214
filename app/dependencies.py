from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.security import decode_access_token
from app.services import user_service
from app.storage import ImageStorage, storage

# auto_error=False: handlers decide how to reject an anonymous caller.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """
    Resolve the caller's identity from an ``Authorization: Bearer`` header.

    Returns None for a missing, invalid or expired token, or when the user
    in the token no longer exists.  Routers receive the result as an
    explicit parameter and answer None with 401.
    """
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None
    return await user_service.get_user(db, user_id)


def get_storage() -> ImageStorage:
    """Image storage dependency; overridden in tests."""
    return storage
