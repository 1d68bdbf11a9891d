from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.auth.jwt import decode_token
from finediet.database import get_db
from finediet.users.models import CONTENT_ROLES, User
from finediet.users.service import get_user_by_id

security = HTTPBearer(auto_error=False)


async def _load_user(db: AsyncSession, token: str) -> User | None:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        return None

    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        return None

    user = await get_user_by_id(db, user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = await _load_user(db, credentials.credentials)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Public endpoints that behave differently for signed-in staff."""
    if credentials is None:
        return None
    return await _load_user(db, credentials.credentials)


def require_roles(*roles: str):
    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.effective_role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return dependency


require_editor = require_roles(*CONTENT_ROLES)
require_admin = require_roles("admin")
