"""API dependencies - authentication and role checks"""
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.core.deps import get_db
from pathlab.core.security import decode_access_token
from pathlab.models.user import User

UNAUTHENTICATED_MESSAGE = "Vui lòng đăng nhập"
FORBIDDEN_MESSAGE = "Bạn không có quyền thực hiện thao tác này"


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    authorization: Optional[str] = Header(None)) -> Optional[User]:
    """Resolve the caller from the bearer token; None when anonymous"""
    token = _extract_bearer(authorization)
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    user = await db.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user


async def require_auth(user: Optional[User] = Depends(get_current_user)) -> User:
    """Any signed-in user (editor or viewer)"""
    if user is None:
        raise HTTPException(status_code=401, detail=UNAUTHENTICATED_MESSAGE)
    return user


async def require_editor(user: User = Depends(require_auth)) -> User:
    """Signed-in user with the editor role"""
    if not user.is_editor:
        raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)
    return user
