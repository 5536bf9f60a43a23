"""Authentication API"""

import logging
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.api.deps import require_auth
from pathlab.core.deps import get_db
from pathlab.core.security import create_access_token, verify_password
from pathlab.models.user import User
from pathlab.schemas.auth import LoginRequest, LoginResponse, MeResponse, TokenData, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    *,
    db: AsyncSession = Depends(get_db),
    credentials: LoginRequest) -> Any:
    """Exchange email and password for a bearer token"""
    email = credentials.email.strip().lower()
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if not user or not user.is_active or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"🔒 Failed login for {email}")
        raise HTTPException(status_code=401, detail="Email hoặc mật khẩu không đúng")

    logger.info(f"🔑 {user.email} signed in")
    return LoginResponse(
        data=TokenData(
            access_token=create_access_token(user.id),
            user=UserResponse.model_validate(user)))


@router.get("/me", response_model=MeResponse)
async def read_me(current_user: User = Depends(require_auth)) -> Any:
    return MeResponse(data=UserResponse.model_validate(current_user))
