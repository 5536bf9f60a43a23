"""Dependency injection - database session"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped database session
    """
    async with SessionLocal() as session:
        yield session
