import asyncio

from pathlab.db.session import engine
from pathlab.db.base import Base

# Import every model so their tables are registered on Base.metadata
from pathlab.models import (  # noqa: F401
    User, Category, Company, Customer, KitType, SampleType, CostCatalog,
    KitBatch, Kit, Sample, SampleResult, SampleCodeSequence, AuditLog
)


async def init_db() -> None:
    """
    Create all tables
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_tables_exist() -> None:
    """
    Make sure the tables exist (called at application startup)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(init_db())
