import os
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from pathlab.core.config import settings


def _async_uri(uri: str) -> str:
    if uri.startswith("sqlite:///"):
        return uri.replace("sqlite:///", "sqlite+aiosqlite:///")
    return uri


def _unicode_lower(value):
    return value.lower() if value is not None else None


def register_sqlite_functions(async_engine: AsyncEngine) -> None:
    """SQLite lower() folds ASCII only; py_lower folds Vietnamese too"""
    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("py_lower", 1, _unicode_lower)


# SQL echo only when SQL_DEBUG=true
engine = create_async_engine(
    _async_uri(settings.SQLITE_DATABASE_URI),
    echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
    future=True,
)
register_sqlite_functions(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
