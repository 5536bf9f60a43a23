"""Audit trail writer"""
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.models.audit_log import AuditLog


def create_audit_log(
    db: AsyncSession,
    actor_id: Optional[int],
    action: str,
    entity: str,
    entity_id: Optional[int] = None,
    diff: Optional[Any] = None) -> AuditLog:
    """Add an audit row to the session; it is committed with the caller's transaction"""
    log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        diff=jsonable_encoder(diff) if diff is not None else None,
    )
    db.add(log)
    return log
