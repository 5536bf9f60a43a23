"""
Audit log - append-only record of every mutating operation
Written after each change, never read back by the business logic
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from pathlab.db.base import Base


class AuditLog(Base):
    """Audit trail entry

    action:
    - CREATE / UPDATE: record changes
    - VIEW: sample detail opened
    - EXPIRE: scheduled kit expiry sweep
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Null for scheduled jobs
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    action = Column(String(20), nullable=False, index=True, comment="Action")

    # Table name of the touched entity: kit_batches, kits, samples, sample_results
    entity = Column(String(50), nullable=False, index=True, comment="Entity")
    entity_id = Column(Integer, index=True, comment="Entity ID")

    # Before/after snapshot or operation details
    diff = Column(JSON, nullable=True, comment="Change details")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    actor = relationship("User", foreign_keys=[actor_id])

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity}:{self.entity_id}>"
