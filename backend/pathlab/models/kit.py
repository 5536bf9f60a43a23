"""
Kit inventory models
- One KitBatch per purchase (lot), spawning individually coded Kit units
- Each Kit unit moves through its own status
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from pathlab.db.base import Base


# in_stock: on the shelf
# assigned: reserved for a sample
# used: test completed
# void: written off by a stock adjustment
# expired: batch passed its expiry date
# lost: missing at stocktake
KIT_STATUSES = ("in_stock", "assigned", "used", "void", "expired", "lost")

# Units a positive bulk adjustment may return to stock
RETURNABLE_KIT_STATUSES = ("void", "lost")


class KitBatch(Base):
    """Kit batch - one purchasing event"""
    __tablename__ = "kit_batches"

    id = Column(Integer, primary_key=True, index=True)

    # Lot code entered by staff, e.g. LOT-2024-001
    batch_code = Column(String(50), unique=True, nullable=False, index=True, comment="Batch code")

    kit_type_id = Column(Integer, ForeignKey("kit_types.id"), nullable=False, index=True)

    supplier = Column(String(200), nullable=False, comment="Supplier")
    purchased_at = Column(Date, nullable=False, comment="Purchase date")
    unit_cost = Column(DECIMAL(12, 2), nullable=False, comment="Cost per kit")
    quantity = Column(Integer, nullable=False, comment="Kits purchased")
    expires_at = Column(Date, nullable=True, comment="Expiry date")
    note = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    kit_type = relationship("KitType", back_populates="batches")
    kits = relationship("Kit", back_populates="batch", cascade="all, delete-orphan", order_by="Kit.kit_code")

    def __repr__(self):
        return f"<KitBatch {self.batch_code} x{self.quantity}>"

    def kit_code(self, seq: int) -> str:
        """Unit code: batch code plus a zero-padded sequence, e.g. LOT-2024-001-001"""
        return f"{self.batch_code}-{seq:03d}"


class Kit(Base):
    """Kit unit - one physical kit"""
    __tablename__ = "kits"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("kit_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    kit_code = Column(String(60), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="in_stock", index=True)
    assigned_at = Column(DateTime, nullable=True)
    tested_at = Column(DateTime, nullable=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    batch = relationship("KitBatch", back_populates="kits")

    def __repr__(self):
        return f"<Kit {self.kit_code} [{self.status}]>"

    @property
    def status_display(self) -> str:
        status_map = {
            "in_stock": "Trong kho",
            "assigned": "Đã gán",
            "used": "Đã dùng",
            "void": "Hủy",
            "expired": "Hết hạn",
            "lost": "Thất lạc",
        }
        return status_map.get(self.status, self.status)
