"""
Sample models
- Sample: one lab specimen, linked to the kit unit used for it
- SampleResult: one measured metric, replaced wholesale on every results update
- SampleCodeSequence: per-day counter behind the human-readable sample code
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL, Float
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship
from pathlab.db.base import Base


SAMPLE_STATUSES = ("draft", "done", "approved")
BILLING_STATUSES = ("unpaid", "invoiced", "paid", "eom_credit")

# Lab markers a result row may carry
METRIC_CODES = (
    "CL_GAN",
    "WSSV",
    "EHP",
    "EMS",
    "TPD",
    "KHUAN",
    "MBV",
    "DIV1",
    "DANG_KHAC",
    "VI_KHUAN_VI_NAM",
    "TAM_SOAT",
)

# value_text meaning "tested, zero/negative"
NEGATIVE_SENTINEL = "-"


class Sample(Base):
    """Lab sample"""
    __tablename__ = "samples"

    id = Column(Integer, primary_key=True, index=True)

    kit_id = Column(Integer, ForeignKey("kits.id"), nullable=False, index=True)

    # Generated once at creation, e.g. XN20240115-003
    sample_code = Column(String(30), unique=True, nullable=False, index=True, comment="Sample code")

    customer = Column(String(200), nullable=False, index=True)
    sample_type = Column(String(100), nullable=False)
    received_at = Column(Date, nullable=False, index=True, comment="Received date")
    collected_at = Column(Date, nullable=True, comment="Collection date")
    technician = Column(String(100), nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))

    # draft / done / approved
    status = Column(String(20), nullable=False, default="draft", index=True)
    # unpaid / invoiced / paid / eom_credit
    billing_status = Column(String(20), nullable=False, default="unpaid", index=True)
    # First day of the invoiced month, e.g. 2024-01-01
    invoice_month = Column(Date, nullable=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    # Copies of company / customer details at the time the sample was received
    company_snapshot = Column(JSON, nullable=False, default=dict)
    customer_snapshot = Column(JSON, nullable=False, default=dict)

    sl_mau = Column(Integer, nullable=False, default=1, comment="Number of specimens")
    note = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    kit = relationship("Kit")
    category = relationship("Category")
    creator = relationship("User", foreign_keys=[created_by])
    results = relationship(
        "SampleResult",
        back_populates="sample",
        cascade="all, delete-orphan",
        order_by="SampleResult.id",
    )

    def __repr__(self):
        return f"<Sample {self.sample_code} ({self.status})>"


class SampleResult(Base):
    """Result of one metric for a sample"""
    __tablename__ = "sample_results"

    id = Column(Integer, primary_key=True, index=True)
    sample_id = Column(Integer, ForeignKey("samples.id", ondelete="CASCADE"), nullable=False, index=True)

    metric_code = Column(String(30), nullable=False, comment="Metric code")
    metric_name = Column(String(100), nullable=False)
    value_num = Column(Float, nullable=True)
    value_text = Column(String(100), nullable=True)
    unit = Column(String(30), nullable=False, default="")
    ref_low = Column(Float, nullable=True)
    ref_high = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    sample = relationship("Sample", back_populates="results")

    def __repr__(self):
        return f"<SampleResult {self.metric_code}={self.value_num if self.value_num is not None else self.value_text}>"


class SampleCodeSequence(Base):
    """Last sample number issued per received date"""
    __tablename__ = "sample_code_sequences"

    day = Column(Date, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
