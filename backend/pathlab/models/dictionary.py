"""
Reference tables (dictionaries)
Maintained by administrators; the API only reads them
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from pathlab.db.base import Base


class Category(Base):
    """Sample category"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, comment="Category code")
    name = Column(String(100), nullable=False, index=True, comment="Category name")
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Company(Base):
    """Client company"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False, index=True)
    address = Column(String(300), nullable=True)
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customers = relationship("Customer", back_populates="company")


class Customer(Base):
    """Customer (farm / contact person), optionally belonging to a company"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(String(300), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", back_populates="customers")


class KitType(Base):
    """Kit type (reagent / test kit model)"""
    __tablename__ = "kit_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    # Sample count the form pre-fills for this kit type
    default_sl_mau = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    batches = relationship("KitBatch", back_populates="kit_type")

    def __repr__(self):
        return f"<KitType {self.code}: {self.name}>"


class SampleType(Base):
    """Sample type (shrimp, water, feed...)"""
    __tablename__ = "sample_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CostCatalog(Base):
    """Unit cost per kit type / sample type over a validity window"""
    __tablename__ = "cost_catalog"

    id = Column(Integer, primary_key=True, index=True)
    kit_type_id = Column(Integer, ForeignKey("kit_types.id"), nullable=True, index=True)
    sample_type_id = Column(Integer, ForeignKey("sample_types.id"), nullable=True, index=True)
    cost_per_unit = Column(DECIMAL(12, 2), nullable=False, comment="Cost per unit")
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    kit_type = relationship("KitType")
    sample_type = relationship("SampleType")
