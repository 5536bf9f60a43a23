# Model package - import every model so Base.metadata knows all tables

from pathlab.models.user import User
from pathlab.models.dictionary import Category, Company, Customer, KitType, SampleType, CostCatalog
from pathlab.models.kit import KitBatch, Kit
from pathlab.models.sample import Sample, SampleResult, SampleCodeSequence
from pathlab.models.audit_log import AuditLog

__all__ = [
    "User",
    "Category",
    "Company",
    "Customer",
    "KitType",
    "SampleType",
    "CostCatalog",
    "KitBatch",
    "Kit",
    "Sample",
    "SampleResult",
    "SampleCodeSequence",
    "AuditLog",
]
