"""Dictionary (reference table) schemas"""
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel


class DictionaryBase(BaseModel):
    id: int
    code: str
    name: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryResponse(DictionaryBase):
    description: Optional[str] = None


class SampleTypeResponse(DictionaryBase):
    description: Optional[str] = None


class KitTypeResponse(DictionaryBase):
    description: Optional[str] = None
    default_sl_mau: Optional[int] = None


class CompanyResponse(DictionaryBase):
    address: Optional[str] = None
    phone: Optional[str] = None


class CompanyBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CustomerResponse(DictionaryBase):
    company_id: Optional[int] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    company: Optional[CompanyBrief] = None


class TypeBrief(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class CostResponse(BaseModel):
    id: int
    kit_type_id: Optional[int] = None
    sample_type_id: Optional[int] = None
    cost_per_unit: float
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    kit_type: Optional[TypeBrief] = None
    sample_type: Optional[TypeBrief] = None

    class Config:
        from_attributes = True


class CategoryListResponse(BaseModel):
    data: List[CategoryResponse]


class CompanyListResponse(BaseModel):
    data: List[CompanyResponse]


class CustomerListResponse(BaseModel):
    data: List[CustomerResponse]


class KitTypeListResponse(BaseModel):
    data: List[KitTypeResponse]


class SampleTypeListResponse(BaseModel):
    data: List[SampleTypeResponse]


class CostListResponse(BaseModel):
    data: List[CostResponse]
