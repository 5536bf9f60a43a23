"""Kit inventory schemas"""
from typing import Any, Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator

from pathlab.schemas.common import parse_day

MAX_BATCH_QUANTITY = 100


def _is_whole_number(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    if isinstance(v, int):
        return True
    return isinstance(v, float) and v.is_integer()


# ===== Batch creation =====
class KitBulkCreate(BaseModel):
    """Create a batch and its kit units"""
    batch_code: str = Field(..., max_length=50, description="Batch code, unique")
    kit_type_id: int = Field(..., description="Kit type ID")
    supplier: str = Field(..., max_length=200, description="Supplier")
    purchased_at: date = Field(..., description="Purchase date (YYYY-MM-DD)")
    unit_cost: Decimal = Field(..., description="Cost per kit, > 0")
    quantity: int = Field(..., description="Number of kits, 1..100")
    expires_at: Optional[date] = Field(None, description="Expiry date, after purchase date")
    note: Optional[str] = Field(None, description="Note")

    @field_validator("batch_code", mode="before")
    @classmethod
    def check_batch_code(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Mã lô không được để trống")
        return v.strip() if isinstance(v, str) else v

    @field_validator("supplier", mode="before")
    @classmethod
    def check_supplier(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Nhà cung cấp không được để trống")
        return v.strip() if isinstance(v, str) else v

    @field_validator("purchased_at", mode="before")
    @classmethod
    def check_purchased_at(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Ngày mua không hợp lệ")
        return parse_day(v, "Ngày mua không hợp lệ")

    @field_validator("expires_at", mode="before")
    @classmethod
    def check_expires_at(cls, v: Any) -> Any:
        return parse_day(v, "Ngày hết hạn không hợp lệ")

    @field_validator("unit_cost")
    @classmethod
    def check_unit_cost(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Đơn giá phải lớn hơn 0")
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def check_quantity(cls, v: Any) -> Any:
        if not _is_whole_number(v):
            raise ValueError("Số lượng phải là số nguyên")
        v = int(v)
        if v < 1:
            raise ValueError("Số lượng phải ≥ 1")
        if v > MAX_BATCH_QUANTITY:
            raise ValueError("Số lượng quá lớn")
        return v

    @model_validator(mode="after")
    def check_dates(self) -> "KitBulkCreate":
        if self.expires_at is not None and self.expires_at <= self.purchased_at:
            raise ValueError("Ngày hết hạn phải sau ngày mua")
        return self


class KitBatchResponse(BaseModel):
    """Batch"""
    id: int
    batch_code: str
    kit_type_id: int
    supplier: str
    purchased_at: date
    unit_cost: float
    quantity: int
    expires_at: Optional[date] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class KitResponse(BaseModel):
    """Kit unit"""
    id: int
    batch_id: int
    kit_code: str
    status: str
    status_display: str
    assigned_at: Optional[datetime] = None
    tested_at: Optional[datetime] = None
    note: Optional[str] = None

    class Config:
        from_attributes = True


class KitBulkCreateResult(BaseModel):
    batch: KitBatchResponse
    kits: List[KitResponse]
    count: int


class KitBulkCreateResponse(BaseModel):
    data: KitBulkCreateResult


# ===== Availability =====
class KitAvailability(BaseModel):
    """Unit counts of one kit type, per status"""
    kit_type_id: int
    kit_type_code: str
    kit_type_name: str
    by_status: Dict[str, int]
    total: int


class KitAvailabilityListResponse(BaseModel):
    data: List[KitAvailability]


# ===== Bulk adjustment =====
class KitBulkAdjust(BaseModel):
    """Move units between in_stock and void/lost"""
    kit_type_id: int = Field(..., description="Kit type ID")
    delta: int = Field(..., description="Positive: back to stock; negative: write off")
    reason: Optional[str] = Field(None, max_length=500, description="Reason")

    @field_validator("delta", mode="before")
    @classmethod
    def check_delta(cls, v: Any) -> Any:
        if not _is_whole_number(v):
            raise ValueError("Delta phải là số nguyên")
        return int(v)

    @field_validator("reason")
    @classmethod
    def blank_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class KitBulkAdjustResult(BaseModel):
    adjusted: int
    new_stock: int


class KitBulkAdjustResponse(BaseModel):
    data: KitBulkAdjustResult


# ===== Nested views used by sample detail =====
class KitTypeBrief(BaseModel):
    id: int
    code: str
    name: str

    class Config:
        from_attributes = True


class KitBatchDetail(KitBatchResponse):
    kit_type: Optional[KitTypeBrief] = None


class KitDetail(KitResponse):
    batch: Optional[KitBatchDetail] = None
