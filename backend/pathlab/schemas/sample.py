"""Sample schemas"""
from typing import Any, Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator

from pathlab.models.sample import SAMPLE_STATUSES, BILLING_STATUSES, METRIC_CODES
from pathlab.schemas.common import parse_day, require_text, MONTH_START_PATTERN
from pathlab.schemas.kit import KitResponse, KitDetail


class CompanySnapshot(BaseModel):
    name: str
    region: Optional[str] = None
    province: Optional[str] = None


class CustomerSnapshot(BaseModel):
    name: str
    phone: Optional[str] = None
    region: Optional[str] = None


# ===== Sample fields shared by create and update =====
class SampleFields(BaseModel):
    """Every editable sample field, all optional; subclasses tighten what is required"""
    customer: Optional[str] = Field(None, max_length=200)
    sample_type: Optional[str] = Field(None, max_length=100)
    received_at: Optional[date] = None
    collected_at: Optional[date] = None
    technician: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = None
    status: Optional[str] = None
    billing_status: Optional[str] = None
    invoice_month: Optional[date] = None
    category_id: Optional[int] = None
    company_snapshot: Optional[CompanySnapshot] = None
    customer_snapshot: Optional[CustomerSnapshot] = None
    sl_mau: Optional[int] = None
    note: Optional[str] = None

    @field_validator("customer")
    @classmethod
    def check_customer(cls, v: Optional[str]) -> Optional[str]:
        return require_text(v, "Khách hàng không được để trống")

    @field_validator("sample_type")
    @classmethod
    def check_sample_type(cls, v: Optional[str]) -> Optional[str]:
        return require_text(v, "Loại mẫu không được để trống")

    @field_validator("technician")
    @classmethod
    def check_technician(cls, v: Optional[str]) -> Optional[str]:
        return require_text(v, "Kỹ thuật viên không được để trống")

    @field_validator("received_at", mode="before")
    @classmethod
    def check_received_at(cls, v: Any) -> Any:
        return parse_day(v, "Ngày nhận không hợp lệ")

    @field_validator("collected_at", mode="before")
    @classmethod
    def check_collected_at(cls, v: Any) -> Any:
        return parse_day(v, "Ngày lấy mẫu không hợp lệ")

    @field_validator("invoice_month", mode="before")
    @classmethod
    def check_invoice_month(cls, v: Any) -> Any:
        return parse_day(v, "Tháng hóa đơn không hợp lệ", MONTH_START_PATTERN)

    @field_validator("price")
    @classmethod
    def check_price(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Giá phải ≥ 0")
        return v

    @field_validator("status")
    @classmethod
    def check_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SAMPLE_STATUSES:
            raise ValueError("Trạng thái mẫu không hợp lệ")
        return v

    @field_validator("billing_status")
    @classmethod
    def check_billing_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in BILLING_STATUSES:
            raise ValueError("Trạng thái thanh toán không hợp lệ")
        return v

    @field_validator("sl_mau", mode="before")
    @classmethod
    def check_sl_mau(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, int) or v < 1:
            raise ValueError("Số lượng mẫu phải > 0")
        return v


class SampleCreate(SampleFields):
    """Create a sample: either kit_id, or assignNext with kit_type_id"""
    kit_id: Optional[int] = Field(None, description="Explicit kit unit")
    assign_next: Optional[bool] = Field(None, alias="assignNext", description="Take the oldest in-stock kit")
    kit_type_id: Optional[int] = Field(None, description="Kit type used with assignNext")

    customer: str = Field(..., max_length=200)
    sample_type: str = Field(..., max_length=100)
    received_at: date
    technician: str = Field(..., max_length=100)
    price: Decimal
    category_id: int
    company_snapshot: CompanySnapshot
    customer_snapshot: CustomerSnapshot
    sl_mau: int

    class Config:
        populate_by_name = True


# Columns that may not be cleared by an update
NON_NULLABLE_SAMPLE_FIELDS = (
    "customer", "sample_type", "received_at", "technician", "price",
    "status", "billing_status", "category_id", "company_snapshot",
    "customer_snapshot", "sl_mau",
)


class SampleUpdate(SampleFields):
    """Partial update: only supplied fields change"""

    @model_validator(mode="after")
    def check_not_cleared(self) -> "SampleUpdate":
        for name in NON_NULLABLE_SAMPLE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"Trường {name} không được để trống")
        return self


# ===== Results =====
class SampleResultIn(BaseModel):
    """One metric result as entered"""
    metric_code: str
    metric_name: str
    value_num: Optional[float] = None
    value_text: Optional[str] = None
    unit: Optional[str] = ""
    ref_low: Optional[float] = None
    ref_high: Optional[float] = None

    @field_validator("metric_code")
    @classmethod
    def check_metric_code(cls, v: str) -> str:
        if v not in METRIC_CODES:
            raise ValueError("Mã chỉ số không hợp lệ")
        return v

    @field_validator("metric_name")
    @classmethod
    def check_metric_name(cls, v: str) -> str:
        return require_text(v, "Tên chỉ số không được để trống")

    @field_validator("unit")
    @classmethod
    def default_unit(cls, v: Optional[str]) -> str:
        return v or ""


class SampleResultsUpdate(BaseModel):
    results: List[SampleResultIn]

    @field_validator("results")
    @classmethod
    def check_not_empty(cls, v: List[SampleResultIn]) -> List[SampleResultIn]:
        if not v:
            raise ValueError("Phải có ít nhất một kết quả")
        return v


class SampleResultResponse(BaseModel):
    id: int
    sample_id: int
    metric_code: str
    metric_name: str
    value_num: Optional[float] = None
    value_text: Optional[str] = None
    unit: str = ""
    ref_low: Optional[float] = None
    ref_high: Optional[float] = None

    class Config:
        from_attributes = True


class SampleResultsResponse(BaseModel):
    data: List[SampleResultResponse]
    count: int


# ===== Sample responses =====
class SampleResponse(BaseModel):
    id: int
    kit_id: int
    sample_code: str
    customer: str
    sample_type: str
    received_at: date
    collected_at: Optional[date] = None
    technician: str
    price: float
    status: str
    billing_status: str
    invoice_month: Optional[date] = None
    category_id: int
    company_snapshot: Dict[str, Any] = {}
    customer_snapshot: Dict[str, Any] = {}
    sl_mau: int
    note: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SampleWithKit(SampleResponse):
    kit: Optional[KitResponse] = None


class SampleDetail(SampleResponse):
    kit: Optional[KitDetail] = None
    results: List[SampleResultResponse] = []


class SampleEnvelope(BaseModel):
    data: SampleResponse


class SampleDetailEnvelope(BaseModel):
    data: SampleDetail


class Pagination(BaseModel):
    page: int
    page_size: int = Field(..., alias="pageSize")
    total: int
    total_pages: int = Field(..., alias="totalPages")

    class Config:
        populate_by_name = True


class SampleListResponse(BaseModel):
    data: List[SampleWithKit]
    pagination: Pagination


# ===== Sample code =====
class NextSampleCode(BaseModel):
    sample_code: str
    received_at: date


class NextSampleCodeResponse(BaseModel):
    data: NextSampleCode


# ===== Report message =====
class PositiveResult(BaseModel):
    metric_code: str
    metric_name: str
    value: float
    severity: int
    severity_label: str


class ReportMessage(BaseModel):
    sample_id: int
    sample_code: str
    customer: str
    kq_chung: str
    positive_count: int
    positive_results: List[PositiveResult]
    message: str


class ReportMessageResponse(BaseModel):
    data: ReportMessage
