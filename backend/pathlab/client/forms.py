"""
Sample form
Validates raw form input (strings, as typed) with the same rules the
server applies, and turns it into API payloads.
"""

import re
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ValidationError, field_validator, model_validator

KIT_SELECTION_MESSAGE = "Vui lòng chọn kit hoặc loại kit"
INVOICE_MONTH_MESSAGE = "Vui lòng chọn tháng hóa đơn"

# Billing statuses that need an invoice month
INVOICED_BILLING_STATUSES = ("invoiced", "eom_credit")

# Form-level rule -> field the message is shown under
_FORM_ERROR_FIELDS = {
    KIT_SELECTION_MESSAGE: "kit_type_id",
    INVOICE_MONTH_MESSAGE: "invoice_month",
}

_MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")

_REQUIRED_TEXT_MESSAGES = {
    "customer": "Khách hàng không được để trống",
    "sample_type": "Loại mẫu không được để trống",
    "received_at": "Ngày nhận không được để trống",
    "technician": "Kỹ thuật viên không được để trống",
    "category_id": "Vui lòng chọn danh mục",
    "company_name": "Tên công ty không được để trống",
    "customer_name": "Tên khách hàng không được để trống",
}


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def _parse_float(value: Any) -> Optional[float]:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def _parse_int(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def invoice_month_value(value: Any) -> Optional[str]:
    """Month picker value (YYYY-MM) as the first day of that month"""
    text = _text(value)
    if not text:
        return None
    if _MONTH_PATTERN.match(text):
        return f"{text}-01"
    return text


def _snapshots(values: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    company = {
        "name": _text(values.get("company_name")),
        "region": _optional_text(values.get("company_region")),
        "province": _optional_text(values.get("company_province")),
    }
    customer = {
        "name": _text(values.get("customer_name")),
        "phone": _optional_text(values.get("customer_phone")),
        "region": _optional_text(values.get("customer_region")),
    }
    return (
        {k: v for k, v in company.items() if v is not None},
        {k: v for k, v in customer.items() if v is not None},
    )


class SampleFormData(BaseModel):
    """Sample form state; every input arrives as a string"""
    assign_next: bool = False
    kit_id: str = ""
    kit_type_id: str = ""

    customer: str = ""
    sample_type: str = ""
    received_at: str = ""
    collected_at: str = ""
    technician: str = ""

    price: str = ""
    status: Literal["draft", "done", "approved"] = "draft"
    billing_status: Literal["unpaid", "invoiced", "paid", "eom_credit"] = "unpaid"
    invoice_month: str = ""
    category_id: str = ""

    company_name: str = ""
    company_region: str = ""
    company_province: str = ""

    customer_name: str = ""
    customer_phone: str = ""
    customer_region: str = ""

    sl_mau: str = "1"
    note: str = ""

    @field_validator(*_REQUIRED_TEXT_MESSAGES)
    @classmethod
    def check_required(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(_REQUIRED_TEXT_MESSAGES[info.field_name])
        return v

    @field_validator("price")
    @classmethod
    def check_price(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Giá không được để trống")
        number = _parse_float(v)
        if number is None or number < 0:
            raise ValueError("Giá phải ≥ 0")
        return v.strip()

    @field_validator("sl_mau")
    @classmethod
    def check_sl_mau(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Số lượng mẫu không được để trống")
        number = _parse_int(v)
        if number is None or number < 1:
            raise ValueError("Số lượng mẫu phải > 0")
        return v.strip()

    @model_validator(mode="after")
    def check_kit_selection(self) -> "SampleFormData":
        if self.assign_next and not self.kit_type_id:
            raise ValueError(KIT_SELECTION_MESSAGE)
        if not self.assign_next and not self.kit_id:
            raise ValueError(KIT_SELECTION_MESSAGE)
        return self

    @model_validator(mode="after")
    def check_invoice_month(self) -> "SampleFormData":
        if self.billing_status in INVOICED_BILLING_STATUSES and not self.invoice_month.strip():
            raise ValueError(INVOICE_MONTH_MESSAGE)
        return self

    @classmethod
    def from_sample(cls, sample: Mapping[str, Any]) -> "SampleFormData":
        """Form state for editing a sample returned by the API"""
        company = sample.get("company_snapshot") or {}
        customer = sample.get("customer_snapshot") or {}
        return cls.model_construct(
            assign_next=False,
            kit_id=str(sample.get("kit_id") or ""),
            kit_type_id="",
            customer=sample.get("customer") or "",
            sample_type=sample.get("sample_type") or "",
            received_at=str(sample.get("received_at") or ""),
            collected_at=str(sample.get("collected_at") or ""),
            technician=sample.get("technician") or "",
            price=str(sample.get("price", "")),
            status=sample.get("status") or "draft",
            billing_status=sample.get("billing_status") or "unpaid",
            invoice_month=str(sample.get("invoice_month") or "")[:7],
            category_id=str(sample.get("category_id") or ""),
            company_name=company.get("name") or "",
            company_region=company.get("region") or "",
            company_province=company.get("province") or "",
            customer_name=customer.get("name") or "",
            customer_phone=customer.get("phone") or "",
            customer_region=customer.get("region") or "",
            sl_mau=str(sample.get("sl_mau") or "1"),
            note=sample.get("note") or "",
        )

    def _common_payload(self) -> Dict[str, Any]:
        company, customer = _snapshots(self.model_dump())
        return {
            "customer": self.customer.strip(),
            "sample_type": self.sample_type.strip(),
            "received_at": self.received_at,
            "collected_at": self.collected_at or None,
            "technician": self.technician.strip(),
            "price": float(self.price),
            "status": self.status,
            "billing_status": self.billing_status,
            "invoice_month": invoice_month_value(self.invoice_month),
            "category_id": int(self.category_id),
            "company_snapshot": company,
            "customer_snapshot": customer,
            "sl_mau": int(self.sl_mau),
            "note": _optional_text(self.note),
        }

    def to_create_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"assignNext": self.assign_next}
        if self.assign_next:
            payload["kit_type_id"] = int(self.kit_type_id)
        else:
            payload["kit_id"] = int(self.kit_id)
        payload.update(self._common_payload())
        return payload

    def to_update_payload(self) -> Dict[str, Any]:
        return self._common_payload()


def validate_form(values: Mapping[str, Any]) -> Tuple[Optional[SampleFormData], Dict[str, str]]:
    """Validate raw form values

    Returns the form and no errors, or None and {field: first message}.
    """
    try:
        return SampleFormData.model_validate(dict(values)), {}
    except ValidationError as exc:
        return None, form_errors(exc)


def form_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        message = str(error.get("msg", ""))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        loc: List[Any] = list(error.get("loc") or ())
        field = str(loc[0]) if loc else _FORM_ERROR_FIELDS.get(message, "__form__")
        errors.setdefault(field, message)
    return errors


def build_draft_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    """PATCH body for an autosaved draft

    Works on unvalidated input: unparsable numbers fall back to defaults,
    blank required fields are left out, and status is always draft.
    """
    company, customer = _snapshots(values)
    price = _parse_float(values.get("price"))
    sl_mau = _parse_int(values.get("sl_mau"))
    category_id = _parse_int(values.get("category_id"))

    payload: Dict[str, Any] = {
        "customer": _optional_text(values.get("customer")),
        "sample_type": _optional_text(values.get("sample_type")),
        "received_at": _optional_text(values.get("received_at")),
        "collected_at": _optional_text(values.get("collected_at")),
        "technician": _optional_text(values.get("technician")),
        "price": price if price is not None and price >= 0 else 0,
        "status": "draft",
        "billing_status": values.get("billing_status") or "unpaid",
        "invoice_month": invoice_month_value(values.get("invoice_month")),
        "category_id": category_id,
        "sl_mau": sl_mau if sl_mau is not None and sl_mau >= 1 else 1,
        "note": _optional_text(values.get("note")),
    }
    if company.get("name"):
        payload["company_snapshot"] = company
    if customer.get("name"):
        payload["customer_snapshot"] = customer

    # These columns cannot be cleared, so blanks are not sent
    for key in ("customer", "sample_type", "received_at", "technician", "category_id"):
        if payload[key] is None:
            del payload[key]
    return payload
