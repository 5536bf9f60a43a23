"""Sample form validation and payloads"""
import pytest

from pathlab.client.forms import (
    INVOICE_MONTH_MESSAGE, KIT_SELECTION_MESSAGE,
    SampleFormData, build_draft_payload, invoice_month_value, validate_form,
)

VALID_FORM = {
    "assign_next": True,
    "kit_type_id": "2",
    "customer": "  Trại tôm Bạc Liêu ",
    "sample_type": "Tôm giống",
    "received_at": "2024-01-15",
    "technician": "Nguyễn Văn A",
    "price": "150000",
    "category_id": "1",
    "company_name": "Minh Phú",
    "company_province": "Cà Mau",
    "customer_name": "Trại tôm Bạc Liêu",
    "sl_mau": "2",
}


def test_valid_form_builds_create_payload():
    form, errors = validate_form(VALID_FORM)

    assert errors == {}
    payload = form.to_create_payload()
    assert payload["assignNext"] is True
    assert payload["kit_type_id"] == 2
    assert "kit_id" not in payload
    assert payload["customer"] == "Trại tôm Bạc Liêu"
    assert payload["price"] == 150000.0
    assert payload["category_id"] == 1
    assert payload["sl_mau"] == 2
    assert payload["company_snapshot"] == {"name": "Minh Phú", "province": "Cà Mau"}
    assert payload["customer_snapshot"] == {"name": "Trại tôm Bạc Liêu"}
    assert payload["collected_at"] is None
    assert payload["note"] is None


def test_explicit_kit_payload():
    form, _ = validate_form({**VALID_FORM, "assign_next": False, "kit_id": "7", "kit_type_id": ""})
    payload = form.to_create_payload()
    assert payload["kit_id"] == 7
    assert "kit_type_id" not in payload


@pytest.mark.parametrize("overrides,field,message", [
    ({"customer": "   "}, "customer", "Khách hàng không được để trống"),
    ({"technician": ""}, "technician", "Kỹ thuật viên không được để trống"),
    ({"price": ""}, "price", "Giá không được để trống"),
    ({"price": "-5"}, "price", "Giá phải ≥ 0"),
    ({"price": "abc"}, "price", "Giá phải ≥ 0"),
    ({"sl_mau": "0"}, "sl_mau", "Số lượng mẫu phải > 0"),
    ({"category_id": ""}, "category_id", "Vui lòng chọn danh mục"),
    ({"company_name": ""}, "company_name", "Tên công ty không được để trống"),
])
def test_field_errors(overrides, field, message):
    form, errors = validate_form({**VALID_FORM, **overrides})
    assert form is None
    assert errors[field] == message


def test_kit_selection_rule():
    _, errors = validate_form({**VALID_FORM, "kit_type_id": ""})
    assert errors == {"kit_type_id": KIT_SELECTION_MESSAGE}

    _, errors = validate_form({**VALID_FORM, "assign_next": False, "kit_id": ""})
    assert errors == {"kit_type_id": KIT_SELECTION_MESSAGE}


@pytest.mark.parametrize("billing_status", ["invoiced", "eom_credit"])
def test_invoice_month_required_when_invoiced(billing_status):
    _, errors = validate_form({**VALID_FORM, "billing_status": billing_status})
    assert errors == {"invoice_month": INVOICE_MONTH_MESSAGE}

    form, errors = validate_form({**VALID_FORM, "billing_status": billing_status, "invoice_month": "2024-01"})
    assert errors == {}
    assert form.to_update_payload()["invoice_month"] == "2024-01-01"


def test_invoice_month_value():
    assert invoice_month_value("2024-02") == "2024-02-01"
    assert invoice_month_value("2024-02-01") == "2024-02-01"
    assert invoice_month_value("  ") is None
    assert invoice_month_value(None) is None


def test_update_payload_has_no_kit_selection():
    form, _ = validate_form(VALID_FORM)
    payload = form.to_update_payload()
    assert not {"assignNext", "kit_id", "kit_type_id"} & set(payload)


def test_from_sample_round_trips_to_update_payload():
    sample = {
        "kit_id": 3,
        "customer": "Anh Năm",
        "sample_type": "Tôm thịt",
        "received_at": "2024-01-15",
        "collected_at": None,
        "technician": "B",
        "price": 90000.0,
        "status": "done",
        "billing_status": "invoiced",
        "invoice_month": "2024-01-01",
        "category_id": 1,
        "company_snapshot": {"name": "Minh Phú", "region": "Miền Tây"},
        "customer_snapshot": {"name": "Anh Năm", "phone": "0902"},
        "sl_mau": 3,
        "note": None,
    }

    form = SampleFormData.from_sample(sample)

    assert form.kit_id == "3"
    assert form.invoice_month == "2024-01"
    payload = form.to_update_payload()
    assert payload["invoice_month"] == "2024-01-01"
    assert payload["status"] == "done"
    assert payload["company_snapshot"] == {"name": "Minh Phú", "region": "Miền Tây"}
    assert payload["price"] == 90000.0


def test_draft_payload_is_lenient_and_always_draft():
    payload = build_draft_payload({
        "customer": " Trại A ",
        "technician": "",
        "price": "not a number",
        "sl_mau": "",
        "status": "approved",
        "category_id": "",
        "company_name": "",
    })

    assert payload["status"] == "draft"
    assert payload["customer"] == "Trại A"
    assert payload["price"] == 0
    assert payload["sl_mau"] == 1
    assert payload["billing_status"] == "unpaid"
    for key in ("technician", "category_id", "sample_type", "received_at", "company_snapshot"):
        assert key not in payload
