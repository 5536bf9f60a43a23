"""Sample record API: creation, listing, detail, update, results, report"""
import pytest
from sqlalchemy import select, update, func

from pathlab.models import AuditLog, Kit, Sample, SampleResult

WSSV = {"metric_code": "WSSV", "metric_name": "Đốm trắng", "value_num": 5, "unit": "copies"}
EHP_NEGATIVE = {"metric_code": "EHP", "metric_name": "Vi bào tử trùng", "value_text": "-"}
TPD = {"metric_code": "TPD", "metric_name": "Hoại tử gan tụy", "value_num": 2}


async def _kit_statuses(db):
    result = await db.execute(select(Kit.kit_code, Kit.status).order_by(Kit.kit_code))
    return dict(result.all())


async def _create_sample(client, seed, sample_payload, **overrides):
    body = sample_payload(assignNext=True, kit_type_id=seed.pcr.id, **overrides)
    return await client.post("/api/v1/samples", json=body, headers=seed.editor_headers)


# ------------------------------------------------------------------
# Creation
# ------------------------------------------------------------------

async def test_assign_next_claims_exactly_one_unit(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=3)
    before = await _kit_statuses(db)

    response = await _create_sample(client, seed, sample_payload)

    assert response.status_code == 201
    sample = response.json()["data"]
    assert sample["sample_code"] == "XN20240115-001"
    assert sample["status"] == "draft"
    assert sample["billing_status"] == "unpaid"
    assert sample["created_by"] == seed.editor.id

    after = await _kit_statuses(db)
    changed = {code for code in after if after[code] != before[code]}
    assert changed == {"LOT-1-001"}
    assert after["LOT-1-001"] == "assigned"

    kit = (await db.execute(
        select(Kit.id, Kit.assigned_at).where(Kit.kit_code == "LOT-1-001")
    )).one()
    assert sample["kit_id"] == kit.id
    assert kit.assigned_at is not None


async def test_codes_increase_per_received_day(client, seed, create_batch, sample_payload):
    await create_batch(batch_code="LOT-1", quantity=3)

    first = await _create_sample(client, seed, sample_payload)
    second = await _create_sample(client, seed, sample_payload)
    other_day = await _create_sample(client, seed, sample_payload, received_at="2024-01-16")

    assert first.json()["data"]["sample_code"] == "XN20240115-001"
    assert second.json()["data"]["sample_code"] == "XN20240115-002"
    assert other_day.json()["data"]["sample_code"] == "XN20240116-001"


async def test_assign_next_without_stock(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)
    await db.execute(update(Kit).values(status="used"))
    await db.commit()

    response = await _create_sample(client, seed, sample_payload)

    assert response.status_code == 409
    assert response.json()["error"] == "Không còn kit Kit PCR"
    assert (await db.execute(select(func.count(Sample.id)))).scalar() == 0


async def test_explicit_kit_must_be_available(client, seed, create_batch, sample_payload, db):
    batch = (await create_batch(batch_code="LOT-1", quantity=2)).json()["data"]
    first_id, second_id = [k["id"] for k in batch["kits"]]
    await db.execute(update(Kit).where(Kit.id == second_id).values(status="used"))
    await db.commit()

    ok = await client.post("/api/v1/samples", json=sample_payload(kit_id=first_id),
                           headers=seed.editor_headers)
    assert ok.status_code == 201
    assert ok.json()["data"]["kit_id"] == first_id

    used = await client.post("/api/v1/samples", json=sample_payload(kit_id=second_id),
                             headers=seed.editor_headers)
    assert used.status_code == 409
    assert used.json()["error"] == "Kit không tồn tại hoặc đã được sử dụng"

    missing = await client.post("/api/v1/samples", json=sample_payload(kit_id=9999),
                                headers=seed.editor_headers)
    assert missing.status_code == 409

    statuses = await _kit_statuses(db)
    assert statuses == {"LOT-1-001": "assigned", "LOT-1-002": "used"}


async def test_kit_selection_is_required(client, seed, sample_payload):
    neither = await client.post("/api/v1/samples", json=sample_payload(), headers=seed.editor_headers)
    assert neither.status_code == 400
    assert neither.json()["error"] == "Phải cung cấp kit_id hoặc assignNext=true"

    no_type = await client.post("/api/v1/samples", json=sample_payload(assignNext=True),
                                headers=seed.editor_headers)
    assert no_type.status_code == 400
    assert no_type.json()["error"] == "Phải cung cấp kit_type_id khi assignNext=true"


@pytest.mark.parametrize("overrides,message", [
    ({"customer": "  "}, "Khách hàng không được để trống"),
    ({"price": -1}, "Giá phải ≥ 0"),
    ({"sl_mau": 0}, "Số lượng mẫu phải > 0"),
    ({"received_at": "15/01/2024"}, "Ngày nhận không hợp lệ"),
    ({"status": "archived"}, "Trạng thái mẫu không hợp lệ"),
    ({"invoice_month": "2024-01-15"}, "Tháng hóa đơn không hợp lệ"),
])
async def test_create_validation_messages(client, seed, sample_payload, overrides, message):
    body = sample_payload(assignNext=True, kit_type_id=seed.pcr.id, **overrides)
    response = await client.post("/api/v1/samples", json=body, headers=seed.editor_headers)
    assert response.status_code == 422
    assert response.json()["error"] == message


async def test_create_requires_editor(client, seed, sample_payload):
    body = sample_payload(assignNext=True, kit_type_id=seed.pcr.id)
    assert (await client.post("/api/v1/samples", json=body)).status_code == 401
    assert (await client.post("/api/v1/samples", json=body, headers=seed.viewer_headers)).status_code == 403
    assert (await client.post("/api/v1/samples", json=body, headers=seed.inactive_headers)).status_code == 401


async def test_create_rejects_unknown_category(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)

    response = await _create_sample(client, seed, sample_payload, category_id=9999)

    assert response.status_code == 409
    assert response.json() == {"error": "Danh mục không tồn tại"}
    assert await _kit_statuses(db) == {"LOT-1-001": "in_stock"}
    assert (await db.execute(select(func.count(Sample.id)))).scalar() == 0


# ------------------------------------------------------------------
# Next code
# ------------------------------------------------------------------

async def test_next_code_consumes_numbers(client, seed):
    url = "/api/v1/samples/next-code"
    first = await client.get(url, params={"receivedAt": "2024-03-01"}, headers=seed.viewer_headers)
    second = await client.get(url, params={"receivedAt": "2024-03-01"}, headers=seed.viewer_headers)

    assert first.status_code == 200
    assert first.json()["data"] == {"sample_code": "XN20240301-001", "received_at": "2024-03-01"}
    assert second.json()["data"]["sample_code"] == "XN20240301-002"


async def test_next_code_parameter_errors(client, seed):
    url = "/api/v1/samples/next-code"
    missing = await client.get(url, headers=seed.viewer_headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "Tham số receivedAt là bắt buộc"

    bad = await client.get(url, params={"receivedAt": "2024-13-45"}, headers=seed.viewer_headers)
    assert bad.status_code == 400
    assert bad.json()["error"] == "Ngày nhận không hợp lệ"


# ------------------------------------------------------------------
# Listing and detail
# ------------------------------------------------------------------

async def test_list_filters_and_paginates(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=5)
    await _create_sample(client, seed, sample_payload, received_at="2024-01-10")
    await _create_sample(client, seed, sample_payload, received_at="2024-01-12", customer="Anh Năm")
    await _create_sample(client, seed, sample_payload, received_at="2024-01-11", billing_status="paid")

    response = await client.get("/api/v1/samples", params={"pageSize": 2}, headers=seed.viewer_headers)
    body = response.json()
    assert response.status_code == 200
    assert body["pagination"] == {"page": 1, "pageSize": 2, "total": 3, "totalPages": 2}
    assert [s["received_at"] for s in body["data"]] == ["2024-01-12", "2024-01-11"]
    assert body["data"][0]["kit"]["kit_code"].startswith("LOT-1-")

    by_customer = await client.get("/api/v1/samples", params={"customer": "năm"}, headers=seed.viewer_headers)
    assert [s["customer"] for s in by_customer.json()["data"]] == ["Anh Năm"]

    upper_case = await client.get("/api/v1/samples", params={"customer": "BẠC LIÊU"}, headers=seed.viewer_headers)
    assert upper_case.json()["pagination"]["total"] == 2

    paid = await client.get("/api/v1/samples", params={"billingStatus": "paid"}, headers=seed.viewer_headers)
    assert paid.json()["pagination"]["total"] == 1


async def test_list_rejects_bad_page(client, seed):
    response = await client.get("/api/v1/samples", params={"page": 0}, headers=seed.viewer_headers)
    assert response.status_code == 400


async def test_detail_includes_kit_chain_and_is_audited(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]

    response = await client.get(f"/api/v1/samples/{sample_id}", headers=seed.viewer_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["kit"]["kit_code"] == "LOT-1-001"
    assert data["kit"]["status"] == "assigned"
    assert data["kit"]["status_display"] == "Đã gán"
    assert data["kit"]["batch"]["batch_code"] == "LOT-1"
    assert data["kit"]["batch"]["kit_type"]["code"] == "PCR"
    assert data["results"] == []
    assert data["company_snapshot"] == {"name": "Minh Phú", "region": None, "province": "Cà Mau"}

    views = (await db.execute(
        select(AuditLog.actor_id).where(AuditLog.action == "VIEW", AuditLog.entity_id == sample_id)
    )).scalars().all()
    assert views == [seed.viewer.id]


async def test_detail_not_found(client, seed):
    response = await client.get("/api/v1/samples/424242", headers=seed.viewer_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Không tìm thấy mẫu"}

    bad_id = await client.get("/api/v1/samples/abc", headers=seed.viewer_headers)
    assert bad_id.status_code == 400


# ------------------------------------------------------------------
# Update
# ------------------------------------------------------------------

async def test_patch_changes_only_supplied_fields(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)
    created = (await _create_sample(client, seed, sample_payload)).json()["data"]

    response = await client.patch(
        f"/api/v1/samples/{created['id']}",
        json={"billing_status": "invoiced", "invoice_month": "2024-01-01", "note": "Đã xuất hóa đơn"},
        headers=seed.editor_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["billing_status"] == "invoiced"
    assert data["invoice_month"] == "2024-01-01"
    assert data["note"] == "Đã xuất hóa đơn"
    assert data["customer"] == created["customer"]
    assert data["sample_code"] == created["sample_code"]

    diff = (await db.execute(
        select(AuditLog.diff).where(AuditLog.entity == "samples", AuditLog.action == "UPDATE")
    )).scalar_one()
    assert set(diff["changes"]) == {"billing_status", "invoice_month", "note"}
    assert diff["before"]["billing_status"] == "unpaid"
    assert diff["after"]["billing_status"] == "invoiced"


async def test_patch_cannot_clear_required_field(client, seed, create_batch, sample_payload):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]

    response = await client.patch(f"/api/v1/samples/{sample_id}", json={"technician": None},
                                  headers=seed.editor_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "Trường technician không được để trống"


async def test_patch_rejects_unknown_category(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]

    response = await client.patch(f"/api/v1/samples/{sample_id}", json={"category_id": 9999},
                                  headers=seed.editor_headers)

    assert response.status_code == 409
    assert response.json() == {"error": "Danh mục không tồn tại"}
    stored = (await db.execute(select(Sample.category_id).where(Sample.id == sample_id))).scalar_one()
    assert stored == seed.category.id


async def test_patch_unknown_sample(client, seed):
    response = await client.patch("/api/v1/samples/999", json={"note": "x"}, headers=seed.editor_headers)
    assert response.status_code == 404


# ------------------------------------------------------------------
# Results and report
# ------------------------------------------------------------------

async def test_results_replacement_is_idempotent(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]
    url = f"/api/v1/samples/{sample_id}/results"
    body = {"results": [WSSV, EHP_NEGATIVE]}

    first = await client.patch(url, json=body, headers=seed.editor_headers)
    second = await client.patch(url, json=body, headers=seed.editor_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["count"] == second.json()["count"] == 2

    rows = (await db.execute(
        select(SampleResult.metric_code, SampleResult.value_num, SampleResult.value_text)
        .where(SampleResult.sample_id == sample_id)
        .order_by(SampleResult.metric_code)
    )).all()
    assert [tuple(r) for r in rows] == [("EHP", 0, "-"), ("WSSV", 5, None)]


async def test_results_replace_not_merge(client, seed, create_batch, sample_payload, db):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]
    url = f"/api/v1/samples/{sample_id}/results"

    await client.patch(url, json={"results": [WSSV, EHP_NEGATIVE]}, headers=seed.editor_headers)
    response = await client.patch(url, json={"results": [TPD]}, headers=seed.editor_headers)

    assert [r["metric_code"] for r in response.json()["data"]] == ["TPD"]
    codes = (await db.execute(
        select(SampleResult.metric_code).where(SampleResult.sample_id == sample_id)
    )).scalars().all()
    assert codes == ["TPD"]


async def test_results_validation(client, seed, create_batch, sample_payload):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]
    url = f"/api/v1/samples/{sample_id}/results"

    empty = await client.patch(url, json={"results": []}, headers=seed.editor_headers)
    assert empty.status_code == 422
    assert empty.json()["error"] == "Phải có ít nhất một kết quả"

    bad_code = await client.patch(
        url, json={"results": [{"metric_code": "XYZ", "metric_name": "?"}]}, headers=seed.editor_headers
    )
    assert bad_code.status_code == 422
    assert bad_code.json()["error"] == "Mã chỉ số không hợp lệ"


async def test_report_message_for_infected_sample(client, seed, create_batch, sample_payload):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]
    await client.patch(
        f"/api/v1/samples/{sample_id}/results",
        json={"results": [TPD, EHP_NEGATIVE, WSSV]},
        headers=seed.editor_headers,
    )

    response = await client.get(f"/api/v1/samples/{sample_id}/report-message", headers=seed.viewer_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sample_code"] == "XN20240115-001"
    assert data["kq_chung"] == "NHIỄM"
    assert data["positive_count"] == 2
    assert [p["metric_code"] for p in data["positive_results"]] == ["WSSV", "TPD"]
    assert data["positive_results"][0]["severity_label"] == "nặng"
    assert data["message"] == (
        "Mẫu XN20240115-001 - Khách hàng: Trại tôm Bạc Liêu\n"
        "Kết quả tổng hợp: NHIỄM\n"
        "\n"
        "Các chỉ số dương tính:\n"
        "- Đốm trắng (WSSV): 5 (mức độ: nặng)\n"
        "- Hoại tử gan tụy (TPD): 2 (mức độ: TB)\n"
    )


async def test_report_message_for_clean_sample(client, seed, create_batch, sample_payload):
    await create_batch(batch_code="LOT-1", quantity=1)
    sample_id = (await _create_sample(client, seed, sample_payload)).json()["data"]["id"]

    response = await client.get(f"/api/v1/samples/{sample_id}/report-message", headers=seed.viewer_headers)

    data = response.json()["data"]
    assert data["kq_chung"] == "SẠCH"
    assert data["positive_count"] == 0
    assert data["message"].endswith("\n\nTất cả các chỉ số đều âm tính.")
