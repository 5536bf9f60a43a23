"""Dictionary lookup API"""
import pytest

from pathlab.models import Category, Customer


async def test_categories_active_only_by_default(client, seed):
    response = await client.get("/api/v1/dicts/categories")

    assert response.status_code == 200
    assert [c["code"] for c in response.json()["data"]] == ["TOM"]


async def test_categories_including_inactive(client, seed):
    response = await client.get("/api/v1/dicts/categories", params={"active_only": "false"})
    # Ordered by name
    assert [c["name"] for c in response.json()["data"]] == ["Cua", "Tôm"]


async def test_customers_search_matches_email_and_includes_company(client, seed):
    response = await client.get("/api/v1/dicts/customers", params={"search": "BACLIEU@"})

    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["code"] == "KH001"
    assert data[0]["company"] == {"id": seed.company.id, "name": "Minh Phú"}


@pytest.mark.parametrize("search,expected", [
    ("pcr", ["PCR"]),
    ("nhu", ["NHUOM"]),
    ("", ["NHUOM", "PCR"]),
    ("nothing-like-this", []),
])
async def test_kit_types_search(client, seed, search, expected):
    response = await client.get("/api/v1/dicts/kit-types", params={"search": search})
    assert response.status_code == 200
    assert [k["code"] for k in response.json()["data"]] == expected


async def test_kit_types_carry_default_sample_count(client, seed):
    data = (await client.get("/api/v1/dicts/kit-types")).json()["data"]
    assert {k["code"]: k["default_sl_mau"] for k in data} == {"NHUOM": 5, "PCR": 1}


async def test_costs_newest_first_with_types(client, seed):
    response = await client.get("/api/v1/dicts/costs")

    data = response.json()["data"]
    assert [c["effective_from"] for c in data] == ["2024-06-01", "2024-01-01"]
    assert data[0]["kit_type"]["code"] == "NHUOM"
    assert data[0]["sample_type"] is None
    assert data[1]["cost_per_unit"] == 120000
    assert data[1]["sample_type"]["name"] == "Tôm giống"


async def test_costs_search_by_kit_type_name(client, seed):
    response = await client.get("/api/v1/dicts/costs", params={"search": "pcr"})
    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["kit_type"]["code"] == "PCR"


async def test_companies_and_sample_types(client, seed):
    companies = (await client.get("/api/v1/dicts/companies")).json()["data"]
    sample_types = (await client.get("/api/v1/dicts/sample-types")).json()["data"]
    assert [c["code"] for c in companies] == ["CT001"]
    assert [s["code"] for s in sample_types] == ["TOM_GIONG"]


async def test_empty_table_is_not_an_error(client):
    response = await client.get("/api/v1/dicts/categories")
    assert response.status_code == 200
    assert response.json() == {"data": []}


async def test_backend_failure_returns_localized_message(client, seed, engine):
    async with engine.begin() as conn:
        await conn.run_sync(Category.__table__.drop)

    response = await client.get("/api/v1/dicts/categories")

    assert response.status_code == 500
    assert response.json() == {"error": "Không thể tải danh sách danh mục"}


@pytest.mark.parametrize("search", ["TÔM", "tôm", "Tôm"])
async def test_search_folds_vietnamese_case(client, seed, search):
    response = await client.get("/api/v1/dicts/categories", params={"search": search})
    assert [c["code"] for c in response.json()["data"]] == ["TOM"]


async def test_customer_search_folds_d_with_stroke(client, seed, db):
    db.add(Customer(code="KH003", name="Đại lý Đức"))
    await db.commit()

    response = await client.get("/api/v1/dicts/customers", params={"search": "đức"})
    assert [c["code"] for c in response.json()["data"]] == ["KH003"]
