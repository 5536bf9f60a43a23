import os
import tempfile
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

# Settings are read at import time
os.environ.setdefault("SQLITE_DATABASE_URI", "sqlite:///:memory:")
os.environ.setdefault("KIT_EXPIRY_SWEEP_ENABLED", "false")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "pathlab-test-logs"))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pathlab.core.deps import get_db
from pathlab.core.security import create_access_token, get_password_hash
from pathlab.db.base import Base
from pathlab.db.session import register_sqlite_functions
from pathlab.main import app
from pathlab.models import User, Category, Company, Customer, KitType, SampleType, CostCatalog


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    register_sqlite_functions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def seed(db):
    """Users, dictionaries and tokens shared by the API tests"""
    editor = User(email="editor@lab.local", full_name="Editor",
                  hashed_password=get_password_hash("editor123"), role="editor")
    viewer = User(email="viewer@lab.local", full_name="Viewer",
                  hashed_password=get_password_hash("viewer123"), role="viewer")
    inactive = User(email="old@lab.local", hashed_password=get_password_hash("old123"),
                    role="editor", is_active=False)

    category = Category(code="TOM", name="Tôm")
    retired_category = Category(code="CUA", name="Cua", is_active=False)
    sample_type = SampleType(code="TOM_GIONG", name="Tôm giống")
    pcr = KitType(code="PCR", name="Kit PCR", default_sl_mau=1)
    stain = KitType(code="NHUOM", name="Kit nhuộm", default_sl_mau=5)
    company = Company(code="CT001", name="Minh Phú")

    db.add_all([editor, viewer, inactive, category, retired_category, sample_type, pcr, stain, company])
    await db.flush()

    customer = Customer(code="KH001", name="Trại tôm Bạc Liêu", company_id=company.id,
                        email="baclieu@example.vn")
    other_customer = Customer(code="KH002", name="Anh Năm", phone="0902000222")
    old_cost = CostCatalog(kit_type_id=pcr.id, sample_type_id=sample_type.id,
                           cost_per_unit=Decimal("120000"), effective_from=date(2024, 1, 1))
    new_cost = CostCatalog(kit_type_id=stain.id, cost_per_unit=Decimal("80000"),
                           effective_from=date(2024, 6, 1))
    db.add_all([customer, other_customer, old_cost, new_cost])
    await db.commit()

    return SimpleNamespace(
        editor=editor,
        viewer=viewer,
        inactive=inactive,
        category=category,
        sample_type=sample_type,
        pcr=pcr,
        stain=stain,
        company=company,
        customer=customer,
        editor_headers={"Authorization": f"Bearer {create_access_token(editor.id)}"},
        viewer_headers={"Authorization": f"Bearer {create_access_token(viewer.id)}"},
        inactive_headers={"Authorization": f"Bearer {create_access_token(inactive.id)}"},
    )


@pytest.fixture
def create_batch(client, seed):
    """POST a valid batch; returns the response"""
    async def _create(batch_code="LOT-2024-001", quantity=5, kit_type_id=None, **overrides):
        payload = {
            "batch_code": batch_code,
            "kit_type_id": kit_type_id or seed.pcr.id,
            "supplier": "Công ty Thiết bị Y tế",
            "purchased_at": "2024-01-10",
            "unit_cost": 120000,
            "quantity": quantity,
            "expires_at": "2025-01-10",
        }
        payload.update(overrides)
        return await client.post("/api/v1/kits/bulk-create", json=payload, headers=seed.editor_headers)
    return _create


@pytest.fixture
def sample_payload(seed):
    """Valid create body; pass kit selection keys as overrides"""
    def _payload(**overrides):
        payload = {
            "customer": "Trại tôm Bạc Liêu",
            "sample_type": "Tôm giống",
            "received_at": "2024-01-15",
            "collected_at": "2024-01-14",
            "technician": "Nguyễn Văn A",
            "price": 150000,
            "category_id": seed.category.id,
            "company_snapshot": {"name": "Minh Phú", "province": "Cà Mau"},
            "customer_snapshot": {"name": "Trại tôm Bạc Liêu", "phone": "0901000111"},
            "sl_mau": 1,
        }
        payload.update(overrides)
        return payload
    return _payload
