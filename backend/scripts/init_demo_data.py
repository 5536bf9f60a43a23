"""
Demo data setup
- Clears every table (keeps the schema)
- Creates an editor and a viewer account
- Creates dictionaries, cost entries and one kit batch per kit type
"""

import asyncio
import sys
import os
from datetime import date, timedelta
from decimal import Decimal

# Make the pathlab package importable when run as a script
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from pathlab.db.session import SessionLocal
from pathlab.db.init_db import init_db
from pathlab.core.security import get_password_hash
from pathlab.models import User, Category, Company, Customer, KitType, SampleType, CostCatalog
from pathlab.schemas.kit import KitBulkCreate
from pathlab.services.kit_ledger import create_batch_with_kits


async def clear_all_data(db: AsyncSession):
    """Delete all rows, children first"""
    print("🗑️  Clearing data...")

    tables_to_clear = [
        "audit_logs",
        "sample_results",
        "samples",
        "sample_code_sequences",
        "kits",
        "kit_batches",
        "cost_catalog",
        "customers",
        "companies",
        "kit_types",
        "sample_types",
        "categories",
        "users",
    ]

    for table in tables_to_clear:
        await db.execute(text(f"DELETE FROM {table}"))
        print(f"   ✓ {table}")

    await db.commit()
    print("   Done!\n")


async def create_users(db: AsyncSession) -> User:
    print("👤 Creating users...")

    editor = User(
        email="editor@lab.local",
        full_name="Kỹ thuật viên",
        hashed_password=get_password_hash("editor123"),
        role="editor",
        is_active=True
    )
    viewer = User(
        email="viewer@lab.local",
        full_name="Người xem",
        hashed_password=get_password_hash("viewer123"),
        role="viewer",
        is_active=True
    )
    db.add_all([editor, viewer])
    await db.flush()

    print("   ✓ editor@lab.local / editor123")
    print("   ✓ viewer@lab.local / viewer123")
    return editor


async def create_dictionaries(db: AsyncSession) -> dict:
    print("📚 Creating dictionaries...")

    categories = [
        Category(code="TOM", name="Tôm"),
        Category(code="CA", name="Cá"),
        Category(code="NUOC", name="Nước ao"),
    ]
    sample_types = [
        SampleType(code="TOM_GIONG", name="Tôm giống"),
        SampleType(code="TOM_THIT", name="Tôm thịt"),
        SampleType(code="NUOC", name="Nước"),
    ]
    kit_types = [
        KitType(code="PCR", name="Kit PCR", default_sl_mau=1),
        KitType(code="NHUOM", name="Kit nhuộm", default_sl_mau=5),
    ]
    company = Company(code="CT001", name="Công ty Thủy sản Minh Phú", phone="0290 3838 262")
    db.add_all(categories + sample_types + kit_types + [company])
    await db.flush()

    customers = [
        Customer(code="KH001", name="Trại tôm Bạc Liêu", company_id=company.id, phone="0901 000 111"),
        Customer(code="KH002", name="Anh Năm Sóc Trăng", phone="0902 000 222", email="nam@example.vn"),
    ]
    db.add_all(customers)

    db.add_all([
        CostCatalog(kit_type_id=kit_types[0].id, sample_type_id=sample_types[0].id,
                    cost_per_unit=Decimal("150000"), effective_from=date.today().replace(day=1)),
        CostCatalog(kit_type_id=kit_types[1].id, sample_type_id=sample_types[2].id,
                    cost_per_unit=Decimal("80000"), effective_from=date.today().replace(day=1)),
    ])
    await db.flush()

    print(f"   ✓ {len(categories)} categories, {len(sample_types)} sample types, {len(kit_types)} kit types")
    print(f"   ✓ 1 company, {len(customers)} customers, 2 cost entries")
    return {"kit_types": kit_types}


async def create_kit_batches(db: AsyncSession, editor: User, kit_types: list):
    print("📦 Creating kit batches...")

    today = date.today()
    for i, kit_type in enumerate(kit_types, start=1):
        batch, kits = await create_batch_with_kits(
            db,
            KitBulkCreate(
                batch_code=f"LOT-{today.year}-{i:03d}",
                kit_type_id=kit_type.id,
                supplier="Công ty Thiết bị Y tế Sài Gòn",
                purchased_at=today,
                unit_cost=Decimal("120000"),
                quantity=20,
                expires_at=today + timedelta(days=365),
            ),
            editor)
        print(f"   ✓ {batch.batch_code}: {len(kits)} kits ({kit_type.name})")


async def main():
    print("=" * 60)
    print("🚀 Pathology lab - demo data")
    print("=" * 60 + "\n")

    await init_db()

    async with SessionLocal() as db:
        try:
            await clear_all_data(db)

            editor = await create_users(db)
            dictionaries = await create_dictionaries(db)
            await db.commit()

            # Commits on its own
            await create_kit_batches(db, editor, dictionaries["kit_types"])

            print("\n" + "=" * 60)
            print("✅ Demo data ready!")
            print("=" * 60)

        except Exception as e:
            await db.rollback()
            print(f"\n❌ Setup failed: {e}")
            raise


if __name__ == "__main__":
    asyncio.run(main())
