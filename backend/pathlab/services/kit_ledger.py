"""
Kit inventory ledger
- Batch creation: one batch row plus N kit units, in one transaction
- Availability: unit counts per kit type and status
- Bulk adjustment: move units between in_stock and void/lost, all or nothing
- Kit claiming for new samples and the scheduled expiry sweep

Every status change is a conditional UPDATE (id AND current status) whose
affected row count is checked before commit, so two requests can never move
the same unit.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.models.dictionary import KitType
from pathlab.models.kit import Kit, KitBatch, KIT_STATUSES, RETURNABLE_KIT_STATUSES
from pathlab.models.user import User
from pathlab.schemas.kit import KitAvailability, KitBulkAdjust, KitBulkAdjustResult, KitBulkCreate
from pathlab.services.audit import create_audit_log

logger = logging.getLogger(__name__)

STOCK_EXCEEDED_MESSAGE = "Chuyển quá số lượng tồn kho"
KIT_UNAVAILABLE_MESSAGE = "Kit không tồn tại hoặc đã được sử dụng"


async def _transition(
    db: AsyncSession,
    kit_ids: Sequence[int],
    from_statuses: Sequence[str],
    to_status: str,
    **values) -> int:
    """Move the given units to `to_status` if they are still in one of `from_statuses`

    Returns the number of rows actually changed.
    """
    if not kit_ids:
        return 0
    result = await db.execute(
        update(Kit)
        .where(Kit.id.in_(kit_ids), Kit.status.in_(from_statuses))
        .values(status=to_status, updated_at=datetime.utcnow(), **values)
    )
    return result.rowcount


# ===== Batch creation =====
async def create_batch_with_kits(
    db: AsyncSession,
    batch_in: KitBulkCreate,
    actor: User) -> Tuple[KitBatch, List[Kit]]:
    """Create a batch and its `quantity` in-stock units"""
    kit_type = await db.get(KitType, batch_in.kit_type_id)
    if not kit_type:
        raise HTTPException(status_code=404, detail="Không tìm thấy loại kit")

    existing = await db.execute(
        select(KitBatch.id).where(KitBatch.batch_code == batch_in.batch_code)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Mã lô đã tồn tại")

    batch = KitBatch(
        batch_code=batch_in.batch_code,
        kit_type_id=batch_in.kit_type_id,
        supplier=batch_in.supplier,
        purchased_at=batch_in.purchased_at,
        unit_cost=batch_in.unit_cost,
        quantity=batch_in.quantity,
        expires_at=batch_in.expires_at,
        note=batch_in.note or None)
    db.add(batch)

    try:
        await db.flush()

        kits = [
            Kit(batch_id=batch.id, kit_code=batch.kit_code(seq), status="in_stock")
            for seq in range(1, batch_in.quantity + 1)
        ]
        db.add_all(kits)
        await db.flush()

        create_audit_log(
            db,
            actor_id=actor.id,
            action="CREATE",
            entity="kit_batches",
            entity_id=batch.id,
            diff={
                "after": {
                    "batch_code": batch.batch_code,
                    "quantity": batch.quantity,
                    "kit_type_id": batch.kit_type_id,
                }
            })
        await db.commit()
    except IntegrityError:
        # Batch code (or a derived kit code) taken by a concurrent request
        await db.rollback()
        raise HTTPException(status_code=409, detail="Mã lô đã tồn tại")

    logger.info(f"📦 Batch {batch.batch_code} created with {len(kits)} kits (kit type {kit_type.code})")
    return batch, kits


# ===== Availability =====
async def get_availability(db: AsyncSession, kit_type_id: Optional[int] = None) -> List[KitAvailability]:
    """Unit counts per kit type; every status is reported, zero when absent"""
    query = (
        select(KitType.id, KitType.code, KitType.name, Kit.status, func.count(Kit.id))
        .select_from(Kit)
        .join(KitBatch, Kit.batch_id == KitBatch.id)
        .join(KitType, KitBatch.kit_type_id == KitType.id)
    )
    if kit_type_id is not None:
        query = query.where(KitBatch.kit_type_id == kit_type_id)
    query = query.group_by(KitType.id, KitType.code, KitType.name, Kit.status).order_by(KitType.code)

    rows = (await db.execute(query)).all()

    availability: Dict[int, KitAvailability] = {}
    for type_id, type_code, type_name, status, count in rows:
        entry = availability.get(type_id)
        if entry is None:
            entry = KitAvailability(
                kit_type_id=type_id,
                kit_type_code=type_code,
                kit_type_name=type_name,
                by_status={s: 0 for s in KIT_STATUSES},
                total=0)
            availability[type_id] = entry
        entry.by_status[status] = entry.by_status.get(status, 0) + count
        entry.total += count

    return list(availability.values())


async def count_in_stock(db: AsyncSession, batch_ids: Sequence[int]) -> int:
    result = await db.execute(
        select(func.count(Kit.id)).where(
            Kit.batch_id.in_(batch_ids),
            Kit.status == "in_stock")
    )
    return result.scalar() or 0


async def _pick_kit_ids(db: AsyncSession, batch_ids: Sequence[int], statuses: Sequence[str], limit: int) -> List[int]:
    result = await db.execute(
        select(Kit.id)
        .where(Kit.batch_id.in_(batch_ids), Kit.status.in_(statuses))
        .order_by(Kit.created_at, Kit.id)
        .limit(limit)
    )
    return list(result.scalars().all())


# ===== Bulk adjustment =====
async def bulk_adjust(db: AsyncSession, adjust_in: KitBulkAdjust, actor: User) -> KitBulkAdjustResult:
    """Reconcile the in-stock count of a kit type

    delta > 0 returns void/lost units to stock, delta < 0 voids in-stock
    units. Either exactly |delta| units move or nothing does.
    """
    kit_type_id = adjust_in.kit_type_id
    delta = adjust_in.delta

    batch_ids = (await db.execute(
        select(KitBatch.id).where(KitBatch.kit_type_id == kit_type_id)
    )).scalars().all()
    if not batch_ids:
        raise HTTPException(status_code=404, detail="Không tìm thấy kit loại này")

    current_stock = await count_in_stock(db, batch_ids)

    if delta == 0:
        return KitBulkAdjustResult(adjusted=0, new_stock=current_stock)

    if delta < 0:
        wanted = -delta
        if wanted > current_stock:
            raise HTTPException(status_code=409, detail=STOCK_EXCEEDED_MESSAGE)
        from_statuses = ("in_stock",)
        to_status = "void"
        shortage_message = STOCK_EXCEEDED_MESSAGE
    else:
        wanted = delta
        from_statuses = RETURNABLE_KIT_STATUSES
        to_status = "in_stock"
        shortage_message = None

    kit_ids = await _pick_kit_ids(db, batch_ids, from_statuses, wanted)
    if len(kit_ids) < wanted:
        raise HTTPException(
            status_code=409,
            detail=shortage_message or f"Không đủ kit để điều chỉnh (cần {wanted}, có {len(kit_ids)})"
        )

    changed = await _transition(db, kit_ids, from_statuses, to_status, note=adjust_in.reason)
    if changed != wanted:
        # Another request moved some of these units in the meantime
        await db.rollback()
        raise HTTPException(
            status_code=409,
            detail=shortage_message or f"Không đủ kit để điều chỉnh (cần {wanted}, có {changed})"
        )

    create_audit_log(
        db,
        actor_id=actor.id,
        action="UPDATE",
        entity="kits",
        entity_id=kit_type_id,
        diff={
            "action": "bulk_adjust",
            "delta": delta,
            "kit_ids": kit_ids,
            "reason": adjust_in.reason,
        })
    await db.commit()

    new_stock = current_stock + changed if delta > 0 else current_stock - changed
    logger.info(f"🔧 Kit type {kit_type_id} adjusted by {delta:+d}: stock {current_stock} → {new_stock}")
    return KitBulkAdjustResult(adjusted=changed, new_stock=new_stock)


# ===== Kit claiming for samples =====
async def assign_next_kit(db: AsyncSession, kit_type_id: int) -> int:
    """Mark the oldest in-stock unit of a kit type as assigned; returns its id

    Does not commit: the caller commits together with the sample row.
    """
    kit_id = (await db.execute(
        select(Kit.id)
        .join(KitBatch, Kit.batch_id == KitBatch.id)
        .where(KitBatch.kit_type_id == kit_type_id, Kit.status == "in_stock")
        .order_by(Kit.created_at, Kit.id)
        .limit(1)
    )).scalar_one_or_none()

    if kit_id is None or await _transition(
            db, [kit_id], ("in_stock",), "assigned", assigned_at=datetime.utcnow()) != 1:
        kit_type = await db.get(KitType, kit_type_id)
        name = kit_type.name if kit_type else "loại này"
        raise HTTPException(status_code=409, detail=f"Không còn kit {name}")

    return kit_id


async def claim_kit(db: AsyncSession, kit_id: int) -> int:
    """Use an explicitly chosen unit; an in-stock unit becomes assigned

    Does not commit: the caller commits together with the sample row.
    """
    kit = await db.get(Kit, kit_id)
    if not kit or kit.status not in ("in_stock", "assigned"):
        raise HTTPException(status_code=409, detail=KIT_UNAVAILABLE_MESSAGE)

    if kit.status == "in_stock":
        changed = await _transition(db, [kit.id], ("in_stock",), "assigned", assigned_at=datetime.utcnow())
        if changed != 1:
            raise HTTPException(status_code=409, detail=KIT_UNAVAILABLE_MESSAGE)

    return kit.id


# ===== Expiry sweep =====
async def expire_kits(db: AsyncSession, as_of: date) -> List[int]:
    """Mark in-stock units of batches that expired before `as_of` as expired"""
    kit_ids = list((await db.execute(
        select(Kit.id)
        .join(KitBatch, Kit.batch_id == KitBatch.id)
        .where(
            KitBatch.expires_at.is_not(None),
            KitBatch.expires_at < as_of,
            Kit.status == "in_stock")
        .order_by(Kit.id)
    )).scalars().all())

    if not kit_ids:
        return []

    changed = await _transition(db, kit_ids, ("in_stock",), "expired")
    create_audit_log(
        db,
        actor_id=None,
        action="EXPIRE",
        entity="kits",
        diff={"kit_ids": kit_ids, "as_of": as_of, "changed": changed})
    await db.commit()

    logger.info(f"⌛ {changed} kits expired as of {as_of.isoformat()}")
    return kit_ids
