"""
Sample record service
- Creation claims a kit unit and issues the sample code in one transaction
- Results are replaced wholesale, never merged
- Every write leaves an audit row
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pathlab.db.search import contains_ci
from pathlab.models.dictionary import Category
from pathlab.models.kit import Kit, KitBatch
from pathlab.models.sample import Sample, SampleResult, NEGATIVE_SENTINEL
from pathlab.models.user import User
from pathlab.schemas.sample import SampleCreate, SampleUpdate, SampleResultsUpdate, ReportMessage
from pathlab.services.audit import create_audit_log
from pathlab.services.kit_ledger import assign_next_kit, claim_kit
from pathlab.services.report import build_report
from pathlab.services.sample_codes import next_sample_code

logger = logging.getLogger(__name__)

SAMPLE_NOT_FOUND_MESSAGE = "Không tìm thấy mẫu"
CATEGORY_NOT_FOUND_MESSAGE = "Danh mục không tồn tại"

# Request-only keys that are not Sample columns
_KIT_SELECTION_FIELDS = {"kit_id", "assign_next", "kit_type_id"}


def _sample_snapshot(sample: Sample) -> Dict[str, Any]:
    return {column.name: getattr(sample, column.name) for column in Sample.__table__.columns}


def _result_snapshot(result: SampleResult) -> Dict[str, Any]:
    return {
        "metric_code": result.metric_code,
        "metric_name": result.metric_name,
        "value_num": result.value_num,
        "value_text": result.value_text,
        "unit": result.unit,
        "ref_low": result.ref_low,
        "ref_high": result.ref_high,
    }


async def _ensure_category(db: AsyncSession, category_id: Optional[int]) -> None:
    if category_id is not None and not await db.get(Category, category_id):
        raise HTTPException(status_code=409, detail=CATEGORY_NOT_FOUND_MESSAGE)


async def _get_sample_or_404(db: AsyncSession, sample_id: int, *options) -> Sample:
    query = select(Sample).where(Sample.id == sample_id)
    if options:
        query = query.options(*options)
    sample = (await db.execute(query)).scalar_one_or_none()
    if not sample:
        raise HTTPException(status_code=404, detail=SAMPLE_NOT_FOUND_MESSAGE)
    return sample


# ===== Create =====
async def create_sample(db: AsyncSession, sample_in: SampleCreate, actor: User) -> Sample:
    if sample_in.kit_id is None and not sample_in.assign_next:
        raise HTTPException(status_code=400, detail="Phải cung cấp kit_id hoặc assignNext=true")
    if sample_in.assign_next and sample_in.kit_type_id is None:
        raise HTTPException(status_code=400, detail="Phải cung cấp kit_type_id khi assignNext=true")

    await _ensure_category(db, sample_in.category_id)

    if sample_in.assign_next:
        kit_id = await assign_next_kit(db, sample_in.kit_type_id)
    else:
        kit_id = await claim_kit(db, sample_in.kit_id)

    sample_code = await next_sample_code(db, sample_in.received_at)

    fields = sample_in.model_dump(exclude=_KIT_SELECTION_FIELDS)
    fields["status"] = fields.get("status") or "draft"
    fields["billing_status"] = fields.get("billing_status") or "unpaid"

    sample = Sample(
        kit_id=kit_id,
        sample_code=sample_code,
        created_by=actor.id,
        **fields)
    db.add(sample)

    try:
        await db.flush()
        create_audit_log(
            db,
            actor_id=actor.id,
            action="CREATE",
            entity="samples",
            entity_id=sample.id,
            diff={"after": {"sample_code": sample_code, "kit_id": kit_id, "customer": sample.customer}})
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Mã mẫu đã tồn tại")

    await db.refresh(sample)
    logger.info(f"🧪 Sample {sample_code} created on kit {kit_id} by {actor.email}")
    return sample


# ===== List =====
async def list_samples(
    db: AsyncSession,
    page: int,
    page_size: int,
    status: Optional[str] = None,
    billing_status: Optional[str] = None,
    customer: Optional[str] = None) -> Tuple[List[Sample], int]:
    """One page of samples, newest received first, plus the filtered total"""
    query = select(Sample).options(selectinload(Sample.kit))

    if status:
        query = query.where(Sample.status == status)
    if billing_status:
        query = query.where(Sample.billing_status == billing_status)
    if customer:
        query = query.where(contains_ci(Sample.customer, customer))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Sample.received_at.desc(), Sample.id.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)

    samples = (await db.execute(query)).scalars().all()
    return list(samples), total


# ===== Detail =====
async def get_sample_detail(db: AsyncSession, sample_id: int, actor: User) -> Sample:
    """Sample with kit, batch, kit type and results; the read is audited"""
    sample = await _get_sample_or_404(
        db,
        sample_id,
        selectinload(Sample.kit).selectinload(Kit.batch).selectinload(KitBatch.kit_type),
        selectinload(Sample.results))

    create_audit_log(db, actor_id=actor.id, action="VIEW", entity="samples", entity_id=sample.id)
    await db.commit()
    return sample


# ===== Update =====
async def update_sample(db: AsyncSession, sample_id: int, sample_in: SampleUpdate, actor: User) -> Sample:
    """Apply only the supplied fields"""
    sample = await _get_sample_or_404(db, sample_id)

    changes = sample_in.model_dump(exclude_unset=True)
    if "category_id" in changes:
        await _ensure_category(db, changes["category_id"])
    before = _sample_snapshot(sample)

    for field, value in changes.items():
        setattr(sample, field, value)

    await db.flush()
    create_audit_log(
        db,
        actor_id=actor.id,
        action="UPDATE",
        entity="samples",
        entity_id=sample.id,
        diff={"before": before, "after": _sample_snapshot(sample), "changes": changes})
    await db.commit()
    await db.refresh(sample)

    logger.info(f"✏️ Sample {sample.sample_code} updated: {', '.join(changes) or 'no fields'}")
    return sample


# ===== Results =====
async def replace_results(
    db: AsyncSession,
    sample_id: int,
    results_in: SampleResultsUpdate,
    actor: User) -> List[SampleResult]:
    """Delete the sample's results and insert the given set, in one transaction"""
    sample = await _get_sample_or_404(db, sample_id)

    existing = (await db.execute(
        select(SampleResult).where(SampleResult.sample_id == sample.id).order_by(SampleResult.id)
    )).scalars().all()
    before = [_result_snapshot(r) for r in existing]

    await db.execute(delete(SampleResult).where(SampleResult.sample_id == sample.id))

    new_results = []
    for item in results_in.results:
        value_num = 0 if item.value_text == NEGATIVE_SENTINEL else item.value_num
        new_results.append(SampleResult(
            sample_id=sample.id,
            metric_code=item.metric_code,
            metric_name=item.metric_name,
            value_num=value_num,
            value_text=item.value_text,
            unit=item.unit or "",
            ref_low=item.ref_low,
            ref_high=item.ref_high))
    db.add_all(new_results)
    await db.flush()

    create_audit_log(
        db,
        actor_id=actor.id,
        action="UPDATE",
        entity="sample_results",
        entity_id=sample.id,
        diff={
            "sample_id": sample.id,
            "before": before,
            "after": [_result_snapshot(r) for r in new_results],
        })
    await db.commit()

    logger.info(f"📝 Sample {sample.sample_code}: {len(new_results)} results saved")
    return new_results


# ===== Report =====
async def get_report_message(db: AsyncSession, sample_id: int) -> ReportMessage:
    sample = await _get_sample_or_404(db, sample_id, selectinload(Sample.results))
    return build_report(sample.id, sample.sample_code, sample.customer, sample.results)
