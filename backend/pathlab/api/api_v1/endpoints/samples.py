"""Sample record API"""

import math
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.api.deps import require_auth, require_editor
from pathlab.core.config import settings
from pathlab.core.deps import get_db
from pathlab.models.user import User
from pathlab.schemas.common import parse_day
from pathlab.schemas.sample import (
    SampleCreate, SampleUpdate, SampleResponse, SampleWithKit, SampleDetail,
    SampleEnvelope, SampleDetailEnvelope, SampleListResponse, Pagination,
    SampleResultsUpdate, SampleResultResponse, SampleResultsResponse,
    NextSampleCode, NextSampleCodeResponse, ReportMessageResponse
)
from pathlab.services import samples as sample_service
from pathlab.services.sample_codes import next_sample_code

router = APIRouter()


@router.get("", response_model=SampleListResponse)
async def list_samples(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_auth),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.SAMPLE_PAGE_SIZE_DEFAULT, ge=1, le=200, alias="pageSize"),
    status: Optional[str] = Query(None, description="draft / done / approved"),
    billing_status: Optional[str] = Query(None, alias="billingStatus"),
    customer: Optional[str] = Query(None, description="Customer name contains")) -> Any:
    """Samples, newest received first"""
    items, total = await sample_service.list_samples(
        db, page, page_size,
        status=status,
        billing_status=billing_status,
        customer=customer)

    return SampleListResponse(
        data=[SampleWithKit.model_validate(s) for s in items],
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size)))


@router.post("", response_model=SampleEnvelope, status_code=201)
async def create_sample(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_editor),
    sample_in: SampleCreate) -> Any:
    """Register a sample on an explicit kit or the next in-stock kit of a type"""
    sample = await sample_service.create_sample(db, sample_in, current_user)
    return SampleEnvelope(data=SampleResponse.model_validate(sample))


# Declared before /{sample_id} so "next-code" is not parsed as an id
@router.get("/next-code", response_model=NextSampleCodeResponse)
async def get_next_code(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_auth),
    received_at: Optional[str] = Query(None, alias="receivedAt")) -> Any:
    """Issue the next sample code for a received date"""
    if not received_at:
        raise HTTPException(status_code=400, detail="Tham số receivedAt là bắt buộc")
    try:
        day = parse_day(received_at, "Ngày nhận không hợp lệ")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    code = await next_sample_code(db, day)
    await db.commit()
    return NextSampleCodeResponse(data=NextSampleCode(sample_code=code, received_at=day))


@router.get("/{sample_id}", response_model=SampleDetailEnvelope)
async def get_sample(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_auth),
    sample_id: int) -> Any:
    """Sample with kit, batch, kit type and results"""
    sample = await sample_service.get_sample_detail(db, sample_id, current_user)
    return SampleDetailEnvelope(data=SampleDetail.model_validate(sample))


@router.patch("/{sample_id}", response_model=SampleEnvelope)
async def update_sample(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_editor),
    sample_id: int,
    sample_in: SampleUpdate) -> Any:
    sample = await sample_service.update_sample(db, sample_id, sample_in, current_user)
    return SampleEnvelope(data=SampleResponse.model_validate(sample))


@router.patch("/{sample_id}/results", response_model=SampleResultsResponse)
async def replace_results(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_editor),
    sample_id: int,
    results_in: SampleResultsUpdate) -> Any:
    """Replace the full result set of a sample"""
    results = await sample_service.replace_results(db, sample_id, results_in, current_user)
    return SampleResultsResponse(
        data=[SampleResultResponse.model_validate(r) for r in results],
        count=len(results))


@router.get("/{sample_id}/report-message", response_model=ReportMessageResponse)
async def get_report_message(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_auth),
    sample_id: int) -> Any:
    """Overall status and shareable report text"""
    report = await sample_service.get_report_message(db, sample_id)
    return ReportMessageResponse(data=report)
