"""Kit inventory API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.api.deps import require_auth, require_editor
from pathlab.core.deps import get_db
from pathlab.models.user import User
from pathlab.schemas.kit import (
    KitBulkCreate, KitBulkCreateResponse, KitBulkCreateResult,
    KitBatchResponse, KitResponse,
    KitAvailabilityListResponse,
    KitBulkAdjust, KitBulkAdjustResponse
)
from pathlab.services import kit_ledger

router = APIRouter()


@router.get("/availability", response_model=KitAvailabilityListResponse)
async def get_availability(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_auth),
    kit_type_id: Optional[int] = Query(None, description="Kit type ID")) -> Any:
    """Unit counts per kit type and status"""
    data = await kit_ledger.get_availability(db, kit_type_id)
    return KitAvailabilityListResponse(data=data)


@router.post("/bulk-create", response_model=KitBulkCreateResponse)
async def bulk_create_kits(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_editor),
    batch_in: KitBulkCreate) -> Any:
    """Create a batch together with its kit units"""
    batch, kits = await kit_ledger.create_batch_with_kits(db, batch_in, current_user)
    return KitBulkCreateResponse(
        data=KitBulkCreateResult(
            batch=KitBatchResponse.model_validate(batch),
            kits=[KitResponse.model_validate(k) for k in kits],
            count=len(kits)))


@router.post("/bulk-adjust", response_model=KitBulkAdjustResponse)
async def bulk_adjust_kits(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_editor),
    adjust_in: KitBulkAdjust) -> Any:
    """Stocktake correction: write off or return kit units"""
    result = await kit_ledger.bulk_adjust(db, adjust_in, current_user)
    return KitBulkAdjustResponse(data=result)
