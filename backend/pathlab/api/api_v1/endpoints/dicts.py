"""Dictionary lookup API - read-only reference tables"""

import logging
from typing import Any, Optional, Sequence
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pathlab.core.deps import get_db
from pathlab.db.search import contains_ci
from pathlab.models.dictionary import Category, Company, Customer, KitType, SampleType, CostCatalog
from pathlab.schemas.dictionary import (
    CategoryResponse, CompanyResponse, CostResponse, CustomerResponse, KitTypeResponse, SampleTypeResponse,
    CategoryListResponse, CompanyListResponse, CostListResponse,
    CustomerListResponse, KitTypeListResponse, SampleTypeListResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _list_dictionary(
    db: AsyncSession,
    model,
    *,
    active_only: bool,
    search: Optional[str],
    search_columns: Sequence,
    error_message: str,
    options: Sequence = (),
    joins: Sequence = (),
    order_by: Sequence = ()) -> list:
    """Shared listing: is_active filter, substring search, eager joins"""
    query = select(model)
    if options:
        query = query.options(*options)
    for target, onclause in joins:
        query = query.outerjoin(target, onclause)

    if active_only:
        query = query.where(model.is_active.is_(True))
    if search:
        query = query.where(or_(*[contains_ci(column, search) for column in search_columns]))

    query = query.order_by(*(order_by or (model.name,)))

    try:
        result = await db.execute(query)
        return list(result.scalars().unique().all())
    except SQLAlchemyError:
        logger.exception(f"Failed to list {model.__tablename__}")
        raise HTTPException(status_code=500, detail=error_message)


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    *,
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(True, description="Active entries only"),
    search: Optional[str] = Query(None, description="Search name / code")) -> Any:
    """Sample categories"""
    items = await _list_dictionary(
        db, Category,
        active_only=active_only,
        search=search,
        search_columns=(Category.name, Category.code),
        error_message="Không thể tải danh sách danh mục")
    return CategoryListResponse(data=[CategoryResponse.model_validate(i) for i in items])


@router.get("/companies", response_model=CompanyListResponse)
async def list_companies(
    *,
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(True),
    search: Optional[str] = Query(None)) -> Any:
    items = await _list_dictionary(
        db, Company,
        active_only=active_only,
        search=search,
        search_columns=(Company.name, Company.code),
        error_message="Không thể tải danh sách công ty")
    return CompanyListResponse(data=[CompanyResponse.model_validate(i) for i in items])


@router.get("/costs", response_model=CostListResponse)
async def list_costs(
    *,
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(True),
    search: Optional[str] = Query(None, description="Search kit type / sample type name")) -> Any:
    """Cost catalog, newest effective date first"""
    items = await _list_dictionary(
        db, CostCatalog,
        active_only=active_only,
        search=search,
        search_columns=(KitType.name, SampleType.name),
        error_message="Không thể tải danh sách giá",
        options=(selectinload(CostCatalog.kit_type), selectinload(CostCatalog.sample_type)),
        joins=(
            (KitType, CostCatalog.kit_type_id == KitType.id),
            (SampleType, CostCatalog.sample_type_id == SampleType.id),
        ),
        order_by=(CostCatalog.effective_from.desc(), CostCatalog.id.desc()))
    return CostListResponse(data=[CostResponse.model_validate(i) for i in items])


@router.get("/customers", response_model=CustomerListResponse)
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(True),
    search: Optional[str] = Query(None, description="Search name / code / email")) -> Any:
    items = await _list_dictionary(
        db, Customer,
        active_only=active_only,
        search=search,
        search_columns=(Customer.name, Customer.code, Customer.email),
        error_message="Không thể tải danh sách khách hàng",
        options=(selectinload(Customer.company),))
    return CustomerListResponse(data=[CustomerResponse.model_validate(i) for i in items])


@router.get("/kit-types", response_model=KitTypeListResponse)
async def list_kit_types(
    *,
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(True),
    search: Optional[str] = Query(None)) -> Any:
    items = await _list_dictionary(
        db, KitType,
        active_only=active_only,
        search=search,
        search_columns=(KitType.name, KitType.code),
        error_message="Không thể tải danh sách loại kit")
    return KitTypeListResponse(data=[KitTypeResponse.model_validate(i) for i in items])


@router.get("/sample-types", response_model=SampleTypeListResponse)
async def list_sample_types(
    *,
    db: AsyncSession = Depends(get_db),
    active_only: bool = Query(True),
    search: Optional[str] = Query(None)) -> Any:
    items = await _list_dictionary(
        db, SampleType,
        active_only=active_only,
        search=search,
        search_columns=(SampleType.name, SampleType.code),
        error_message="Không thể tải danh sách loại mẫu")
    return SampleTypeListResponse(data=[SampleTypeResponse.model_validate(i) for i in items])
