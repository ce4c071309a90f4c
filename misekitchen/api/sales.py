"""판매 라우터 — 판매 등록과 조회.

Sale Router — sale registration and sales reads.
"""

import datetime as dt
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import get_db
from misekitchen.schemas.sale import RegisterSaleResponse, SaleCreate, SaleResponse, SaleSummaryItem
from misekitchen.services.sale_service import sale_service

router: APIRouter = APIRouter()


@router.post("", response_model=RegisterSaleResponse, status_code=201)
async def register_sale(
    data: SaleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RegisterSaleResponse:
    """판매를 등록합니다.

    Register a sale; stock is deducted from the shift's mise en place and
    the global inventory. A non-fatal low-stock warning may be returned.
    """
    result: RegisterSaleResponse = await sale_service.register_sale(db, data)
    await db.commit()
    return result


@router.get("", response_model=list[SaleResponse])
async def list_sales(
    db: Annotated[AsyncSession, Depends(get_db)],
    shift_id: UUID | None = Query(None),
    date: dt.date | None = Query(None),
) -> list[SaleResponse]:
    """판매 목록 (Sales, newest first)."""
    return await sale_service.list_sales(db, shift_id, date)


@router.get("/summary", response_model=list[SaleSummaryItem])
async def sales_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    date: dt.date | None = Query(None),
) -> list[SaleSummaryItem]:
    """레시피별 판매 요약 (Units sold per recipe)."""
    return await sale_service.sales_summary(db, date)
