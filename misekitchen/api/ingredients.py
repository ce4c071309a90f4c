"""재료 라우터 — 전역 재고 조회, 생성, 수준 조정, 재입고.

Ingredient Router — global inventory reads, creation, level adjustment and
restocking with authorization.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import get_db
from misekitchen.schemas.inventory import (
    IngredientCreate,
    IngredientResponse,
    IngredientUpdate,
    MovementResponse,
    RestockRequest,
    RestockResponse,
    RestockResult,
)
from misekitchen.services.stock_ledger import stock_ledger

router: APIRouter = APIRouter()


@router.get("", response_model=list[IngredientResponse])
async def list_ingredients(
    db: Annotated[AsyncSession, Depends(get_db)],
    category: str | None = Query(None),
) -> list[IngredientResponse]:
    """재료 목록 — 카테고리, 이름순.

    List ingredients ordered by category and name.
    """
    return await stock_ledger.list_ingredients(db, category)


@router.post("", response_model=IngredientResponse, status_code=201)
async def create_ingredient(
    data: IngredientCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IngredientResponse:
    """재료를 생성합니다."""
    result: IngredientResponse = await stock_ledger.create_ingredient(db, data)
    await db.commit()
    return result


@router.get("/{ingredient_id}", response_model=IngredientResponse)
async def get_ingredient(
    ingredient_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IngredientResponse:
    """재료 상세."""
    return await stock_ledger.get_ingredient_detail(db, ingredient_id)


@router.put("/{ingredient_id}", response_model=IngredientResponse)
async def update_ingredient(
    ingredient_id: UUID,
    data: IngredientUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> IngredientResponse:
    """재고 수준/임계값을 조정합니다.

    Adjust stock levels and thresholds; alerts are re-evaluated.
    """
    result: IngredientResponse = await stock_ledger.update_levels(db, ingredient_id, data)
    await db.commit()
    return result


@router.post("/{ingredient_id}/restock", response_model=RestockResult)
async def restock_ingredient(
    ingredient_id: UUID,
    data: RestockRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RestockResult:
    """재고를 재입고합니다.

    Restock by added quantity, absolute quantity or percentage.
    """
    result: RestockResult = await stock_ledger.restock(db, ingredient_id, data)
    await db.commit()
    return result


@router.get("/{ingredient_id}/restocks", response_model=list[RestockResponse])
async def list_restocks(
    ingredient_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[RestockResponse]:
    """재입고 이력."""
    return await stock_ledger.list_restocks(db, ingredient_id)


@router.get("/{ingredient_id}/movements", response_model=list[MovementResponse])
async def list_movements(
    ingredient_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    movement_type: str | None = Query(None),
) -> list[MovementResponse]:
    """재고 이동 기록 (Inventory movement audit trail)."""
    return await stock_ledger.list_movements(db, ingredient_id, movement_type)
