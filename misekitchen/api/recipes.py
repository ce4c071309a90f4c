"""레시피 라우터 (Recipe Router)."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import get_db
from misekitchen.schemas.inventory import RecipeCreate, RecipeResponse
from misekitchen.services.recipe_service import recipe_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[RecipeResponse])
async def list_recipes(
    db: Annotated[AsyncSession, Depends(get_db)],
    type: Literal["pizza", "tabla"] | None = Query(None),
    active: bool | None = Query(None),
) -> list[RecipeResponse]:
    """레시피 목록 (Recipes with their ingredient lines)."""
    return await recipe_service.list_recipes(db, type, active)


@router.post("", response_model=RecipeResponse, status_code=201)
async def create_recipe(
    data: RecipeCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RecipeResponse:
    """레시피를 생성합니다."""
    result: RecipeResponse = await recipe_service.create_recipe(db, data)
    await db.commit()
    return result


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RecipeResponse:
    """레시피 상세."""
    return await recipe_service.get_recipe(db, recipe_id)
