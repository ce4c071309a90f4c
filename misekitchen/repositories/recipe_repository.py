"""레시피 레포지토리 — 레시피 및 구성 재료 쿼리.

Recipe Repository — recipes with their ordered ingredient lines.
Recipe.ingredients is loaded with selectin, each line's ingredient is joined.
"""

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.inventory import Recipe
from misekitchen.repositories.base import BaseRepository


class RecipeRepository(BaseRepository[Recipe]):
    """레시피 테이블 레포지토리 (Repository for the recipes table)."""

    def __init__(self) -> None:
        super().__init__(Recipe)

    async def list_filtered(
        self,
        db: AsyncSession,
        recipe_type: str | None = None,
        active: bool | None = None,
    ) -> list[Recipe]:
        """유형/활성 상태로 레시피를 조회합니다.

        List recipes ordered by name and size.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            recipe_type: 레시피 유형 (pizza | tabla)
            active: 활성 필터 (Active filter)

        Returns:
            list[Recipe]: 레시피 목록 (Recipes with their lines)
        """
        query: Select = select(Recipe)
        if recipe_type is not None:
            query = query.where(Recipe.type == recipe_type)
        if active is not None:
            query = query.where(Recipe.active == active)
        query = query.order_by(Recipe.name, Recipe.size)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def find(self, db: AsyncSession, name: str, size: str | None, recipe_type: str) -> Recipe | None:
        """이름/크기/유형으로 레시피를 찾습니다 (Find a recipe by its unique key)."""
        query: Select = select(Recipe).where(Recipe.name == name, Recipe.type == recipe_type)
        query = query.where(Recipe.size.is_(None)) if size is None else query.where(Recipe.size == size)
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
recipe_repository: RecipeRepository = RecipeRepository()
