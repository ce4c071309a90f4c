"""재료/재고 레포지토리 — 재료, 재입고, 재고 이동 쿼리.

Ingredient Repository — queries for ingredients, restocks and inventory movements.
"""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.inventory import Ingredient, InventoryMovement, Restock
from misekitchen.repositories.base import BaseRepository


class IngredientRepository(BaseRepository[Ingredient]):
    """재료 테이블 레포지토리 (Repository for the ingredients table)."""

    def __init__(self) -> None:
        super().__init__(Ingredient)

    async def get_by_name(self, db: AsyncSession, name: str) -> Ingredient | None:
        """이름으로 재료를 조회합니다 (Retrieve an ingredient by its unique name)."""
        result = await db.execute(select(Ingredient).where(Ingredient.name == name))
        return result.scalar_one_or_none()

    async def list_ordered(self, db: AsyncSession, category: str | None = None) -> list[Ingredient]:
        """카테고리, 이름 순으로 재료 목록을 조회합니다.

        List ingredients ordered by category then name.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            category: 카테고리 필터 (Optional category filter)

        Returns:
            list[Ingredient]: 재료 목록 (Ingredients)
        """
        query: Select = select(Ingredient)
        if category is not None:
            query = query.where(Ingredient.category == category)
        query = query.order_by(Ingredient.category, Ingredient.name)
        result = await db.execute(query)
        return list(result.scalars().all())


class RestockRepository(BaseRepository[Restock]):
    """재입고 이력 레포지토리 (Repository for the append-only restocks table)."""

    def __init__(self) -> None:
        super().__init__(Restock)

    async def list_for_ingredient(self, db: AsyncSession, ingredient_id: UUID, limit: int = 50) -> list[Restock]:
        """재료의 최근 재입고 이력 (Most recent restocks of an ingredient first)."""
        query: Select = (
            select(Restock)
            .where(Restock.ingredient_id == ingredient_id)
            .order_by(Restock.timestamp.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


class InventoryMovementRepository(BaseRepository[InventoryMovement]):
    """재고 이동 레포지토리 (Repository for the inventory movement audit trail)."""

    def __init__(self) -> None:
        super().__init__(InventoryMovement)

    async def list_for_ingredient(
        self,
        db: AsyncSession,
        ingredient_id: UUID,
        movement_type: str | None = None,
        limit: int = 100,
    ) -> list[InventoryMovement]:
        """재료의 재고 이동 기록 — 최신순.

        List an ingredient's movements, newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            ingredient_id: 재료 ID (Ingredient UUID)
            movement_type: 이동 유형 필터 (restock | consumption | adjustment)
            limit: 최대 개수 (Maximum rows)

        Returns:
            list[InventoryMovement]: 이동 기록 (Movements)
        """
        query: Select = select(InventoryMovement).where(InventoryMovement.ingredient_id == ingredient_id)
        if movement_type is not None:
            query = query.where(InventoryMovement.movement_type == movement_type)
        query = query.order_by(InventoryMovement.created_at.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instances
ingredient_repository: IngredientRepository = IngredientRepository()
restock_repository: RestockRepository = RestockRepository()
inventory_movement_repository: InventoryMovementRepository = InventoryMovementRepository()
