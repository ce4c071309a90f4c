"""판매 레포지토리 — 판매 기록 조회 및 집계.

Sale Repository — sale listing and per-shift/per-day aggregates.
"""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.inventory import Recipe
from misekitchen.models.shift import Sale, Shift
from misekitchen.repositories.base import BaseRepository


class SaleRepository(BaseRepository[Sale]):
    """판매 테이블 레포지토리 (Repository for the sales table)."""

    def __init__(self) -> None:
        super().__init__(Sale)

    async def list_sales(
        self,
        db: AsyncSession,
        shift_id: UUID | None = None,
        sale_date: date | None = None,
        limit: int = 200,
    ) -> list[Sale]:
        """판매 목록 — 최신순.

        List sales newest first, optionally for one shift or one business date.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            shift_id: 교대 필터 (Shift filter)
            sale_date: 교대 영업일 필터 (Business date of the owning shift)
            limit: 최대 개수 (Maximum rows)

        Returns:
            list[Sale]: 판매 목록 (Sales with their recipe)
        """
        query: Select = select(Sale)
        if shift_id is not None:
            query = query.where(Sale.shift_id == shift_id)
        if sale_date is not None:
            query = query.join(Shift, Sale.shift_id == Shift.id).where(Shift.shift_date == sale_date)
        query = query.order_by(Sale.timestamp.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.unique().scalars().all())

    async def totals_for_shift(self, db: AsyncSession, shift_id: UUID) -> tuple[int, int]:
        """교대의 (판매 수량 합계, 판매 건수) (Sum of quantities and number of sales)."""
        query: Select = select(func.coalesce(func.sum(Sale.quantity), 0), func.count(Sale.id)).where(
            Sale.shift_id == shift_id
        )
        total_quantity, sale_count = (await db.execute(query)).one()
        return int(total_quantity), int(sale_count)

    async def summary_by_recipe(self, db: AsyncSession, sale_date: date | None = None) -> list[dict[str, Any]]:
        """레시피별 판매 요약 (Units sold per recipe, best sellers first)."""
        query: Select = (
            select(
                Recipe.id,
                Recipe.name,
                Recipe.size,
                Recipe.type,
                func.sum(Sale.quantity).label("units"),
                func.count(Sale.id).label("sales"),
            )
            .join(Recipe, Sale.recipe_id == Recipe.id)
        )
        if sale_date is not None:
            query = query.join(Shift, Sale.shift_id == Shift.id).where(Shift.shift_date == sale_date)
        query = query.group_by(Recipe.id, Recipe.name, Recipe.size, Recipe.type).order_by(
            func.sum(Sale.quantity).desc()
        )
        result = await db.execute(query)
        return [
            {
                "recipe_id": str(recipe_id),
                "recipe_name": name,
                "size": size,
                "type": recipe_type,
                "units": int(units or 0),
                "sales": int(sales or 0),
            }
            for recipe_id, name, size, recipe_type, units, sales in result.all()
        ]


# 싱글턴 인스턴스 — Singleton instance
sale_repository: SaleRepository = SaleRepository()
