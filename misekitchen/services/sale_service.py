"""판매 서비스 — 판매 검증, 이중 차감, 알림 평가.

Sale Service — SaleProcessor. Validates a sale against global stock,
deducts from both the shift's mise en place and the global inventory in
recipe order, re-evaluates alerts and records the sale.

The mutation loop and the sale insert run inside one SAVEPOINT: a failure
anywhere rolls back every deduction and drops the events staged for it.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.config import settings
from misekitchen.events import event_types
from misekitchen.events.broker import discard_events_since, event_mark, queue_event
from misekitchen.models.inventory import SAUCE_CATEGORY, Recipe, RecipeIngredient
from misekitchen.models.shift import SHIFT_OPEN, Sale, Shift
from misekitchen.repositories.recipe_repository import recipe_repository
from misekitchen.repositories.sale_repository import sale_repository
from misekitchen.repositories.shift_repository import kitchen_state_repository, shift_repository
from misekitchen.schemas.sale import RegisterSaleResponse, SaleCreate, SaleResponse, SaleSummaryItem
from misekitchen.services.alert_service import alert_service
from misekitchen.services.stock_ledger import GLOBAL_SCOPE, StockScope, stock_ledger
from misekitchen.utils.exceptions import ConflictError, InsufficientResourceError, NotFoundError, ValidationError
from misekitchen.utils.logging import get_logger

logger = get_logger(__name__)


class SaleService:
    """판매 처리 비즈니스 로직 (SaleProcessor)."""

    def _to_response(self, sale: Sale, recipe: Recipe) -> SaleResponse:
        return SaleResponse(
            id=str(sale.id),
            shift_id=str(sale.shift_id),
            recipe_id=str(sale.recipe_id),
            recipe_name=recipe.name,
            recipe_type=recipe.type,
            size=recipe.size,
            quantity=sale.quantity,
            timestamp=sale.timestamp,
        )

    @staticmethod
    def charged_lines(recipe: Recipe, selected_sauces: list[str] | None) -> list[RecipeIngredient]:
        """판매에 차감될 레시피 구성 재료.

        Recipe lines charged for a sale. When sauces are selected, only the
        selected sauce-category ingredients are charged; every other line
        always is.
        """
        lines: list[RecipeIngredient] = list(recipe.ingredients)
        if not selected_sauces:
            return lines
        selected: set[str] = set(selected_sauces)
        return [
            line for line in lines
            if line.ingredient.category != SAUCE_CATEGORY or line.ingredient.name in selected
        ]

    async def _resolve_shift(self, db: AsyncSession, shift_id: UUID | None) -> Shift:
        if shift_id is None:
            state = await kitchen_state_repository.get_state(db)
            shift_id = state.current_shift_id
            if shift_id is None:
                raise NotFoundError("No open shift", code="no_open_shift")

        shift: Shift | None = await shift_repository.get_by_id(db, shift_id)
        if shift is None:
            raise NotFoundError("Shift not found", code="shift_not_found")
        if shift.status != SHIFT_OPEN:
            raise ConflictError("Shift is not open", code="shift_not_open")
        return shift

    async def register_sale(self, db: AsyncSession, data: SaleCreate) -> RegisterSaleResponse:
        """판매를 등록합니다.

        Register a sale against the open shift.

        Steps:
            1. 입력 검증 (quantity > 0, recipe with lines, open shift)
            2. 차감 전 전역 재고 확인 — 부족하면 아무것도 변경하지 않고 거부
               (Pre-mutation global stock check; reject with no writes)
            3. 레시피 순서로 미장플라스/전역 차감 및 알림 평가
               (Deduct mise en place then global stock per line, evaluate alerts)
            4. 판매 기록 생성 (Insert the sale)

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 판매 요청 (Sale request)

        Returns:
            RegisterSaleResponse: 판매 기록과 선택적 재고 부족 경고
                                  (Sale plus an optional low-stock warning)

        Raises:
            ValidationError: 수량이 양수가 아니거나 레시피에 재료가 없을 때
            NotFoundError: 레시피/교대가 없을 때
            ConflictError: 교대가 열려 있지 않을 때 (shift_not_open)
            InsufficientResourceError: 재고 부족 (missing_ingredients, names)
        """
        if data.quantity <= 0:
            raise ValidationError("Quantity must be a positive integer", code="invalid_quantity")

        recipe: Recipe | None = await recipe_repository.get_by_id(db, data.recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe not found", code="recipe_not_found")
        if not recipe.ingredients:
            raise ValidationError("Recipe has no ingredients", code="empty_recipe")

        shift: Shift = await self._resolve_shift(db, data.shift_id)
        lines: list[RecipeIngredient] = self.charged_lines(recipe, data.selected_sauces)

        # 차감 전 검증 — validate everything before the first write
        missing: list[str] = []
        low: list[str] = []
        for line in lines:
            ingredient = line.ingredient
            required: float = line.quantity * data.quantity
            if ingredient.current_quantity <= 0 or ingredient.current_quantity < required:
                missing.append(ingredient.name)
            elif ingredient.current_percentage <= settings.LOW_STOCK_WARNING_PERCENTAGE:
                low.append(f"{ingredient.name} ({ingredient.current_percentage}% left)")

        if missing:
            logger.info(
                "Sale rejected: missing ingredients",
                extra={"data": {"recipe": recipe.name, "quantity": data.quantity, "missing": missing}},
            )
            raise InsufficientResourceError(
                f"Cannot sell {recipe.name}: missing {', '.join(missing)}",
                code="missing_ingredients",
                names=missing,
            )

        warning: str | None = f"Low ingredients: {', '.join(low)}" if low else None

        mark: int = event_mark(db)
        try:
            async with db.begin_nested():
                for line in lines:
                    required = line.quantity * data.quantity
                    row = await stock_ledger.deduct(db, StockScope.shift(shift.id), line.ingredient_id, required)
                    ingredient = await stock_ledger.deduct(
                        db, GLOBAL_SCOPE, line.ingredient_id, required,
                        actor=shift.employee_name,
                        reason=f"Sale of {data.quantity} x {recipe.name}",
                        shift_id=shift.id,
                    )
                    queue_event(
                        db, event_types.INGREDIENT_UPDATED,
                        stock_ledger.ingredient_response(ingredient).model_dump(mode="json"),
                    )
                    await alert_service.evaluate(db, ingredient)

                    if row is not None:
                        queue_event(
                            db, event_types.MISE_UPDATED,
                            {"shift_id": str(shift.id), **stock_ledger.mise_response(row).model_dump(mode="json")},
                        )
                        await alert_service.evaluate_mise_en_place(db, row)

                sale: Sale = await sale_repository.create(
                    db, {"shift_id": shift.id, "recipe_id": recipe.id, "quantity": data.quantity},
                )
        except Exception:
            discard_events_since(db, mark)
            logger.exception(
                "Sale rolled back",
                extra={"data": {"recipe": recipe.name, "quantity": data.quantity, "shift_id": str(shift.id)}},
            )
            raise

        response = self._to_response(sale, recipe)
        queue_event(db, event_types.SALE_REGISTERED, response.model_dump(mode="json"))
        logger.info(
            "Sale registered",
            extra={"data": {"sale_id": response.id, "recipe": recipe.name, "quantity": data.quantity, "warning": warning}},
        )
        return RegisterSaleResponse(sale=response, warning=warning)

    async def list_sales(
        self, db: AsyncSession, shift_id: UUID | None = None, sale_date: date | None = None,
    ) -> list[SaleResponse]:
        """판매 목록 (Sales, newest first)."""
        sales: list[Sale] = await sale_repository.list_sales(db, shift_id, sale_date)
        return [self._to_response(s, s.recipe) for s in sales]

    async def sales_summary(self, db: AsyncSession, sale_date: date | None = None) -> list[SaleSummaryItem]:
        """레시피별 판매 요약 (Units sold per recipe)."""
        rows = await sale_repository.summary_by_recipe(db, sale_date)
        return [SaleSummaryItem(**row) for row in rows]


# 싱글턴 인스턴스 — Singleton instance
sale_service: SaleService = SaleService()
