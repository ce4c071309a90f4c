"""판매 처리 테스트 — 사전 검증, 이중 차감, 알림, 원자성.

Sale processor tests — pre-mutation stock check, dual-scope deduction in
recipe order, alert evaluation, sauce selection and rollback on failure.
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.events import event_types
from misekitchen.models.inventory import ALERT_CRITICAL, SCOPE_INVENTORY, Recipe, RecipeIngredient
from misekitchen.repositories.sale_repository import sale_repository
from misekitchen.repositories.shift_repository import shift_mise_repository
from misekitchen.schemas.sale import SaleCreate
from misekitchen.services.alert_service import alert_service
from misekitchen.services.sale_service import sale_service
from misekitchen.services.shift_service import shift_service
from misekitchen.services.stock_ledger import GLOBAL_SCOPE, MOVEMENT_CONSUMPTION, stock_ledger
from misekitchen.utils.exceptions import (
    ConflictError,
    InsufficientResourceError,
    NotFoundError,
    ValidationError,
)
from tests.conftest import event_names, make_ingredient


async def _mise_row(db: AsyncSession, shift_id: str, ingredient_id: uuid.UUID):
    row = await shift_mise_repository.get_row(db, uuid.UUID(shift_id), ingredient_id)
    await db.refresh(row)
    return row


class TestRegisterSale:
    """판매 등록 — 정상 경로."""

    async def test_mozzarella_scenario(self, db: AsyncSession, ingredients, recipe, open_shift, events):
        """모차렐라 80 g(전역) / 100 g(교대), 60 g 사용 → 20%와 40%."""
        result = await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=1))
        await db.commit()

        mozzarella = await stock_ledger.get_ingredient(db, ingredients["mozzarella"].id)
        assert mozzarella.current_quantity == 20
        assert mozzarella.current_percentage == 20

        row = await _mise_row(db, open_shift.id, ingredients["mozzarella"].id)
        assert row.current_quantity == 40
        assert round(row.percentage) == 40

        alerts = await alert_service.list_alerts(db, resolved=False)
        assert len(alerts) == 1
        assert alerts[0].type == ALERT_CRITICAL
        assert alerts[0].scope == SCOPE_INVENTORY
        assert alerts[0].ingredient_name == "Mozzarella"

        assert result.sale.quantity == 1
        assert result.sale.shift_id == open_shift.id
        assert result.warning is None

        names = event_names(events)
        assert names[-1] == event_types.SALE_REGISTERED
        assert names.count(event_types.INGREDIENT_UPDATED) == 4
        assert names.count(event_types.MISE_UPDATED) == 3
        assert names.count(event_types.ALERT_CREATED) == 1

    async def test_global_deductions_are_audited(self, db: AsyncSession, ingredients, recipe, open_shift):
        await sale_service.register_sale(
            db, SaleCreate(recipe_id=recipe.id, quantity=1, selected_sauces=["Salsa de tomate"]),
        )

        movements = await stock_ledger.list_movements(db, ingredients["tomate"].id, MOVEMENT_CONSUMPTION)
        assert len(movements) == 1
        assert movements[0].quantity_change == -100
        assert movements[0].authorized_by == "Juan Pérez"
        assert movements[0].reason == "Sale of 1 x Margarita"
        assert movements[0].shift_id == open_shift.id

    async def test_selected_sauce_only(self, db: AsyncSession, ingredients, recipe, open_shift):
        await sale_service.register_sale(
            db, SaleCreate(recipe_id=recipe.id, quantity=1, selected_sauces=["Salsa de tomate"]),
        )

        tomate = await stock_ledger.get_ingredient(db, ingredients["tomate"].id)
        bbq = await stock_ledger.get_ingredient(db, ingredients["bbq"].id)
        assert tomate.current_quantity == 900
        assert bbq.current_quantity == 1000

    def test_charged_lines_keep_non_sauces(self, recipe: Recipe):
        lines: list[RecipeIngredient] = sale_service.charged_lines(recipe, ["Salsa BBQ"])
        names = [line.ingredient.name for line in lines]
        assert names == ["Masa de pizza", "Salsa BBQ", "Mozzarella"]

        assert len(sale_service.charged_lines(recipe, None)) == 4
        assert len(sale_service.charged_lines(recipe, [])) == 4

    async def test_ingredient_without_mise_row_only_global(self, db: AsyncSession, ingredients, recipe, open_shift):
        await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=1))

        bbq = await stock_ledger.get_ingredient(db, ingredients["bbq"].id)
        assert bbq.current_quantity == 950
        assert await shift_mise_repository.get_row(db, uuid.UUID(open_shift.id), ingredients["bbq"].id) is None

    async def test_low_stock_warning(self, db: AsyncSession, open_shift):
        oil = await make_ingredient(db, "Aceite de oliva", "otros", "ml", total=100, current=15, critical=5, warning=10)
        focaccia = Recipe(name="Focaccia", type="tabla", active=True)
        focaccia.ingredients = [RecipeIngredient(ingredient=oil, quantity=5, position=0)]
        db.add(focaccia)
        await db.flush()

        result = await sale_service.register_sale(db, SaleCreate(recipe_id=focaccia.id, quantity=1))
        assert result.warning == "Low ingredients: Aceite de oliva (15% left)"

    async def test_summary_and_listing(self, db: AsyncSession, ingredients, recipe, open_shift):
        await stock_ledger.increment(db, GLOBAL_SCOPE, ingredients["mozzarella"].id, 200)
        await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=1))
        await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=2, selected_sauces=["Salsa BBQ"]))

        sales = await sale_service.list_sales(db, shift_id=uuid.UUID(open_shift.id))
        assert sorted(s.quantity for s in sales) == [1, 2]

        summary = await sale_service.sales_summary(db)
        assert len(summary) == 1
        assert summary[0].units == 3
        assert summary[0].sales == 2


class TestSaleRejections:
    """판매 거부 — 변경 없음."""

    async def test_missing_ingredients_changes_nothing(self, db: AsyncSession, ingredients, recipe, open_shift, events):
        with pytest.raises(InsufficientResourceError) as exc_info:
            await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=2))
        await db.commit()

        assert exc_info.value.code == "missing_ingredients"
        assert exc_info.value.extra["names"] == ["Mozzarella"]

        masa = await stock_ledger.get_ingredient(db, ingredients["masa"].id)
        assert masa.current_quantity == 50
        row = await _mise_row(db, open_shift.id, ingredients["masa"].id)
        assert row.current_quantity == 10
        assert await stock_ledger.list_movements(db, ingredients["masa"].id) == []
        assert event_names(events) == []

    async def test_zero_stock_is_missing(self, db: AsyncSession, open_shift):
        salt = await make_ingredient(db, "Sal", "otros", "g", total=100, current=0)
        r = Recipe(name="Pan", type="tabla", active=True)
        r.ingredients = [RecipeIngredient(ingredient=salt, quantity=1, position=0)]
        db.add(r)
        await db.flush()

        with pytest.raises(InsufficientResourceError):
            await sale_service.register_sale(db, SaleCreate(recipe_id=r.id, quantity=1))

    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_invalid_quantity(self, db: AsyncSession, recipe, open_shift, quantity):
        with pytest.raises(ValidationError) as exc_info:
            await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=quantity))
        assert exc_info.value.code == "invalid_quantity"

    async def test_unknown_recipe(self, db: AsyncSession, open_shift):
        with pytest.raises(NotFoundError) as exc_info:
            await sale_service.register_sale(db, SaleCreate(recipe_id=uuid.uuid4(), quantity=1))
        assert exc_info.value.code == "recipe_not_found"

    async def test_empty_recipe(self, db: AsyncSession, open_shift):
        r = Recipe(name="Vacía", type="pizza", size="S", active=True)
        db.add(r)
        await db.flush()

        with pytest.raises(ValidationError) as exc_info:
            await sale_service.register_sale(db, SaleCreate(recipe_id=r.id, quantity=1))
        assert exc_info.value.code == "empty_recipe"

    async def test_no_open_shift(self, db: AsyncSession, recipe):
        with pytest.raises(NotFoundError) as exc_info:
            await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=1))
        assert exc_info.value.code == "no_open_shift"

    async def test_closed_shift(self, db: AsyncSession, recipe, open_shift):
        await shift_service.close_shift(db, uuid.UUID(open_shift.id), "María")
        await db.commit()

        with pytest.raises(ConflictError) as exc_info:
            await sale_service.register_sale(
                db, SaleCreate(recipe_id=recipe.id, quantity=1, shift_id=uuid.UUID(open_shift.id)),
            )
        assert exc_info.value.code == "shift_not_open"


class TestSaleAtomicity:
    """중간 실패 시 모든 차감 롤백."""

    async def test_failure_rolls_back_every_deduction(
        self, db: AsyncSession, ingredients, recipe, open_shift, events, monkeypatch,
    ):
        async def _failing_create(session, data):
            raise RuntimeError("sale insert failed")

        monkeypatch.setattr(sale_repository, "create", _failing_create)
        ids = {key: ingredient.id for key, ingredient in ingredients.items()}

        with pytest.raises(RuntimeError):
            await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=1))
        await db.commit()

        for key, expected in (("mozzarella", 80), ("masa", 50), ("tomate", 1000), ("bbq", 1000)):
            ingredient = await stock_ledger.get_ingredient(db, ids[key])
            await db.refresh(ingredient)
            assert ingredient.current_quantity == expected

        row = await _mise_row(db, open_shift.id, ids["mozzarella"])
        assert row.current_quantity == 100

        assert (await alert_service.count_unresolved(db)).count == 0
        assert await stock_ledger.list_movements(db, ids["mozzarella"]) == []
        assert event_names(events) == []

    async def test_uncommitted_sale_publishes_nothing(self, db: AsyncSession, ingredients, recipe, open_shift, events):
        """커밋 전 롤백된 판매는 이벤트를 남기지 않음."""
        await db.commit()
        events.clear()

        await sale_service.register_sale(db, SaleCreate(recipe_id=recipe.id, quantity=1))
        assert events == []

        await db.rollback()
        assert events == []
