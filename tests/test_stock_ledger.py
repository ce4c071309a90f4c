"""재고 원장 테스트 — 범위별 차감/증가, 재입고, 수준 조정.

Stock ledger tests — scoped deduct/increment, restock forms and
authorization, level adjustment and the movement audit trail.
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.events import event_types
from misekitchen.schemas.inventory import IngredientCreate, IngredientUpdate, RestockRequest
from misekitchen.services.stock_ledger import (
    GLOBAL_SCOPE,
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_CONSUMPTION,
    MOVEMENT_RESTOCK,
    StockScope,
    compute_percentage,
    mise_status,
    stock_ledger,
)
from misekitchen.utils.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from tests.conftest import CHEF_PASSWORD, CHEF_RUT, event_names


class TestHelpers:
    """비율/상태 계산."""

    def test_compute_percentage_rounds(self):
        assert compute_percentage(20, 100) == 20
        assert compute_percentage(1, 3) == 33
        assert compute_percentage(5, 0) == 0

    @pytest.mark.parametrize(
        ("percentage", "status"),
        [(10, "red"), (29.9, "red"), (30, "orange"), (49, "orange"), (50, "yellow"), (69, "yellow"), (70, "green")],
    )
    def test_mise_status_colours(self, percentage, status):
        assert mise_status(percentage) == status


class TestGlobalScope:
    """전역 재고 차감/증가."""

    async def test_deduct_recomputes_percentage_and_audits(self, db: AsyncSession, ingredients):
        mozzarella = ingredients["mozzarella"]
        updated = await stock_ledger.deduct(db, GLOBAL_SCOPE, mozzarella.id, 30, actor="Juan", reason="test")

        assert updated.current_quantity == 50
        assert updated.current_percentage == 50

        movements = await stock_ledger.list_movements(db, mozzarella.id)
        assert len(movements) == 1
        assert movements[0].movement_type == MOVEMENT_CONSUMPTION
        assert movements[0].quantity_before == 80
        assert movements[0].quantity_after == 50
        assert movements[0].authorized_by == "Juan"

    async def test_deduct_clamps_at_zero(self, db: AsyncSession, ingredients):
        updated = await stock_ledger.deduct(db, GLOBAL_SCOPE, ingredients["mozzarella"].id, 500)
        assert updated.current_quantity == 0
        assert updated.current_percentage == 0

    async def test_increment_adds_quantity(self, db: AsyncSession, ingredients):
        updated = await stock_ledger.increment(db, GLOBAL_SCOPE, ingredients["mozzarella"].id, 10)
        assert updated.current_quantity == 90
        assert updated.current_percentage == 90

    async def test_negative_amount_rejected(self, db: AsyncSession, ingredients):
        with pytest.raises(ValidationError):
            await stock_ledger.deduct(db, GLOBAL_SCOPE, ingredients["mozzarella"].id, -1)

    async def test_unknown_ingredient(self, db: AsyncSession, ingredients):
        with pytest.raises(NotFoundError) as exc_info:
            await stock_ledger.deduct(db, GLOBAL_SCOPE, uuid.uuid4(), 1)
        assert exc_info.value.code == "ingredient_not_found"


class TestShiftScope:
    """교대 미장플라스 차감/증가."""

    async def test_deduct_only_touches_mise_en_place(self, db: AsyncSession, ingredients, open_shift):
        scope = StockScope.shift(uuid.UUID(open_shift.id))
        row = await stock_ledger.deduct(db, scope, ingredients["mozzarella"].id, 25)

        assert row.current_quantity == 75
        assert row.initial_quantity == 100
        assert row.percentage == 75

        mozzarella = await stock_ledger.get_ingredient(db, ingredients["mozzarella"].id)
        assert mozzarella.current_quantity == 80

    async def test_deduct_clamps_at_zero(self, db: AsyncSession, ingredients, open_shift):
        scope = StockScope.shift(uuid.UUID(open_shift.id))
        row = await stock_ledger.deduct(db, scope, ingredients["masa"].id, 25)
        assert row.current_quantity == 0

    async def test_missing_row_returns_none(self, db: AsyncSession, ingredients, open_shift):
        scope = StockScope.shift(uuid.UUID(open_shift.id))
        assert await stock_ledger.deduct(db, scope, ingredients["bbq"].id, 10) is None

    async def test_restock_mise_en_place(self, db: AsyncSession, ingredients, open_shift, events):
        await stock_ledger.deduct(db, StockScope.shift(uuid.UUID(open_shift.id)), ingredients["mozzarella"].id, 60)
        result = await stock_ledger.restock_mise_en_place(db, ingredients["mozzarella"].id, 30)
        await db.commit()

        assert result.current_quantity == 70
        assert result.percentage == 70
        assert result.status == "green"
        assert event_types.MISE_UPDATED in event_names(events)

    async def test_restock_mise_en_place_without_open_shift(self, db: AsyncSession, ingredients):
        with pytest.raises(NotFoundError) as exc_info:
            await stock_ledger.restock_mise_en_place(db, ingredients["mozzarella"].id, 30)
        assert exc_info.value.code == "no_open_shift"

    async def test_mise_en_place_status_sorted(self, db: AsyncSession, ingredients, open_shift):
        status = await stock_ledger.mise_en_place_status(db)
        categories = [row.category for row in status.mise_en_place]
        assert categories == sorted(categories)
        assert len(status.mise_en_place) == 3


class TestRestock:
    """전역 재입고."""

    async def test_added_quantity(self, db: AsyncSession, ingredients, events):
        result = await stock_ledger.restock(
            db, ingredients["mozzarella"].id, RestockRequest(added_quantity=20, authorized_by="María"),
        )
        await db.commit()

        assert result.ingredient.current_quantity == 100
        assert result.ingredient.current_percentage == 100
        assert result.restock.previous_percentage == 80
        assert result.restock.new_percentage == 100
        assert result.restock.authorized_by == "María"
        names = event_names(events)
        assert event_types.INGREDIENT_RESTOCKED in names
        assert event_types.INGREDIENT_UPDATED in names

        movements = await stock_ledger.list_movements(db, ingredients["mozzarella"].id, MOVEMENT_RESTOCK)
        assert len(movements) == 1

    async def test_new_percentage_sets_quantity(self, db: AsyncSession, ingredients):
        result = await stock_ledger.restock(
            db, ingredients["masa"].id, RestockRequest(new_percentage=40, authorized_by="María"),
        )
        assert result.ingredient.current_percentage == 40
        assert result.ingredient.current_quantity == 20

        movements = await stock_ledger.list_movements(db, ingredients["masa"].id, MOVEMENT_ADJUSTMENT)
        assert movements[0].reason == "Restock from storage"

    async def test_exactly_one_quantity_form(self, db: AsyncSession, ingredients):
        with pytest.raises(ValidationError) as exc_info:
            await stock_ledger.restock(
                db, ingredients["masa"].id,
                RestockRequest(added_quantity=1, new_quantity=10, authorized_by="María"),
            )
        assert exc_info.value.code == "invalid_restock_quantity"

        with pytest.raises(ValidationError):
            await stock_ledger.restock(db, ingredients["masa"].id, RestockRequest(authorized_by="María"))

    async def test_credentials_resolve_authorizer(self, db: AsyncSession, ingredients, chef):
        result = await stock_ledger.restock(
            db, ingredients["masa"].id,
            RestockRequest(new_quantity=50, authorized_rut=CHEF_RUT, authorized_password=CHEF_PASSWORD),
        )
        assert result.restock.authorized_by == f"Administrador ({CHEF_RUT})"

    async def test_wrong_password_rejected(self, db: AsyncSession, ingredients, chef):
        with pytest.raises(UnauthorizedError):
            await stock_ledger.restock(
                db, ingredients["masa"].id,
                RestockRequest(new_quantity=50, authorized_rut=CHEF_RUT, authorized_password="nope"),
            )

    async def test_authorizer_required(self, db: AsyncSession, ingredients):
        with pytest.raises(ValidationError) as exc_info:
            await stock_ledger.restock(db, ingredients["masa"].id, RestockRequest(new_quantity=50))
        assert exc_info.value.code == "missing_authorizer"

    async def test_restock_credits_open_shift(self, db: AsyncSession, ingredients, open_shift):
        result = await stock_ledger.restock(
            db, ingredients["masa"].id, RestockRequest(added_quantity=5, authorized_by="María"),
        )
        assert result.restock.shift_id == open_shift.id


class TestIngredientCrud:
    """재료 생성/수정."""

    async def test_create_defaults_current_to_total(self, db: AsyncSession, events):
        created = await stock_ledger.create_ingredient(
            db, IngredientCreate(name="Orégano", unit="g", category="condimentos", total_quantity=200),
        )
        await db.commit()
        assert created.current_quantity == 200
        assert created.current_percentage == 100
        assert event_types.INGREDIENT_CREATED in event_names(events)

    async def test_create_duplicate_name(self, db: AsyncSession, ingredients):
        with pytest.raises(ConflictError):
            await stock_ledger.create_ingredient(
                db, IngredientCreate(name="Mozzarella", unit="g", category="quesos"),
            )

    async def test_percentage_only_update_moves_quantity(self, db: AsyncSession, ingredients):
        updated = await stock_ledger.update_levels(
            db, ingredients["masa"].id, IngredientUpdate(current_percentage=60),
        )
        assert updated.current_percentage == 60
        assert updated.current_quantity == 30

    async def test_quantity_update_recomputes_percentage(self, db: AsyncSession, ingredients):
        updated = await stock_ledger.update_levels(
            db, ingredients["masa"].id, IngredientUpdate(current_quantity=10),
        )
        assert updated.current_percentage == 20

        movements = await stock_ledger.list_movements(db, ingredients["masa"].id)
        assert movements[0].movement_type == MOVEMENT_ADJUSTMENT
        assert movements[0].reason == "Manual adjustment"

    async def test_quantity_and_percentage_keeps_percentage_derived(self, db: AsyncSession, ingredients):
        """수량과 비율이 함께 오면 비율은 수량에서 계산."""
        updated = await stock_ledger.update_levels(
            db, ingredients["mozzarella"].id, IngredientUpdate(current_quantity=10, current_percentage=90),
        )
        assert updated.current_quantity == 10
        assert updated.current_percentage == 10

    async def test_threshold_only_update_writes_no_movement(self, db: AsyncSession, ingredients):
        await stock_ledger.update_levels(db, ingredients["masa"].id, IngredientUpdate(warning_threshold=60))
        assert await stock_ledger.list_movements(db, ingredients["masa"].id) == []
