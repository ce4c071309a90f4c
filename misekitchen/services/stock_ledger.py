"""재고 원장 서비스 — 전역 재고와 교대 미장플라스의 수량/비율 관리.

Stock Ledger Service — canonical quantity and percentage state for
ingredients in two scopes: the global (warehouse) inventory and each shift's
mise en place.

Rules:
    - Global percentage is stored: round(current / total * 100), 0 when total <= 0.
    - Shift percentage is derived from the row's quantity pair on every read.
    - Both scopes clamp at zero; a shift-scope shortfall is logged.
    - Every global quantity change appends an InventoryMovement.
    - Callers re-read the returned row after every mutation.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.events import event_types
from misekitchen.events.broker import queue_event
from misekitchen.models.inventory import Ingredient, InventoryMovement, Restock
from misekitchen.models.shift import Shift, ShiftMisePlace
from misekitchen.models.user import User
from misekitchen.repositories.ingredient_repository import (
    ingredient_repository,
    inventory_movement_repository,
    restock_repository,
)
from misekitchen.repositories.shift_repository import kitchen_state_repository, shift_mise_repository, shift_repository
from misekitchen.repositories.user_repository import user_repository
from misekitchen.schemas.inventory import (
    IngredientCreate,
    IngredientResponse,
    IngredientUpdate,
    MovementResponse,
    RestockRequest,
    RestockResponse,
    RestockResult,
)
from misekitchen.schemas.shift import MiseEnPlaceResponse, MiseStatusResponse
from misekitchen.services.alert_service import alert_service
from misekitchen.utils.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from misekitchen.utils.logging import get_logger
from misekitchen.utils.password import verify_password

logger = get_logger(__name__)

# 재고 이동 유형 — Inventory movement types
MOVEMENT_RESTOCK: str = "restock"
MOVEMENT_CONSUMPTION: str = "consumption"
MOVEMENT_ADJUSTMENT: str = "adjustment"

SYSTEM_ACTOR: str = "system"


@dataclass(frozen=True)
class StockScope:
    """재고 범위 — 전역 또는 특정 교대 (Global inventory, or one shift's mise en place)."""

    shift_id: UUID | None = None

    @property
    def is_global(self) -> bool:
        return self.shift_id is None

    @classmethod
    def shift(cls, shift_id: UUID) -> "StockScope":
        return cls(shift_id=shift_id)


GLOBAL_SCOPE: StockScope = StockScope()


def compute_percentage(current_quantity: float, total_quantity: float) -> int:
    """현재 비율을 계산합니다 (Stored global percentage, 0 when total <= 0)."""
    if total_quantity <= 0:
        return 0
    return round(current_quantity / total_quantity * 100)


def mise_status(percentage: float) -> str:
    """미장플라스 색상 상태 (red < 30, orange < 50, yellow < 70, else green)."""
    if percentage < 30:
        return "red"
    if percentage < 50:
        return "orange"
    if percentage < 70:
        return "yellow"
    return "green"


class StockLedger:
    """재고 원장 비즈니스 로직 (StockLedger).

    Owns every quantity mutation on ingredients and shift mise en place rows.
    """

    # === 응답 변환 (Response conversion) ===

    def ingredient_response(self, ingredient: Ingredient) -> IngredientResponse:
        """재료 모델을 응답 스키마로 변환합니다 (Convert an Ingredient to its response)."""
        return IngredientResponse(
            id=str(ingredient.id),
            name=ingredient.name,
            unit=ingredient.unit,
            category=ingredient.category,
            total_quantity=ingredient.total_quantity,
            current_quantity=ingredient.current_quantity,
            current_percentage=ingredient.current_percentage,
            critical_threshold=ingredient.critical_threshold,
            warning_threshold=ingredient.warning_threshold,
            updated_at=ingredient.updated_at,
        )

    def mise_response(self, row: ShiftMisePlace) -> MiseEnPlaceResponse:
        """미장플라스 행을 응답 스키마로 변환합니다 (Convert a mise en place row)."""
        percentage: float = row.percentage
        return MiseEnPlaceResponse(
            id=str(row.id),
            ingredient_id=str(row.ingredient_id),
            ingredient_name=row.ingredient.name,
            category=row.ingredient.category,
            initial_quantity=row.initial_quantity,
            current_quantity=row.current_quantity,
            unit=row.unit,
            percentage=round(percentage),
            status=mise_status(percentage),
        )

    def _restock_response(self, restock: Restock) -> RestockResponse:
        return RestockResponse(
            id=str(restock.id),
            ingredient_id=str(restock.ingredient_id),
            previous_percentage=restock.previous_percentage,
            new_percentage=restock.new_percentage,
            authorized_by=restock.authorized_by,
            shift_id=str(restock.shift_id) if restock.shift_id else None,
            timestamp=restock.timestamp,
        )

    def _movement_response(self, movement: InventoryMovement) -> MovementResponse:
        return MovementResponse(
            id=str(movement.id),
            ingredient_id=str(movement.ingredient_id),
            movement_type=movement.movement_type,
            quantity_before=movement.quantity_before,
            quantity_after=movement.quantity_after,
            quantity_change=movement.quantity_change,
            reason=movement.reason,
            shift_id=str(movement.shift_id) if movement.shift_id else None,
            authorized_by=movement.authorized_by,
            created_at=movement.created_at,
        )

    # === 조회 (Reads) ===

    async def get_ingredient(self, db: AsyncSession, ingredient_id: UUID) -> Ingredient:
        """재료를 조회합니다.

        Raises:
            NotFoundError: 재료가 없을 때 (Ingredient not found)
        """
        ingredient: Ingredient | None = await ingredient_repository.get_by_id(db, ingredient_id)
        if ingredient is None:
            raise NotFoundError("Ingredient not found", code="ingredient_not_found")
        return ingredient

    async def list_ingredients(self, db: AsyncSession, category: str | None = None) -> list[IngredientResponse]:
        """재료 목록 (Ingredients ordered by category and name)."""
        ingredients: list[Ingredient] = await ingredient_repository.list_ordered(db, category)
        return [self.ingredient_response(i) for i in ingredients]

    async def get_ingredient_detail(self, db: AsyncSession, ingredient_id: UUID) -> IngredientResponse:
        """재료 상세 (Single ingredient)."""
        return self.ingredient_response(await self.get_ingredient(db, ingredient_id))

    async def list_restocks(self, db: AsyncSession, ingredient_id: UUID) -> list[RestockResponse]:
        """재입고 이력 (Restock history of an ingredient)."""
        await self.get_ingredient(db, ingredient_id)
        restocks: list[Restock] = await restock_repository.list_for_ingredient(db, ingredient_id)
        return [self._restock_response(r) for r in restocks]

    async def list_movements(
        self, db: AsyncSession, ingredient_id: UUID, movement_type: str | None = None,
    ) -> list[MovementResponse]:
        """재고 이동 기록 (Inventory movements of an ingredient)."""
        await self.get_ingredient(db, ingredient_id)
        movements: list[InventoryMovement] = await inventory_movement_repository.list_for_ingredient(
            db, ingredient_id, movement_type,
        )
        return [self._movement_response(m) for m in movements]

    # === 범위별 변경 (Scoped mutations) ===

    async def deduct(
        self,
        db: AsyncSession,
        scope: StockScope,
        ingredient_id: UUID,
        amount: float,
        *,
        actor: str = SYSTEM_ACTOR,
        reason: str | None = None,
        shift_id: UUID | None = None,
    ) -> Ingredient | ShiftMisePlace | None:
        """범위의 수량을 차감하고 비율을 다시 계산합니다.

        Deduct ``amount`` in a scope, clamping at zero.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            scope: 전역 또는 교대 범위 (GLOBAL_SCOPE or StockScope.shift(id))
            ingredient_id: 재료 ID (Ingredient UUID)
            amount: 차감량 (Amount to deduct, >= 0)
            actor: 감사 기록 행위자 (Audit actor for global movements)
            reason: 감사 사유 (Audit reason for global movements)
            shift_id: 감사용 교대 ID (Shift recorded on global movements)

        Returns:
            Ingredient | ShiftMisePlace | None: 갱신된 행. 교대에 해당 재료가 없으면 None
                (Updated row; None when the shift has no row for the ingredient)
        """
        if amount < 0:
            raise ValidationError("Deduction amount must not be negative", code="invalid_amount")

        if scope.is_global:
            ingredient: Ingredient = await self.get_ingredient(db, ingredient_id)
            new_quantity: float = max(0.0, ingredient.current_quantity - amount)
            return await self._set_global_quantity(
                db, ingredient, new_quantity, MOVEMENT_CONSUMPTION,
                actor=actor, reason=reason, shift_id=shift_id,
            )

        row: ShiftMisePlace | None = await shift_mise_repository.get_row(db, scope.shift_id, ingredient_id)
        if row is None:
            return None
        if amount > row.current_quantity:
            logger.warning(
                "Mise en place shortfall",
                extra={"data": {
                    "shift_id": str(scope.shift_id),
                    "ingredient_id": str(ingredient_id),
                    "remaining": row.current_quantity,
                    "requested": amount,
                }},
            )
        row.current_quantity = max(0.0, row.current_quantity - amount)
        await db.flush()
        return row

    async def increment(
        self,
        db: AsyncSession,
        scope: StockScope,
        ingredient_id: UUID,
        amount: float,
        *,
        actor: str = SYSTEM_ACTOR,
        reason: str | None = None,
        shift_id: UUID | None = None,
    ) -> Ingredient | ShiftMisePlace | None:
        """범위의 수량을 증가시키고 비율을 다시 계산합니다.

        Increment ``amount`` in a scope. Same return contract as ``deduct``.
        """
        if amount < 0:
            raise ValidationError("Increment amount must not be negative", code="invalid_amount")

        if scope.is_global:
            ingredient: Ingredient = await self.get_ingredient(db, ingredient_id)
            return await self._set_global_quantity(
                db, ingredient, ingredient.current_quantity + amount, MOVEMENT_RESTOCK,
                actor=actor, reason=reason, shift_id=shift_id,
            )

        row: ShiftMisePlace | None = await shift_mise_repository.get_row(db, scope.shift_id, ingredient_id)
        if row is None:
            return None
        row.current_quantity = row.current_quantity + amount
        await db.flush()
        return row

    async def _set_global_quantity(
        self,
        db: AsyncSession,
        ingredient: Ingredient,
        new_quantity: float,
        movement_type: str,
        *,
        actor: str,
        reason: str | None,
        shift_id: UUID | None,
        new_percentage: int | None = None,
    ) -> Ingredient:
        """전역 수량을 설정하고 비율 저장, 이동 기록 추가.

        Set the global quantity, store the percentage and append a movement
        when the quantity changed. An explicit new_percentage is stored as given.
        """
        before: float = ingredient.current_quantity
        ingredient.current_quantity = new_quantity
        ingredient.current_percentage = (
            new_percentage if new_percentage is not None
            else compute_percentage(new_quantity, ingredient.total_quantity)
        )
        if new_quantity == before:
            await db.flush()
            await db.refresh(ingredient)
            return ingredient

        await inventory_movement_repository.create(
            db,
            {
                "ingredient_id": ingredient.id,
                "movement_type": movement_type,
                "quantity_before": before,
                "quantity_after": new_quantity,
                "quantity_change": new_quantity - before,
                "reason": reason,
                "shift_id": shift_id,
                "authorized_by": actor,
            },
        )
        await db.flush()
        await db.refresh(ingredient)
        return ingredient

    # === 재료 CRUD (Ingredient create/update) ===

    async def create_ingredient(self, db: AsyncSession, data: IngredientCreate) -> IngredientResponse:
        """재료를 생성합니다.

        Create an ingredient; current quantity defaults to the total.

        Raises:
            ConflictError: 같은 이름의 재료가 있을 때 (Duplicate name)
        """
        if await ingredient_repository.get_by_name(db, data.name) is not None:
            raise ConflictError("Ingredient already exists", code="ingredient_exists")

        current: float = data.current_quantity if data.current_quantity is not None else data.total_quantity
        ingredient: Ingredient = await ingredient_repository.create(
            db,
            {
                "name": data.name,
                "unit": data.unit,
                "category": data.category,
                "total_quantity": data.total_quantity,
                "current_quantity": current,
                "current_percentage": compute_percentage(current, data.total_quantity),
                "critical_threshold": data.critical_threshold,
                "warning_threshold": data.warning_threshold,
            },
        )
        response = self.ingredient_response(ingredient)
        queue_event(db, event_types.INGREDIENT_CREATED, response.model_dump(mode="json"))
        await alert_service.evaluate(db, ingredient)
        return response

    async def update_levels(self, db: AsyncSession, ingredient_id: UUID, data: IngredientUpdate) -> IngredientResponse:
        """재료 속성/수준을 부분 업데이트합니다.

        Partially update an ingredient. A percentage is stored as given only
        when no current_quantity is supplied; the quantity then follows it
        (round(percentage / 100 * total)). Whenever a quantity is supplied the
        percentage is recomputed from the quantities. Quantity changes are audited as
        adjustments and alerts are re-evaluated.

        Raises:
            NotFoundError: 재료가 없을 때 (Ingredient not found)
            ConflictError: 이름 중복 (Name taken by another ingredient)
        """
        ingredient: Ingredient = await self.get_ingredient(db, ingredient_id)
        update_data: dict = data.model_dump(exclude_unset=True)

        new_name: str | None = update_data.get("name")
        if new_name and new_name != ingredient.name:
            if await ingredient_repository.get_by_name(db, new_name) is not None:
                raise ConflictError("Ingredient already exists", code="ingredient_exists")

        for field in ("name", "unit", "category", "critical_threshold", "warning_threshold", "total_quantity"):
            if update_data.get(field) is not None:
                setattr(ingredient, field, update_data[field])

        current_quantity: float | None = update_data.get("current_quantity")
        percentage: int | None = update_data.get("current_percentage")
        if current_quantity is not None:
            # 수량이 주어지면 비율은 수량에서 계산 — quantity given, percentage is derived
            percentage = None
        elif percentage is not None:
            current_quantity = round(percentage / 100 * ingredient.total_quantity)

        if current_quantity is not None or percentage is not None or "total_quantity" in update_data:
            target: float = current_quantity if current_quantity is not None else ingredient.current_quantity
            ingredient = await self._set_global_quantity(
                db, ingredient, target, MOVEMENT_ADJUSTMENT,
                actor=SYSTEM_ACTOR, reason="Manual adjustment", shift_id=None, new_percentage=percentage,
            )
        else:
            await db.flush()
            await db.refresh(ingredient)

        response = self.ingredient_response(ingredient)
        queue_event(db, event_types.INGREDIENT_UPDATED, response.model_dump(mode="json"))
        await alert_service.evaluate(db, ingredient)
        return response

    # === 재입고 (Restock) ===

    async def _resolve_authorizer(self, db: AsyncSession, data: RestockRequest) -> str:
        """승인자 표시 이름을 결정합니다.

        RUT + password must match an active user and yield "<name> (<rut>)";
        otherwise the free-text authorized_by is used.

        Raises:
            UnauthorizedError: 자격 증명 불일치 (Invalid credentials)
            ValidationError: 승인자 없음 (No authorizer given)
        """
        if data.authorized_rut or data.authorized_password:
            if not (data.authorized_rut and data.authorized_password):
                raise ValidationError("RUT and password are both required", code="missing_credentials")
            user: User | None = await user_repository.get_by_rut(db, data.authorized_rut)
            if user is None or not user.is_active or not verify_password(data.authorized_password, user.password_hash):
                raise UnauthorizedError()
            return f"{user.name} ({user.rut})"

        if data.authorized_by and data.authorized_by.strip():
            return data.authorized_by.strip()
        raise ValidationError("authorized_by is required", code="missing_authorizer")

    async def restock(self, db: AsyncSession, ingredient_id: UUID, data: RestockRequest) -> RestockResult:
        """전역 재고를 재입고합니다.

        Restock an ingredient with exactly one of added_quantity (increment),
        new_quantity (absolute) or new_percentage (absolute, quantity follows).
        Writes a Restock entry and an InventoryMovement, re-evaluates alerts.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            ingredient_id: 재료 ID (Ingredient UUID)
            data: 재입고 요청 (Restock request)

        Returns:
            RestockResult: 갱신된 재료와 재입고 이력 (Updated ingredient and restock entry)

        Raises:
            ValidationError: 수량 형식이 하나가 아닐 때 (Not exactly one quantity form)
            UnauthorizedError: 자격 증명 불일치 (Invalid credentials)
            NotFoundError: 재료가 없을 때 (Ingredient not found)
        """
        forms: list[str] = [
            name for name in ("added_quantity", "new_quantity", "new_percentage")
            if getattr(data, name) is not None
        ]
        if len(forms) != 1:
            raise ValidationError(
                "Provide exactly one of added_quantity, new_quantity or new_percentage",
                code="invalid_restock_quantity",
            )

        ingredient: Ingredient = await self.get_ingredient(db, ingredient_id)
        authorized_by: str = await self._resolve_authorizer(db, data)

        shift_id: UUID | None = data.shift_id
        if shift_id is None:
            state = await kitchen_state_repository.get_state(db)
            shift_id = state.current_shift_id

        previous_percentage: int = ingredient.current_percentage
        new_percentage: int | None = None
        if data.added_quantity is not None:
            target: float = ingredient.current_quantity + data.added_quantity
            movement_type, reason = MOVEMENT_RESTOCK, f"Restock of {data.added_quantity:g} {ingredient.unit}"
        elif data.new_quantity is not None:
            target = data.new_quantity
            movement_type, reason = MOVEMENT_ADJUSTMENT, "Restock from storage"
        else:
            new_percentage = data.new_percentage
            target = round(new_percentage / 100 * ingredient.total_quantity)
            movement_type, reason = MOVEMENT_ADJUSTMENT, "Restock from storage"

        ingredient = await self._set_global_quantity(
            db, ingredient, target, movement_type,
            actor=authorized_by, reason=reason, shift_id=shift_id, new_percentage=new_percentage,
        )
        restock: Restock = await restock_repository.create(
            db,
            {
                "ingredient_id": ingredient.id,
                "previous_percentage": previous_percentage,
                "new_percentage": ingredient.current_percentage,
                "authorized_by": authorized_by,
                "shift_id": shift_id,
            },
        )

        logger.info(
            "Ingredient restocked",
            extra={"data": {
                "ingredient": ingredient.name,
                "previous_percentage": previous_percentage,
                "new_percentage": ingredient.current_percentage,
                "authorized_by": authorized_by,
            }},
        )

        response = self.ingredient_response(ingredient)
        payload = response.model_dump(mode="json")
        queue_event(db, event_types.INGREDIENT_RESTOCKED, payload)
        queue_event(db, event_types.INGREDIENT_UPDATED, payload)
        await alert_service.evaluate(db, ingredient)
        return RestockResult(ingredient=response, restock=self._restock_response(restock))

    # === 교대 미장플라스 (Shift mise en place) ===

    async def _require_open_shift(self, db: AsyncSession) -> Shift:
        state = await kitchen_state_repository.get_state(db)
        shift: Shift | None = None
        if state.current_shift_id is not None:
            shift = await shift_repository.get_by_id(db, state.current_shift_id)
        if shift is None:
            raise NotFoundError("No open shift", code="no_open_shift")
        return shift

    async def mise_en_place_status(self, db: AsyncSession, shift_id: UUID | None = None) -> MiseStatusResponse:
        """교대 미장플라스 상태 — 비율과 색상 상태 포함.

        Mise en place rows of a shift (default: the open shift) with their
        rounded percentage and colour status.

        Raises:
            NotFoundError: 열린 교대가 없을 때 (No open shift)
        """
        if shift_id is None:
            shift_id = (await self._require_open_shift(db)).id
        rows: list[ShiftMisePlace] = await shift_mise_repository.list_for_shift(db, shift_id)
        return MiseStatusResponse(shift_id=str(shift_id), mise_en_place=[self.mise_response(r) for r in rows])

    async def restock_mise_en_place(self, db: AsyncSession, ingredient_id: UUID, quantity: float) -> MiseEnPlaceResponse:
        """열린 교대의 미장플라스를 보충합니다.

        Add prepared quantity to the open shift's row for an ingredient.

        Raises:
            NotFoundError: 열린 교대 또는 해당 행이 없을 때
                           (No open shift, or the shift has no row for the ingredient)
        """
        shift: Shift = await self._require_open_shift(db)
        row = await self.increment(db, StockScope.shift(shift.id), ingredient_id, quantity)
        if row is None:
            raise NotFoundError("Ingredient is not part of this shift's mise en place", code="mise_row_not_found")

        response = self.mise_response(row)
        queue_event(db, event_types.MISE_UPDATED, {"shift_id": str(shift.id), **response.model_dump(mode="json")})
        return response


# 싱글턴 인스턴스 — Singleton instance
stock_ledger: StockLedger = StockLedger()
