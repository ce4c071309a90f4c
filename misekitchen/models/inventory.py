"""재고 관련 SQLAlchemy ORM 모델 정의.

Inventory SQLAlchemy ORM model definitions.
Covers the global (warehouse) ingredient stock, recipes, the append-only
stock audit trail, and threshold alerts.

Tables:
    - ingredients: 재료 및 전역 재고 (Ingredients with global stock levels)
    - recipes: 레시피 (Pizzas and boards, optionally sized S/M/L)
    - recipe_ingredients: 레시피 구성 (Per-unit ingredient quantities, ordered)
    - restocks: 재입고 이력 (Restock history, percentage before/after)
    - inventory_movements: 재고 이동 (Quantity audit trail)
    - alerts: 재고 알림 (Threshold alerts and suggestions)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Float, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from misekitchen.database import Base

# 재료 카테고리 — 소스는 선택형 재료 (Sauce category ingredients are interchangeable)
SAUCE_CATEGORY: str = "salsas"

# 알림 유형/범위 — Alert types and scopes
ALERT_CRITICAL: str = "critical"
ALERT_WARNING: str = "warning"
ALERT_INFO: str = "info"
ALERT_SUGGESTION: str = "suggestion"

SCOPE_INVENTORY: str = "inventory"
SCOPE_MISE_EN_PLACE: str = "mise_en_place"
SCOPE_GENERAL: str = "general"


class Ingredient(Base):
    """재료 모델 — 전역 재고 수준.

    Ingredient model — Global inventory level.
    current_percentage is stored, not computed: it must be rewritten on every
    quantity change as round(current_quantity / total_quantity * 100).

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 재료 이름 (Unique ingredient name)
        unit: 단위 (Unit, e.g. "g", "ml", "un")
        category: 카테고리 (Category, e.g. "quesos", "salsas")
        total_quantity: 기준 총량 (Reference full-stock quantity)
        current_quantity: 현재 수량 (Quantity on hand)
        current_percentage: 현재 비율 (Stored percentage of total)
        critical_threshold: 위험 임계값 % (Critical alert threshold)
        warning_threshold: 경고 임계값 % (Warning alert threshold)
    """

    __tablename__ = "ingredients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    total_quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1000)
    current_quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1000)
    current_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    critical_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    warning_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class Recipe(Base):
    """레시피 모델 — 판매 단위.

    Recipe model — One sellable unit (a pizza or a board), optionally sized.

    Constraints:
        uq_recipe_name_size_type: 이름+크기+유형 고유 (Same name allowed per size)
    """

    __tablename__ = "recipes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    # 유형 — pizza | tabla
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="pizza")
    # 크기 — S | M | L | None
    size: Mapped[str | None] = mapped_column(String(1), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("name", "size", "type", name="uq_recipe_name_size_type"),
    )

    # 관계 — 구성 재료는 position 순서 유지 (Lines kept in recipe order)
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
        lazy="selectin",
    )


class RecipeIngredient(Base):
    """레시피 구성 재료 — 판매 1단위당 수량.

    Recipe line — Quantity of one ingredient per single sold unit.
    """

    __tablename__ = "recipe_ingredients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipe_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("recipe_id", "ingredient_id", name="uq_recipe_ingredient"),
    )

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient", lazy="joined")


class Restock(Base):
    """재입고 이력 — 추가 전용.

    Restock history — append-only, percentage before/after and authorizer.
    """

    __tablename__ = "restocks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ingredient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    previous_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    new_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    authorized_by: Mapped[str] = mapped_column(String(255), nullable=False)
    shift_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="SET NULL"), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class InventoryMovement(Base):
    """재고 이동 기록 — 추가 전용 감사 추적.

    Inventory movement — append-only audit trail of global quantity changes.

    Movement Types:
        - "restock": 재입고 (added quantity)
        - "consumption": 판매 소비 (sale deduction)
        - "adjustment": 직접 수량/비율 설정 (absolute set)
    """

    __tablename__ = "inventory_movements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ingredient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity_before: Mapped[float] = mapped_column(Float, nullable=False)
    quantity_after: Mapped[float] = mapped_column(Float, nullable=False)
    quantity_change: Mapped[float] = mapped_column(Float, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    shift_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="SET NULL"), nullable=True)
    authorized_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class Alert(Base):
    """재고 알림 모델.

    Alert model — threshold breach or free-form suggestion.
    At most one unresolved alert exists per ingredient, whatever its scope.

    Attributes:
        type: 알림 유형 (critical | warning | info | suggestion)
        scope: 발생 범위 (inventory | mise_en_place | general)
        priority: 우선순위 (3=critical, 2=warning, 1=suggestion)
        resolved: 해결 여부 (Set only by the resolve action)
    """

    __tablename__ = "alerts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    ingredient_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=True)
    scope: Mapped[str] = mapped_column(String(20), nullable=False, default=SCOPE_INVENTORY)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    ingredient = relationship("Ingredient", lazy="joined")
