"""재고(재료/레시피/알림) 관련 Pydantic 요청/응답 스키마 정의.

Inventory Pydantic request/response schema definitions.
Covers ingredients with their restock/movement history, recipes, and alerts.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


# === 재료 (Ingredient) 스키마 ===

class IngredientCreate(BaseModel):
    """재료 생성 요청 스키마.

    Ingredient creation request schema.
    current_quantity defaults to total_quantity (a freshly stocked item).

    Attributes:
        name: 재료 이름 (Unique name)
        unit: 단위 (Unit, e.g. "g")
        category: 카테고리 (Category, e.g. "quesos", "salsas")
        total_quantity: 기준 총량 (Full-stock reference quantity)
        current_quantity: 현재 수량 (Quantity on hand, optional)
        critical_threshold: 위험 임계값 % (Critical threshold)
        warning_threshold: 경고 임계값 % (Warning threshold)
    """

    name: str = Field(min_length=1, max_length=120)
    unit: str = Field(min_length=1, max_length=20)
    category: str = Field(min_length=1, max_length=50)
    total_quantity: float = Field(default=1000, gt=0)
    current_quantity: float | None = Field(default=None, ge=0)
    critical_threshold: int = Field(default=20, ge=0, le=100)
    warning_threshold: int = Field(default=50, ge=0, le=100)


class IngredientUpdate(BaseModel):
    """재료 수정 요청 스키마 (부분 업데이트).

    Ingredient update request schema (partial update).
    current_percentage is applied only when current_quantity is absent;
    otherwise the percentage is recomputed from the quantities.
    """

    name: str | None = None
    unit: str | None = None
    category: str | None = None
    critical_threshold: int | None = Field(default=None, ge=0, le=100)
    warning_threshold: int | None = Field(default=None, ge=0, le=100)
    total_quantity: float | None = Field(default=None, gt=0)
    current_quantity: float | None = Field(default=None, ge=0)
    current_percentage: int | None = Field(default=None, ge=0)


class IngredientResponse(BaseModel):
    """재료 응답 스키마 (Ingredient response schema)."""

    id: str
    name: str
    unit: str
    category: str
    total_quantity: float
    current_quantity: float
    current_percentage: int
    critical_threshold: int
    warning_threshold: int
    updated_at: datetime | None = None


class RestockRequest(BaseModel):
    """재입고 요청 스키마.

    Restock request schema. Exactly one quantity form must be given:
    added_quantity (increment), new_quantity (absolute) or new_percentage.
    Authorization is either a free-text name or RUT + password of an active user.

    Attributes:
        added_quantity: 추가 수량 (Quantity to add)
        new_quantity: 새 절대 수량 (Absolute quantity)
        new_percentage: 새 비율 % (Absolute percentage of total)
        authorized_by: 승인자 이름 (Free-text authorizer)
        authorized_rut: 승인자 RUT (Authorizer RUT)
        authorized_password: 승인자 비밀번호 (Authorizer password)
        shift_id: 교대 ID (Shift credited with the restock, defaults to the open shift)
    """

    added_quantity: float | None = Field(default=None, gt=0)
    new_quantity: float | None = Field(default=None, ge=0)
    new_percentage: int | None = Field(default=None, ge=0)
    authorized_by: str | None = None
    authorized_rut: str | None = None
    authorized_password: str | None = None
    shift_id: UUID | None = None


class RestockResponse(BaseModel):
    """재입고 이력 응답 스키마 (Restock history entry)."""

    id: str
    ingredient_id: str
    previous_percentage: int
    new_percentage: int
    authorized_by: str
    shift_id: str | None = None
    timestamp: datetime


class RestockResult(BaseModel):
    """재입고 결과 — 갱신된 재료와 이력 (Updated ingredient plus the restock entry)."""

    ingredient: IngredientResponse
    restock: RestockResponse


class MovementResponse(BaseModel):
    """재고 이동 응답 스키마 (Inventory movement entry)."""

    id: str
    ingredient_id: str
    movement_type: str
    quantity_before: float
    quantity_after: float
    quantity_change: float
    reason: str | None = None
    shift_id: str | None = None
    authorized_by: str
    created_at: datetime


# === 레시피 (Recipe) 스키마 ===

class RecipeLineInput(BaseModel):
    """레시피 구성 입력 (Recipe line: ingredient and per-unit quantity)."""

    ingredient_id: UUID
    quantity: float = Field(gt=0)


class RecipeCreate(BaseModel):
    """레시피 생성 요청 스키마.

    Recipe creation request schema. Lines keep the given order.
    """

    name: str = Field(min_length=1, max_length=120)
    type: Literal["pizza", "tabla"] = "pizza"
    size: Literal["S", "M", "L"] | None = None
    active: bool = True
    ingredients: list[RecipeLineInput] = Field(min_length=1)


class RecipeLineResponse(BaseModel):
    """레시피 구성 응답 (Recipe line response)."""

    ingredient_id: str
    ingredient_name: str
    category: str
    unit: str
    quantity: float


class RecipeResponse(BaseModel):
    """레시피 응답 스키마 (Recipe response with ordered lines)."""

    id: str
    name: str
    type: str
    size: str | None = None
    active: bool
    ingredients: list[RecipeLineResponse] = []


# === 알림 (Alert) 스키마 ===

class SuggestionCreate(BaseModel):
    """제안 알림 생성 요청 (Free-form suggestion, e.g. an idle-time task)."""

    message: str = Field(min_length=1, max_length=500)


class AlertResponse(BaseModel):
    """알림 응답 스키마 (Alert response schema)."""

    id: str
    type: str
    message: str
    ingredient_id: str | None = None
    ingredient_name: str | None = None
    scope: str
    priority: int
    resolved: bool
    created_at: datetime
    resolved_at: datetime | None = None


class AlertCountResponse(BaseModel):
    """미해결 알림 수 (Unresolved alert count)."""

    count: int
