"""판매 관련 Pydantic 요청/응답 스키마 정의.

Sale Pydantic request/response schema definitions.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class SaleCreate(BaseModel):
    """판매 등록 요청 스키마.

    Sale registration request schema.
    shift_id defaults to the currently open shift. quantity is validated by
    the sale service so direct callers get the same error.

    Attributes:
        shift_id: 교대 ID (Open shift, optional)
        recipe_id: 레시피 ID (Recipe sold)
        quantity: 판매 수량 (Units sold, positive)
        selected_sauces: 선택한 소스 이름 (Sauce names charged for this sale)
    """

    shift_id: UUID | None = None
    recipe_id: UUID
    quantity: int
    selected_sauces: list[str] | None = None


class SaleResponse(BaseModel):
    """판매 응답 스키마 (Sale record)."""

    id: str
    shift_id: str
    recipe_id: str
    recipe_name: str
    recipe_type: str
    size: str | None = None
    quantity: int
    timestamp: datetime


class RegisterSaleResponse(BaseModel):
    """판매 등록 결과 — 판매 기록과 선택적 경고 (Sale plus an optional low-stock warning)."""

    sale: SaleResponse
    warning: str | None = None


class SaleSummaryItem(BaseModel):
    """레시피별 판매 요약 (Units sold per recipe)."""

    recipe_id: str
    recipe_name: str
    size: str | None = None
    type: str
    units: int
    sales: int
