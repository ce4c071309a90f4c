"""교대 관련 Pydantic 요청/응답 스키마 정의.

Shift Pydantic request/response schema definitions.
Covers opening, task toggling, checklist signing, closing, mise en place
status and the shift report.
"""

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


# === 요청 (Requests) ===

class MiseEnPlaceInput(BaseModel):
    """교대 시작 시 준비한 재료 (Ingredient prepared at shift open).

    unit defaults to the ingredient's own unit.
    """

    ingredient_id: UUID
    quantity: float = Field(gt=0)
    unit: str | None = None


class ShiftCreate(BaseModel):
    """교대 시작 요청 스키마.

    Shift open request schema.

    Attributes:
        date: 영업일 (Business date)
        type: 교대 유형 (AM | PM)
        employee_name: 담당 직원 (Employee running the shift)
        mise_en_place: 초기 미장플라스 (Initial prepared quantities)
    """

    date: date
    type: Literal["AM", "PM"]
    employee_name: str = Field(min_length=1, max_length=255)
    mise_en_place: list[MiseEnPlaceInput] = []


class TaskToggleRequest(BaseModel):
    """체크리스트 항목 완료 토글 (Set a task's completed flag)."""

    completed: bool


class SignChecklistRequest(BaseModel):
    """체크리스트 서명 요청 — 셰프 RUT와 비밀번호 (Chef RUT and password)."""

    rut: str
    password: str


class CloseShiftRequest(BaseModel):
    """교대 마감 요청 (Shift close request; closed_by is required)."""

    closed_by: str = ""


class MiseRestockRequest(BaseModel):
    """현재 교대 미장플라스 보충 (Quantity added to the open shift's prep)."""

    quantity: float = Field(gt=0)


# === 응답 (Responses) ===

class ShiftTaskResponse(BaseModel):
    """체크리스트 항목 응답 (Checklist task)."""

    id: str
    shift_id: str
    task_name: str
    category: str | None = None
    position: int
    completed: bool
    completed_at: datetime | None = None


class MiseEnPlaceResponse(BaseModel):
    """교대 미장플라스 행 응답.

    Mise en place row with its rounded percentage and colour status
    (red < 30, orange < 50, yellow < 70, otherwise green).
    """

    id: str
    ingredient_id: str
    ingredient_name: str
    category: str
    initial_quantity: float
    current_quantity: float
    unit: str
    percentage: int
    status: Literal["red", "orange", "yellow", "green"]


class ShiftResponse(BaseModel):
    """교대 응답 스키마 (Shift with tasks and mise en place)."""

    id: str
    date: date
    type: str
    employee_name: str
    start_time: datetime
    end_time: datetime | None = None
    status: str
    checklist_signed: bool
    checklist_signed_by: str | None = None
    checklist_signed_at: datetime | None = None
    checklist_version: str
    tasks: list[ShiftTaskResponse] = []
    mise_en_place: list[MiseEnPlaceResponse] = []


class ChecklistCompletionResponse(BaseModel):
    """서명 시점 완료 스냅샷 (Checklist completion snapshot)."""

    id: str
    shift_id: str
    employee_name: str
    total_tasks: int
    completed_tasks: int
    completion_percentage: int
    signed_by: str
    signed_at: datetime


class SignChecklistResponse(BaseModel):
    """체크리스트 서명 결과 (Signed shift plus the snapshot)."""

    shift: ShiftResponse
    completion: ChecklistCompletionResponse


class ShiftReportResponse(BaseModel):
    """교대 마감 보고서 응답 (Shift report)."""

    id: str
    shift_id: str
    date: date
    shift_type: str
    employee_name: str
    total_sales: int
    sale_count: int
    ingredients_used: list[dict[str, Any]]
    alerts_generated: int
    checklist_completion: dict[str, Any] | None = None
    closed_by: str
    closed_at: datetime


class CloseShiftResponse(BaseModel):
    """교대 마감 결과 (Closed shift plus its report)."""

    shift: ShiftResponse
    report: ShiftReportResponse


class MiseStatusResponse(BaseModel):
    """현재 교대 미장플라스 상태 (Mise en place of the open shift)."""

    shift_id: str
    mise_en_place: list[MiseEnPlaceResponse]


class MiseSuggestion(BaseModel):
    """권장 초기 준비량 (Suggested initial prep for one ingredient)."""

    ingredient_id: str
    ingredient_name: str
    quantity: float
    unit: str


class CalculatedMiseResponse(BaseModel):
    """권장 미장플라스 계산 결과 (Suggested mise en place for the base pizza count)."""

    base_pizza_count: int
    mise_en_place: list[MiseSuggestion]


class ChecklistHistoryEntry(BaseModel):
    """체크리스트 서명 이력 항목 (Signed snapshot with its shift)."""

    completion: ChecklistCompletionResponse
    date: date
    shift_type: str
    start_time: datetime
    end_time: datetime | None = None


class ChecklistHistoryStats(BaseModel):
    """체크리스트 이력 통계 (History stats and reward eligibility)."""

    total_shifts: int
    perfect_completions: int
    avg_completion: int
    is_eligible_for_rewards: bool


class ChecklistHistoryResponse(BaseModel):
    """직원 체크리스트 이력 (An employee's signed checklists)."""

    employee_name: str
    history: list[ChecklistHistoryEntry]
    stats: ChecklistHistoryStats


class EligibleEmployeeResponse(BaseModel):
    """보상 대상 직원 (Employee with perfect signed shifts)."""

    employee_name: str
    perfect_shifts: int
    avg_completion: float
