"""교대 라우터 — 교대 시작/마감, 체크리스트, 미장플라스, 보고서.

Shift Router — shift open/close, checklist tasks and signing, mise en place,
reports and checklist history.

Static paths (/current, /reports, /checklist-history, ...) are declared
before /{shift_id} so they are matched first.
"""

import datetime as dt
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import get_db
from misekitchen.schemas.shift import (
    CalculatedMiseResponse,
    ChecklistHistoryResponse,
    CloseShiftRequest,
    CloseShiftResponse,
    EligibleEmployeeResponse,
    MiseEnPlaceResponse,
    MiseRestockRequest,
    MiseStatusResponse,
    ShiftCreate,
    ShiftReportResponse,
    ShiftResponse,
    ShiftTaskResponse,
    SignChecklistRequest,
    SignChecklistResponse,
    TaskToggleRequest,
)
from misekitchen.services.shift_service import shift_service
from misekitchen.services.stock_ledger import stock_ledger

router: APIRouter = APIRouter()


@router.get("", response_model=list[ShiftResponse])
async def list_shifts(
    db: Annotated[AsyncSession, Depends(get_db)],
    date: dt.date | None = Query(None),
    status: Literal["open", "closed"] | None = Query(None),
) -> list[ShiftResponse]:
    """교대 목록 (Shifts, newest first)."""
    return await shift_service.list_shifts(db, date, status)


@router.post("", response_model=ShiftResponse, status_code=201)
async def open_shift(
    data: ShiftCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ShiftResponse:
    """교대를 시작합니다.

    Open a shift; fails with 409 while another shift is open.
    """
    result: ShiftResponse = await shift_service.open_shift(db, data)
    await db.commit()
    return result


@router.get("/current", response_model=ShiftResponse | None)
async def get_current_shift(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ShiftResponse | None:
    """현재 열린 교대 — 없으면 null."""
    return await shift_service.get_current_shift(db)


@router.get("/current/mise-en-place", response_model=MiseStatusResponse)
async def get_mise_en_place(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MiseStatusResponse:
    """현재 교대 미장플라스 상태."""
    return await stock_ledger.mise_en_place_status(db)


@router.put("/current/mise-en-place/{ingredient_id}/restock", response_model=MiseEnPlaceResponse)
async def restock_mise_en_place(
    ingredient_id: UUID,
    data: MiseRestockRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MiseEnPlaceResponse:
    """현재 교대 미장플라스를 보충합니다."""
    result: MiseEnPlaceResponse = await stock_ledger.restock_mise_en_place(db, ingredient_id, data.quantity)
    await db.commit()
    return result


@router.post("/calculate-mise-en-place", response_model=CalculatedMiseResponse)
async def calculate_mise_en_place(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CalculatedMiseResponse:
    """권장 초기 미장플라스 (Suggested prep for the base pizza count)."""
    result: CalculatedMiseResponse = await shift_service.calculate_mise_en_place(db)
    # 설정 행이 없으면 생성됨 — the settings row may have been created
    await db.commit()
    return result


@router.get("/reports/{shift_id}", response_model=ShiftReportResponse)
async def get_report(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ShiftReportResponse:
    """교대 마감 보고서."""
    return await shift_service.get_report(db, shift_id)


@router.get("/checklist-history/{employee_name}", response_model=ChecklistHistoryResponse)
async def checklist_history(
    employee_name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ChecklistHistoryResponse:
    """직원 체크리스트 서명 이력."""
    return await shift_service.checklist_history(db, employee_name)


@router.get("/eligible-employees", response_model=list[EligibleEmployeeResponse])
async def eligible_employees(
    db: Annotated[AsyncSession, Depends(get_db)],
    date: dt.date | None = Query(None),
) -> list[EligibleEmployeeResponse]:
    """100% 서명 교대가 있는 직원 (Employees eligible for rewards)."""
    return await shift_service.eligible_employees(db, date)


@router.get("/{shift_id}", response_model=ShiftResponse)
async def get_shift(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ShiftResponse:
    """교대 상세."""
    return await shift_service.get_shift(db, shift_id)


@router.put("/{shift_id}/tasks/{task_id}", response_model=ShiftTaskResponse)
async def toggle_task(
    shift_id: UUID,
    task_id: UUID,
    data: TaskToggleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ShiftTaskResponse:
    """체크리스트 항목 완료 여부를 설정합니다."""
    result: ShiftTaskResponse = await shift_service.set_task_completed(db, shift_id, task_id, data.completed)
    await db.commit()
    return result


@router.post("/{shift_id}/sign-checklist", response_model=SignChecklistResponse)
async def sign_checklist(
    shift_id: UUID,
    data: SignChecklistRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SignChecklistResponse:
    """셰프가 체크리스트에 서명합니다 (Chef RUT + password)."""
    result: SignChecklistResponse = await shift_service.sign_checklist(db, shift_id, data.rut, data.password)
    await db.commit()
    return result


@router.put("/{shift_id}/close", response_model=CloseShiftResponse)
async def close_shift(
    shift_id: UUID,
    data: CloseShiftRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CloseShiftResponse:
    """교대를 마감합니다.

    Close a shift and write its report. Blocked while any mise en place row
    is below the kitchen's minimum close percentage.
    """
    result: CloseShiftResponse = await shift_service.close_shift(db, shift_id, data.closed_by)
    await db.commit()
    return result
