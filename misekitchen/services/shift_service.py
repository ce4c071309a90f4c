"""교대 서비스 — 교대 시작, 체크리스트, 서명, 마감.

Shift Service — ShiftLifecycle. Opens a shift (seeding its checklist and mise
en place), toggles checklist tasks, records the chef signature, gates and
performs the close, and writes exactly one report per closed shift.

State machine:
    (none) -> open -> closed
    checklist_signed is orthogonal; a shift may close unsigned.
"""

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.events import event_types
from misekitchen.events.broker import queue_event
from misekitchen.models.shift import (
    SHIFT_CLOSED,
    SHIFT_OPEN,
    Shift,
    ShiftChecklistCompletion,
    ShiftMisePlace,
    ShiftReport,
    ShiftTask,
)
from misekitchen.models.user import ROLE_CHEF, User
from misekitchen.repositories.alert_repository import alert_repository
from misekitchen.repositories.ingredient_repository import ingredient_repository
from misekitchen.repositories.recipe_repository import recipe_repository
from misekitchen.repositories.sale_repository import sale_repository
from misekitchen.repositories.shift_repository import (
    checklist_completion_repository,
    kitchen_settings_repository,
    kitchen_state_repository,
    shift_mise_repository,
    shift_report_repository,
    shift_repository,
    shift_task_repository,
)
from misekitchen.repositories.user_repository import user_repository
from misekitchen.schemas.shift import (
    CalculatedMiseResponse,
    ChecklistCompletionResponse,
    ChecklistHistoryEntry,
    ChecklistHistoryResponse,
    ChecklistHistoryStats,
    CloseShiftResponse,
    EligibleEmployeeResponse,
    MiseSuggestion,
    ShiftCreate,
    ShiftReportResponse,
    ShiftResponse,
    ShiftTaskResponse,
    SignChecklistResponse,
)
from misekitchen.services.checklist_catalog import checklist_catalog
from misekitchen.services.gamification_service import gamification_service
from misekitchen.services.stock_ledger import stock_ledger
from misekitchen.utils.exceptions import (
    ConflictError,
    InsufficientResourceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from misekitchen.utils.logging import get_logger
from misekitchen.utils.password import verify_password

logger = get_logger(__name__)


class ShiftService:
    """교대 생명주기 비즈니스 로직 (ShiftLifecycle)."""

    # === 변환 (Conversions) ===

    def _task_response(self, task: ShiftTask) -> ShiftTaskResponse:
        return ShiftTaskResponse(
            id=str(task.id),
            shift_id=str(task.shift_id),
            task_name=task.task_name,
            category=task.category,
            position=task.position,
            completed=task.completed,
            completed_at=task.completed_at,
        )

    def to_response(self, shift: Shift, mise_rows: list[ShiftMisePlace] | None = None) -> ShiftResponse:
        """교대 모델을 응답 스키마로 변환합니다.

        Convert a Shift with its tasks and mise en place rows. ``mise_rows``
        overrides the relationship when the caller holds a sorted list.
        """
        rows = mise_rows if mise_rows is not None else shift.mise_en_place
        return ShiftResponse(
            id=str(shift.id),
            date=shift.shift_date,
            type=shift.type,
            employee_name=shift.employee_name,
            start_time=shift.start_time,
            end_time=shift.end_time,
            status=shift.status,
            checklist_signed=shift.checklist_signed,
            checklist_signed_by=shift.checklist_signed_by,
            checklist_signed_at=shift.checklist_signed_at,
            checklist_version=shift.checklist_version,
            tasks=[self._task_response(t) for t in shift.tasks],
            mise_en_place=[stock_ledger.mise_response(r) for r in rows],
        )

    def _completion_response(self, completion: ShiftChecklistCompletion) -> ChecklistCompletionResponse:
        return ChecklistCompletionResponse(
            id=str(completion.id),
            shift_id=str(completion.shift_id),
            employee_name=completion.employee_name,
            total_tasks=completion.total_tasks,
            completed_tasks=completion.completed_tasks,
            completion_percentage=completion.completion_percentage,
            signed_by=completion.signed_by,
            signed_at=completion.signed_at,
        )

    def _report_response(self, report: ShiftReport, shift: Shift) -> ShiftReportResponse:
        return ShiftReportResponse(
            id=str(report.id),
            shift_id=str(report.shift_id),
            date=shift.shift_date,
            shift_type=shift.type,
            employee_name=shift.employee_name,
            total_sales=report.total_sales,
            sale_count=report.sale_count,
            ingredients_used=report.ingredients_used,
            alerts_generated=report.alerts_generated,
            checklist_completion=report.checklist_completion,
            closed_by=report.closed_by,
            closed_at=report.closed_at,
        )

    async def _get_shift(self, db: AsyncSession, shift_id: UUID) -> Shift:
        shift: Shift | None = await shift_repository.get_by_id(db, shift_id)
        if shift is None:
            raise NotFoundError("Shift not found", code="shift_not_found")
        return shift

    async def _reload(self, db: AsyncSession, shift: Shift) -> Shift:
        # 관계 컬렉션까지 다시 로드 — reload tasks and mise en place with the row
        await db.refresh(shift, attribute_names=["tasks", "mise_en_place"])
        return shift

    # === 시작 (Open) ===

    async def open_shift(self, db: AsyncSession, data: ShiftCreate) -> ShiftResponse:
        """교대를 시작합니다.

        Open a shift: seed the checklist from the active catalog version,
        write the mise en place rows (initial = current = quantity) and point
        the kitchen state at the new shift.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 교대 시작 요청 (Shift open request)

        Returns:
            ShiftResponse: 생성된 교대 (Opened shift with tasks and mise en place)

        Raises:
            ConflictError: 이미 열린 교대가 있을 때 (shift_already_open)
            ValidationError: 미장플라스 재료 중복 (Duplicate mise en place ingredient)
            NotFoundError: 미장플라스 재료가 없을 때 (Unknown ingredient)
        """
        state = await kitchen_state_repository.get_state(db)
        if state.current_shift_id is not None or await shift_repository.get_open(db) is not None:
            raise ConflictError("A shift is already open", code="shift_already_open")

        ingredient_ids: list[UUID] = [item.ingredient_id for item in data.mise_en_place]
        if len(set(ingredient_ids)) != len(ingredient_ids):
            raise ValidationError("An ingredient appears twice in the mise en place", code="duplicate_ingredient")
        ingredients = await ingredient_repository.get_many(db, ingredient_ids)
        unknown: list[str] = [str(i) for i in ingredient_ids if i not in ingredients]
        if unknown:
            raise NotFoundError("Unknown ingredients", code="ingredient_not_found", names=unknown)

        checklist = checklist_catalog.get()
        shift = Shift(
            shift_date=data.date,
            type=data.type,
            employee_name=data.employee_name.strip(),
            status=SHIFT_OPEN,
            checklist_version=checklist.version,
        )
        shift.tasks = [
            ShiftTask(task_name=item.name, category=item.category, position=item.position)
            for item in checklist.items
        ]
        shift.mise_en_place = [
            ShiftMisePlace(
                ingredient=ingredients[item.ingredient_id],
                initial_quantity=item.quantity,
                current_quantity=item.quantity,
                unit=item.unit or ingredients[item.ingredient_id].unit,
            )
            for item in data.mise_en_place
        ]
        db.add(shift)
        try:
            await db.flush()
        except IntegrityError as exc:
            # 부분 고유 인덱스 — partial unique index on open shifts
            raise ConflictError("A shift is already open", code="shift_already_open") from exc

        state.current_shift_id = shift.id
        await db.flush()

        shift = await self._reload(db, shift)
        rows = await shift_mise_repository.list_for_shift(db, shift.id)
        response = self.to_response(shift, rows)
        queue_event(db, event_types.SHIFT_OPENED, response.model_dump(mode="json"))
        logger.info(
            "Shift opened",
            extra={"data": {
                "shift_id": response.id,
                "type": shift.type,
                "employee": shift.employee_name,
                "tasks": len(shift.tasks),
                "mise_en_place": len(rows),
            }},
        )
        return response

    # === 체크리스트 (Checklist) ===

    async def set_task_completed(
        self, db: AsyncSession, shift_id: UUID, task_id: UUID, completed: bool,
    ) -> ShiftTaskResponse:
        """체크리스트 항목의 완료 여부를 설정합니다.

        Set a checklist task's completed flag, stamping or clearing completed_at.

        Raises:
            NotFoundError: 교대/항목이 없을 때 (Shift or task absent)
            ConflictError: 이미 마감된 교대 (already_closed)
        """
        shift: Shift = await self._get_shift(db, shift_id)
        if shift.status == SHIFT_CLOSED:
            raise ConflictError("Shift is already closed", code="already_closed")

        task: ShiftTask | None = await shift_task_repository.get_for_shift(db, shift_id, task_id)
        if task is None:
            raise NotFoundError("Task not found", code="task_not_found")

        task = await shift_task_repository.update(
            db, task, {"completed": completed, "completed_at": datetime.now(timezone.utc) if completed else None},
        )
        response = self._task_response(task)
        queue_event(db, event_types.TASK_UPDATED, response.model_dump(mode="json"))
        return response

    async def sign_checklist(self, db: AsyncSession, shift_id: UUID, rut: str, password: str) -> SignChecklistResponse:
        """셰프가 체크리스트에 서명합니다.

        Record a chef's signature on a fully completed checklist and persist
        the completion snapshot used for reward eligibility.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            shift_id: 교대 ID (Shift UUID)
            rut: 셰프 RUT (Chef national id)
            password: 셰프 비밀번호 (Chef password)

        Returns:
            SignChecklistResponse: 서명된 교대와 스냅샷 (Signed shift plus snapshot)

        Raises:
            ValidationError: 자격 증명 누락 또는 미완료 항목 (incomplete_tasks, names)
            UnauthorizedError: 활성 셰프가 아니거나 비밀번호 불일치
            NotFoundError: 교대가 없을 때
            ConflictError: 이미 서명됨 (already_signed)
        """
        if not rut or not password:
            raise ValidationError("RUT and password are required", code="missing_credentials")

        user: User | None = await user_repository.get_by_rut(db, rut)
        if (
            user is None
            or not user.is_active
            or user.role != ROLE_CHEF
            or not verify_password(password, user.password_hash)
        ):
            logger.warning("Checklist signature rejected", extra={"data": {"shift_id": str(shift_id)}})
            raise UnauthorizedError("Invalid credentials or not a chef")

        shift: Shift = await self._get_shift(db, shift_id)
        if shift.checklist_signed:
            raise ConflictError("Checklist is already signed", code="already_signed")

        tasks: list[ShiftTask] = await shift_task_repository.list_for_shift(db, shift_id)
        incomplete: list[str] = [t.task_name for t in tasks if not t.completed]
        if incomplete:
            raise ValidationError(
                "Checklist has incomplete tasks", code="incomplete_tasks", names=incomplete,
            )

        total: int = len(tasks)
        completed: int = total - len(incomplete)
        now = datetime.now(timezone.utc)
        shift = await shift_repository.update(
            db, shift, {"checklist_signed": True, "checklist_signed_by": user.name, "checklist_signed_at": now},
        )
        completion: ShiftChecklistCompletion = await checklist_completion_repository.create(
            db,
            {
                "shift_id": shift.id,
                "employee_name": shift.employee_name,
                "total_tasks": total,
                "completed_tasks": completed,
                "completion_percentage": round(completed / total * 100) if total else 0,
                "signed_by": user.name,
                "signed_at": now,
            },
        )

        shift = await self._reload(db, shift)
        response = SignChecklistResponse(shift=self.to_response(shift), completion=self._completion_response(completion))
        queue_event(db, event_types.CHECKLIST_SIGNED, response.shift.model_dump(mode="json"))
        logger.info(
            "Checklist signed",
            extra={"data": {"shift_id": str(shift.id), "signed_by": user.name, "percentage": completion.completion_percentage}},
        )
        return response

    # === 마감 (Close) ===

    async def close_shift(self, db: AsyncSession, shift_id: UUID, closed_by: str) -> CloseShiftResponse:
        """교대를 마감합니다.

        Close a shift. Every mise en place row must be at or above the
        kitchen's min_close_percentage. Success writes exactly one report,
        clears the kitchen state and credits the week's task counters.

        Steps:
            1. 검증 (closed_by, shift exists and is open)
            2. 미장플라스 최소 비율 확인 (Mise en place gate)
            3. 보고서 작성 (Report: sales, usage, alerts, checklist snapshot)
            4. 주간 성과 누적 (Weekly accumulation)

        Raises:
            ValidationError: closed_by 누락
            NotFoundError: 교대가 없을 때
            ConflictError: 이미 마감됨 (already_closed)
            InsufficientResourceError: 미장플라스 부족 (insufficient_mise_en_place, items)
        """
        if not closed_by or not closed_by.strip():
            raise ValidationError("closed_by is required", code="missing_closed_by")
        closed_by = closed_by.strip()

        shift: Shift = await self._get_shift(db, shift_id)
        if shift.status == SHIFT_CLOSED:
            raise ConflictError("Shift is already closed", code="already_closed")

        kitchen_settings = await kitchen_settings_repository.get_settings(db)
        rows: list[ShiftMisePlace] = await shift_mise_repository.list_for_shift(db, shift.id)
        insufficient: list[dict[str, Any]] = [
            {
                "name": row.ingredient.name,
                "percentage": round(row.percentage),
                "current": row.current_quantity,
                "initial": row.initial_quantity,
                "unit": row.unit,
            }
            for row in rows
            if row.percentage < kitchen_settings.min_close_percentage
        ]
        if insufficient:
            logger.info(
                "Shift close blocked by mise en place",
                extra={"data": {"shift_id": str(shift.id), "items": [i["name"] for i in insufficient]}},
            )
            raise InsufficientResourceError(
                f"Mise en place must be at least {kitchen_settings.min_close_percentage}% to close",
                code="insufficient_mise_en_place",
                items=insufficient,
                min_percentage=kitchen_settings.min_close_percentage,
            )

        units_sold, sale_count = await sale_repository.totals_for_shift(db, shift.id)
        ingredients_used: list[dict[str, Any]] = [
            {
                "ingredient_id": str(row.ingredient_id),
                "name": row.ingredient.name,
                "used_quantity": row.initial_quantity - row.current_quantity,
                "unit": row.unit,
            }
            for row in rows
            if row.initial_quantity - row.current_quantity > 0
        ]
        alerts_generated: int = await alert_repository.count_since(db, shift.start_time)
        completion = await checklist_completion_repository.latest_for_shift(db, shift.id)

        now = datetime.now(timezone.utc)
        shift = await shift_repository.update(db, shift, {"status": SHIFT_CLOSED, "end_time": now})
        report: ShiftReport = await shift_report_repository.create(
            db,
            {
                "shift_id": shift.id,
                "total_sales": units_sold,
                "sale_count": sale_count,
                "ingredients_used": ingredients_used,
                "alerts_generated": alerts_generated,
                "checklist_completion": (
                    self._completion_response(completion).model_dump(mode="json") if completion else None
                ),
                "closed_by": closed_by,
                "closed_at": now,
            },
        )

        state = await kitchen_state_repository.get_state(db)
        if state.current_shift_id == shift.id:
            state.current_shift_id = None
            await db.flush()

        tasks: list[ShiftTask] = await shift_task_repository.list_for_shift(db, shift.id)
        await gamification_service.accumulate_week(
            db, shift.employee_name, sum(1 for t in tasks if t.completed), len(tasks),
        )

        shift = await self._reload(db, shift)
        response = CloseShiftResponse(shift=self.to_response(shift, rows), report=self._report_response(report, shift))
        queue_event(db, event_types.SHIFT_CLOSED, response.model_dump(mode="json"))
        logger.info(
            "Shift closed",
            extra={"data": {
                "shift_id": str(shift.id),
                "closed_by": closed_by,
                "units_sold": units_sold,
                "alerts": alerts_generated,
            }},
        )
        return response

    # === 조회 (Reads) ===

    async def get_current_shift(self, db: AsyncSession) -> ShiftResponse | None:
        """현재 열린 교대 (The open shift, or None)."""
        state = await kitchen_state_repository.get_state(db)
        if state.current_shift_id is None:
            return None
        shift: Shift | None = await shift_repository.get_by_id(db, state.current_shift_id)
        if shift is None:
            return None
        rows = await shift_mise_repository.list_for_shift(db, shift.id)
        return self.to_response(shift, rows)

    async def get_shift(self, db: AsyncSession, shift_id: UUID) -> ShiftResponse:
        """교대 상세 (Shift detail)."""
        shift: Shift = await self._get_shift(db, shift_id)
        rows = await shift_mise_repository.list_for_shift(db, shift.id)
        return self.to_response(shift, rows)

    async def list_shifts(
        self, db: AsyncSession, shift_date: date | None = None, status: str | None = None,
    ) -> list[ShiftResponse]:
        """교대 목록 (Shifts, newest first)."""
        shifts: list[Shift] = await shift_repository.list_shifts(db, shift_date, status)
        return [self.to_response(s) for s in shifts]

    async def get_report(self, db: AsyncSession, shift_id: UUID) -> ShiftReportResponse:
        """교대 마감 보고서.

        Raises:
            NotFoundError: 교대 또는 보고서가 없을 때 (Shift absent or not closed)
        """
        shift: Shift = await self._get_shift(db, shift_id)
        report: ShiftReport | None = await shift_report_repository.get_by_shift(db, shift_id)
        if report is None:
            raise NotFoundError("Report not found", code="report_not_found")
        return self._report_response(report, shift)

    async def calculate_mise_en_place(self, db: AsyncSession) -> CalculatedMiseResponse:
        """권장 초기 미장플라스를 계산합니다.

        Suggest initial prep quantities: every active pizza recipe line
        contributes quantity * base_pizza_count / number_of_lines, summed per
        ingredient.
        """
        kitchen_settings = await kitchen_settings_repository.get_settings(db)
        base_count: int = kitchen_settings.base_pizza_count

        lines = [line for recipe in await recipe_repository.list_filtered(db, "pizza", True) for line in recipe.ingredients]
        totals: dict[UUID, float] = defaultdict(float)
        meta: dict[UUID, MiseSuggestion] = {}
        for line in lines:
            totals[line.ingredient_id] += line.quantity * base_count / len(lines)
            meta.setdefault(
                line.ingredient_id,
                MiseSuggestion(
                    ingredient_id=str(line.ingredient_id),
                    ingredient_name=line.ingredient.name,
                    quantity=0,
                    unit=line.ingredient.unit,
                ),
            )

        suggestions: list[MiseSuggestion] = [
            suggestion.model_copy(update={"quantity": round(totals[ingredient_id], 2)})
            for ingredient_id, suggestion in meta.items()
        ]
        return CalculatedMiseResponse(base_pizza_count=base_count, mise_en_place=suggestions)

    async def checklist_history(self, db: AsyncSession, employee_name: str) -> ChecklistHistoryResponse:
        """직원의 체크리스트 서명 이력과 통계 (Signed checklists and reward eligibility)."""
        pairs = await checklist_completion_repository.history_for_employee(db, employee_name)
        stats = await checklist_completion_repository.stats_for_employee(db, employee_name)
        return ChecklistHistoryResponse(
            employee_name=employee_name,
            history=[
                ChecklistHistoryEntry(
                    completion=self._completion_response(completion),
                    date=shift.shift_date,
                    shift_type=shift.type,
                    start_time=shift.start_time,
                    end_time=shift.end_time,
                )
                for completion, shift in pairs
            ],
            stats=ChecklistHistoryStats(
                total_shifts=stats["total_shifts"],
                perfect_completions=stats["perfect_completions"],
                avg_completion=round(stats["avg_completion"]),
                is_eligible_for_rewards=stats["perfect_completions"] > 0,
            ),
        )

    async def eligible_employees(self, db: AsyncSession, shift_date: date | None = None) -> list[EligibleEmployeeResponse]:
        """100% 서명 교대가 있는 직원 (Employees with perfect signed shifts)."""
        rows = await checklist_completion_repository.eligible_employees(db, shift_date)
        return [EligibleEmployeeResponse(**row) for row in rows]


# 싱글턴 인스턴스 — Singleton instance
shift_service: ShiftService = ShiftService()
