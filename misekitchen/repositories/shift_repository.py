"""교대 레포지토리 — 교대, 체크리스트, 미장플라스, 보고서, 주방 상태 쿼리.

Shift Repository — queries for shifts, their tasks and mise en place rows,
checklist completions, reports, and the kitchen state/settings singletons.
"""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Select, and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.config import settings
from misekitchen.models.inventory import Ingredient
from misekitchen.models.shift import (
    SHIFT_CLOSED,
    SHIFT_OPEN,
    KitchenSettings,
    KitchenState,
    Shift,
    ShiftChecklistCompletion,
    ShiftMisePlace,
    ShiftReport,
    ShiftTask,
)
from misekitchen.repositories.base import BaseRepository

# 단일 행 테이블 ID — Singleton row id
SINGLETON_ID: int = 1


class ShiftRepository(BaseRepository[Shift]):
    """교대 테이블 레포지토리 (Repository for the shifts table)."""

    def __init__(self) -> None:
        super().__init__(Shift)

    async def get_open(self, db: AsyncSession) -> Shift | None:
        """status='open'인 교대를 조회합니다 (The open shift, if any)."""
        query: Select = select(Shift).where(Shift.status == SHIFT_OPEN).limit(1)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_shifts(
        self,
        db: AsyncSession,
        shift_date: date | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[Shift]:
        """날짜/상태로 교대 목록을 조회합니다 — 최신순.

        List shifts, newest start first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            shift_date: 영업일 필터 (Business date filter)
            status: 상태 필터 (open | closed)
            limit: 최대 개수 (Maximum rows)

        Returns:
            list[Shift]: 교대 목록 (Shifts with tasks and mise en place)
        """
        query: Select = select(Shift)
        if shift_date is not None:
            query = query.where(Shift.shift_date == shift_date)
        if status is not None:
            query = query.where(Shift.status == status)
        query = query.order_by(Shift.start_time.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_closed_by_employee(self, db: AsyncSession, employee_name: str) -> int:
        """직원이 담당한 마감 교대 수 (Closed shifts run by an employee)."""
        query: Select = (
            select(func.count())
            .select_from(Shift)
            .where(Shift.employee_name == employee_name, Shift.status == SHIFT_CLOSED)
        )
        return (await db.execute(query)).scalar() or 0


class ShiftTaskRepository(BaseRepository[ShiftTask]):
    """교대 체크리스트 항목 레포지토리 (Repository for shift checklist tasks)."""

    def __init__(self) -> None:
        super().__init__(ShiftTask)

    async def get_for_shift(self, db: AsyncSession, shift_id: UUID, task_id: UUID) -> ShiftTask | None:
        """교대에 속한 항목을 조회합니다 (A task, only if it belongs to the shift)."""
        query: Select = select(ShiftTask).where(ShiftTask.id == task_id, ShiftTask.shift_id == shift_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_shift(self, db: AsyncSession, shift_id: UUID) -> list[ShiftTask]:
        """교대의 항목 목록 — 체크리스트 순서 (Tasks in checklist order)."""
        query: Select = select(ShiftTask).where(ShiftTask.shift_id == shift_id).order_by(ShiftTask.position)
        result = await db.execute(query)
        return list(result.scalars().all())


class ShiftMisePlaceRepository(BaseRepository[ShiftMisePlace]):
    """교대 미장플라스 레포지토리 (Repository for per-shift mise en place rows)."""

    def __init__(self) -> None:
        super().__init__(ShiftMisePlace)

    async def get_row(self, db: AsyncSession, shift_id: UUID, ingredient_id: UUID) -> ShiftMisePlace | None:
        """(교대, 재료) 행을 조회합니다 (The row for one ingredient in one shift)."""
        query: Select = select(ShiftMisePlace).where(
            ShiftMisePlace.shift_id == shift_id,
            ShiftMisePlace.ingredient_id == ingredient_id,
        )
        result = await db.execute(query)
        return result.unique().scalar_one_or_none()

    async def list_for_shift(self, db: AsyncSession, shift_id: UUID) -> list[ShiftMisePlace]:
        """교대의 미장플라스 목록 — 카테고리, 이름순 (Rows ordered by category and name)."""
        query: Select = (
            select(ShiftMisePlace)
            .join(Ingredient, ShiftMisePlace.ingredient_id == Ingredient.id)
            .where(ShiftMisePlace.shift_id == shift_id)
            .order_by(Ingredient.category, Ingredient.name)
        )
        result = await db.execute(query)
        return list(result.unique().scalars().all())


class ChecklistCompletionRepository(BaseRepository[ShiftChecklistCompletion]):
    """체크리스트 완료 스냅샷 레포지토리 (Repository for checklist completion snapshots)."""

    def __init__(self) -> None:
        super().__init__(ShiftChecklistCompletion)

    async def latest_for_shift(self, db: AsyncSession, shift_id: UUID) -> ShiftChecklistCompletion | None:
        """교대의 최신 스냅샷 (Most recent snapshot of a shift)."""
        query: Select = (
            select(ShiftChecklistCompletion)
            .where(ShiftChecklistCompletion.shift_id == shift_id)
            .order_by(ShiftChecklistCompletion.signed_at.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def history_for_employee(
        self, db: AsyncSession, employee_name: str, limit: int = 30,
    ) -> list[tuple[ShiftChecklistCompletion, Shift]]:
        """직원의 서명 이력과 해당 교대 (Signed snapshots with their shift, newest first)."""
        query: Select = (
            select(ShiftChecklistCompletion, Shift)
            .join(Shift, ShiftChecklistCompletion.shift_id == Shift.id)
            .where(ShiftChecklistCompletion.employee_name == employee_name)
            .order_by(ShiftChecklistCompletion.signed_at.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def stats_for_employee(self, db: AsyncSession, employee_name: str) -> dict[str, Any]:
        """직원의 서명 통계 — 총 교대 수, 100% 횟수, 평균 완료율.

        Aggregate signed-checklist stats for an employee.
        """
        query: Select = select(
            func.count(ShiftChecklistCompletion.id),
            func.sum(case((ShiftChecklistCompletion.completion_percentage == 100, 1), else_=0)),
            func.avg(ShiftChecklistCompletion.completion_percentage),
        ).where(ShiftChecklistCompletion.employee_name == employee_name)
        total, perfect, average = (await db.execute(query)).one()
        return {
            "total_shifts": total or 0,
            "perfect_completions": perfect or 0,
            "avg_completion": average or 0,
        }

    async def eligible_employees(self, db: AsyncSession, shift_date: date | None = None) -> list[dict[str, Any]]:
        """100% 완료 교대가 있는 직원 목록 (Employees with perfect signed shifts)."""
        query: Select = select(
            ShiftChecklistCompletion.employee_name,
            func.count(ShiftChecklistCompletion.id).label("perfect_shifts"),
            func.avg(ShiftChecklistCompletion.completion_percentage).label("avg_completion"),
        ).where(ShiftChecklistCompletion.completion_percentage == 100)
        if shift_date is not None:
            query = query.join(
                Shift, and_(Shift.id == ShiftChecklistCompletion.shift_id, Shift.shift_date == shift_date)
            )
        query = (
            query.group_by(ShiftChecklistCompletion.employee_name)
            .order_by(func.count(ShiftChecklistCompletion.id).desc())
        )
        result = await db.execute(query)
        return [
            {"employee_name": name, "perfect_shifts": count, "avg_completion": float(avg or 0)}
            for name, count, avg in result.all()
        ]


class ShiftReportRepository(BaseRepository[ShiftReport]):
    """마감 보고서 레포지토리 (Repository for shift reports)."""

    def __init__(self) -> None:
        super().__init__(ShiftReport)

    async def get_by_shift(self, db: AsyncSession, shift_id: UUID) -> ShiftReport | None:
        """교대의 보고서 (The report of a shift)."""
        result = await db.execute(select(ShiftReport).where(ShiftReport.shift_id == shift_id))
        return result.scalar_one_or_none()


class KitchenStateRepository(BaseRepository[KitchenState]):
    """주방 상태 단일 행 레포지토리 (Repository for the current-shift cell)."""

    def __init__(self) -> None:
        super().__init__(KitchenState)

    async def get_state(self, db: AsyncSession) -> KitchenState:
        """단일 행을 조회하고 없으면 생성합니다 (Load the singleton row, creating it if absent)."""
        state: KitchenState | None = await db.get(KitchenState, SINGLETON_ID)
        if state is None:
            state = await self.create(db, {"id": SINGLETON_ID, "current_shift_id": None})
        return state


class KitchenSettingsRepository(BaseRepository[KitchenSettings]):
    """미장플라스 설정 단일 행 레포지토리 (Repository for mise en place settings)."""

    def __init__(self) -> None:
        super().__init__(KitchenSettings)

    async def get_settings(self, db: AsyncSession) -> KitchenSettings:
        """설정 행을 조회하고 없으면 기본값으로 생성합니다.

        Load the settings row; a missing row is created with defaults, the
        close threshold taken from MIN_CLOSE_PERCENTAGE.
        """
        kitchen_settings: KitchenSettings | None = await db.get(KitchenSettings, SINGLETON_ID)
        if kitchen_settings is None:
            kitchen_settings = await self.create(
                db, {"id": SINGLETON_ID, "min_close_percentage": settings.MIN_CLOSE_PERCENTAGE},
            )
        return kitchen_settings


# 싱글턴 인스턴스 — Singleton instances
shift_repository: ShiftRepository = ShiftRepository()
shift_task_repository: ShiftTaskRepository = ShiftTaskRepository()
shift_mise_repository: ShiftMisePlaceRepository = ShiftMisePlaceRepository()
checklist_completion_repository: ChecklistCompletionRepository = ChecklistCompletionRepository()
shift_report_repository: ShiftReportRepository = ShiftReportRepository()
kitchen_state_repository: KitchenStateRepository = KitchenStateRepository()
kitchen_settings_repository: KitchenSettingsRepository = KitchenSettingsRepository()
