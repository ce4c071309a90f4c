"""게이미피케이션 레포지토리 — 주간 성과, 포인트, 배지, 보상 이력 쿼리.

Gamification Repository — weekly achievements, points, badges and reward history.
"""

from datetime import date
from typing import Any

from sqlalchemy import Select, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.gamification import (
    Badge,
    EmployeeBadge,
    EmployeePoints,
    RewardsHistory,
    WeeklyAchievement,
)
from misekitchen.repositories.base import BaseRepository


class WeeklyAchievementRepository(BaseRepository[WeeklyAchievement]):
    """주간 성과 레포지토리 (Repository for weekly achievements)."""

    def __init__(self) -> None:
        super().__init__(WeeklyAchievement)

    async def get_for_week(self, db: AsyncSession, week_start: date, employee_name: str) -> WeeklyAchievement | None:
        """(주 시작일, 직원) 행을 조회합니다 (The row for one employee in one week)."""
        query: Select = select(WeeklyAchievement).where(
            WeeklyAchievement.week_start == week_start,
            WeeklyAchievement.employee_name == employee_name,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_week(self, db: AsyncSession, week_start: date) -> list[WeeklyAchievement]:
        """주간 성과 목록 — 완료 작업 수 내림차순 (Rows of a week, most tasks first)."""
        query: Select = (
            select(WeeklyAchievement)
            .where(WeeklyAchievement.week_start == week_start)
            .order_by(WeeklyAchievement.tasks_completed.desc(), WeeklyAchievement.employee_name)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_for_employee(self, db: AsyncSession, employee_name: str, limit: int = 12) -> list[WeeklyAchievement]:
        """직원의 주간 성과 — 최신 주 우선 (An employee's weeks, newest first)."""
        query: Select = (
            select(WeeklyAchievement)
            .where(WeeklyAchievement.employee_name == employee_name)
            .order_by(WeeklyAchievement.week_start.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def lifetime_stats(self, db: AsyncSession, employee_name: str) -> dict[str, Any]:
        """직원의 누적 주간 성과 — 통계 화면과 배지 판정용.

        Lifetime weekly aggregates: weeks tracked, completed and total tasks,
        average weekly completion rate, weeks with a reward and perfect weeks.
        """
        rate = WeeklyAchievement.tasks_completed * 100.0 / WeeklyAchievement.total_tasks
        query: Select = select(
            func.count(WeeklyAchievement.id),
            func.coalesce(func.sum(WeeklyAchievement.tasks_completed), 0),
            func.coalesce(func.sum(WeeklyAchievement.total_tasks), 0),
            func.avg(rate),
            func.count(WeeklyAchievement.premio),
            func.sum(case((WeeklyAchievement.tasks_completed == WeeklyAchievement.total_tasks, 1), else_=0)),
        ).where(WeeklyAchievement.employee_name == employee_name, WeeklyAchievement.total_tasks > 0)
        weeks, completed, total, avg_rate, rewards_count, perfect_weeks = (await db.execute(query)).one()
        return {
            "total_weeks": int(weeks or 0),
            "tasks_completed": int(completed or 0),
            "total_tasks": int(total or 0),
            "avg_completion_rate": float(avg_rate or 0),
            "rewards_count": int(rewards_count or 0),
            "perfect_weeks": int(perfect_weeks or 0),
        }


class EmployeePointsRepository(BaseRepository[EmployeePoints]):
    """직원 포인트 레포지토리 (Repository for employee points)."""

    def __init__(self) -> None:
        super().__init__(EmployeePoints)

    async def get_by_employee(self, db: AsyncSession, employee_name: str) -> EmployeePoints | None:
        """직원 포인트 행 (Points row of an employee)."""
        result = await db.execute(select(EmployeePoints).where(EmployeePoints.employee_name == employee_name))
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, employee_name: str) -> EmployeePoints:
        """직원 포인트 행을 조회하고 없으면 0으로 생성 (Load or create a zeroed row)."""
        points: EmployeePoints | None = await self.get_by_employee(db, employee_name)
        if points is None:
            points = await self.create(
                db,
                {"employee_name": employee_name, "total_points": 0, "current_streak": 0, "longest_streak": 0, "level": 1},
            )
        return points

    async def leaderboard(self, db: AsyncSession, limit: int = 10) -> list[EmployeePoints]:
        """포인트 순위 (Employees by total points, then level)."""
        query: Select = (
            select(EmployeePoints)
            .order_by(EmployeePoints.total_points.desc(), EmployeePoints.level.desc(), EmployeePoints.employee_name)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


class BadgeRepository(BaseRepository[Badge]):
    """배지 정의 레포지토리 (Repository for badge definitions)."""

    def __init__(self) -> None:
        super().__init__(Badge)

    async def list_active(self, db: AsyncSession) -> list[Badge]:
        """활성 배지 목록 (Active badges)."""
        result = await db.execute(select(Badge).where(Badge.active.is_(True)).order_by(Badge.points_value))
        return list(result.scalars().all())


class EmployeeBadgeRepository(BaseRepository[EmployeeBadge]):
    """획득 배지 레포지토리 (Repository for unlocked badges)."""

    def __init__(self) -> None:
        super().__init__(EmployeeBadge)

    async def list_for_employee(self, db: AsyncSession, employee_name: str) -> list[EmployeeBadge]:
        """직원의 획득 배지 — 최신순 (Unlocked badges, newest first)."""
        query: Select = (
            select(EmployeeBadge)
            .where(EmployeeBadge.employee_name == employee_name)
            .order_by(EmployeeBadge.earned_at.desc())
        )
        result = await db.execute(query)
        return list(result.unique().scalars().all())


class RewardsHistoryRepository(BaseRepository[RewardsHistory]):
    """보상 이력 레포지토리 (Repository for the rewards history)."""

    def __init__(self) -> None:
        super().__init__(RewardsHistory)

    async def list_for_employee(self, db: AsyncSession, employee_name: str, limit: int = 20) -> list[RewardsHistory]:
        """직원의 보상 이력 — 최신순 (Awarded rewards, newest first)."""
        query: Select = (
            select(RewardsHistory)
            .where(RewardsHistory.employee_name == employee_name)
            .order_by(RewardsHistory.awarded_at.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instances
weekly_achievement_repository: WeeklyAchievementRepository = WeeklyAchievementRepository()
employee_points_repository: EmployeePointsRepository = EmployeePointsRepository()
badge_repository: BadgeRepository = BadgeRepository()
employee_badge_repository: EmployeeBadgeRepository = EmployeeBadgeRepository()
rewards_history_repository: RewardsHistoryRepository = RewardsHistoryRepository()
