"""게이미피케이션 서비스 — 주간 성과, 포인트, 연속 기록, 레벨, 배지.

Gamification Service — GamificationEngine. Shift closes accumulate weekly
task counters; a rewards run turns the current week's counters into a
premio, points, streaks, levels and badges.

Business week:
    화요일 시작, 토요일 종료 (Tuesday to Saturday), computed from the business
    date in settings.TIMEZONE.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.config import settings
from misekitchen.events import event_types
from misekitchen.events.broker import queue_event
from misekitchen.models.gamification import (
    REQ_COMPLETION_RATE,
    REQ_PERFECT_WEEKS,
    REQ_REWARDS_COUNT,
    REQ_STREAK,
    REQ_TOTAL_SHIFTS,
    REQ_TOTAL_TASKS,
    Badge,
    EmployeeBadge,
    EmployeePoints,
    RewardsHistory,
    WeeklyAchievement,
)
from misekitchen.repositories.gamification_repository import (
    badge_repository,
    employee_badge_repository,
    employee_points_repository,
    rewards_history_repository,
    weekly_achievement_repository,
)
from misekitchen.repositories.shift_repository import shift_repository
from misekitchen.schemas.gamification import (
    BadgeGrant,
    BadgeResponse,
    EmployeePointsResponse,
    EmployeeStatsResponse,
    EmployeeWeeklyStats,
    LeaderboardEntry,
    LevelUp,
    RewardGrant,
    RewardsCalculationResponse,
    RewardsHistoryResponse,
    WeeklyAchievementResponse,
)
from misekitchen.utils.logging import get_logger

logger = get_logger(__name__)

# 완료율 → 포인트 (Completion rate floor -> points), 높은 구간부터
POINTS_TABLE: tuple[tuple[float, int], ...] = (
    (100, 100),
    (95, 75),
    (90, 50),
    (80, 25),
    (70, 10),
)

# 누적 포인트 → 레벨 (Total points floor -> level), 높은 구간부터
LEVEL_THRESHOLDS: tuple[tuple[int, int], ...] = (
    (5000, 10),
    (4000, 9),
    (3000, 8),
    (2000, 7),
    (1500, 6),
    (1000, 5),
    (700, 4),
    (400, 3),
    (150, 2),
)

PERFECT_REWARD_ICON: str = "🍕"
SECONDARY_REWARD_ICON: str = "🍺"
SECONDARY_REWARD_MIN_RATE: float = 90

# 주 시작 요일 — Monday=0, so Tuesday=1
WEEK_START_WEEKDAY: int = 1
WEEK_LENGTH_DAYS: int = 4


def business_today() -> date:
    """설정된 시간대 기준 영업일 (Today's date in settings.TIMEZONE)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def week_bounds(today: date) -> tuple[date, date]:
    """영업주의 시작(화)과 끝(토).

    Business week containing ``today``: the most recent Tuesday on or before
    it, and the Saturday after that Tuesday.
    """
    start: date = today - timedelta(days=(today.weekday() - WEEK_START_WEEKDAY) % 7)
    return start, start + timedelta(days=WEEK_LENGTH_DAYS)


def calculate_points(completion_rate: float) -> int:
    """완료율에 따른 포인트 (Points earned for a weekly completion rate)."""
    for floor, points in POINTS_TABLE:
        if completion_rate >= floor:
            return points
    return 0


def calculate_level(total_points: int) -> int:
    """누적 포인트에 따른 레벨 (Level for a points total, 1..10)."""
    for floor, level in LEVEL_THRESHOLDS:
        if total_points >= floor:
            return level
    return 1


class GamificationService:
    """게이미피케이션 비즈니스 로직 (GamificationEngine)."""

    # === 변환 (Conversions) ===

    def _achievement_response(self, achievement: WeeklyAchievement) -> WeeklyAchievementResponse:
        return WeeklyAchievementResponse(
            id=str(achievement.id),
            week_start=achievement.week_start,
            week_end=achievement.week_end,
            employee_name=achievement.employee_name,
            tasks_completed=achievement.tasks_completed,
            total_tasks=achievement.total_tasks,
            completion_rate=round(achievement.completion_rate, 1),
            premio=achievement.premio,
            rewards_calculated_at=achievement.rewards_calculated_at,
        )

    def _points_response(self, points: EmployeePoints | None, employee_name: str) -> EmployeePointsResponse:
        if points is None:
            return EmployeePointsResponse(
                employee_name=employee_name, total_points=0, current_streak=0, longest_streak=0, level=1,
            )
        return EmployeePointsResponse(
            employee_name=points.employee_name,
            total_points=points.total_points,
            current_streak=points.current_streak,
            longest_streak=points.longest_streak,
            level=points.level,
        )

    def _badge_response(self, badge: Badge, earned_at: datetime | None = None) -> BadgeResponse:
        return BadgeResponse(
            id=str(badge.id),
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
            requirement_type=badge.requirement_type,
            requirement_value=badge.requirement_value,
            points_value=badge.points_value,
            earned=earned_at is not None,
            earned_at=earned_at,
        )

    # === 주간 누적 (Weekly accumulation) ===

    async def accumulate_week(
        self,
        db: AsyncSession,
        employee_name: str,
        completed: int,
        total: int,
        today: date | None = None,
    ) -> WeeklyAchievement:
        """교대 마감 시 주간 작업 카운터를 누적합니다.

        Add a closed shift's task counts to the employee's row for the
        current business week, creating the row on the first close. A row
        already processed by a rewards run is reopened so the next run
        accounts for the new counts.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            employee_name: 직원 이름 (Employee the shift belonged to)
            completed: 완료된 항목 수 (Tasks completed in the shift)
            total: 전체 항목 수 (Tasks in the shift)
            today: 영업일 (Business date; defaults to today in TIMEZONE)

        Returns:
            WeeklyAchievement: 갱신된 주간 성과 (Updated weekly row)
        """
        week_start, week_end = week_bounds(today or business_today())
        achievement: WeeklyAchievement | None = await weekly_achievement_repository.get_for_week(
            db, week_start, employee_name,
        )
        if achievement is None:
            return await weekly_achievement_repository.create(
                db,
                {
                    "week_start": week_start,
                    "week_end": week_end,
                    "employee_name": employee_name,
                    "tasks_completed": completed,
                    "total_tasks": total,
                },
            )
        update_data: dict[str, Any] = {
            "tasks_completed": achievement.tasks_completed + completed,
            "total_tasks": achievement.total_tasks + total,
        }
        if achievement.rewards_calculated_at is not None:
            update_data["rewards_calculated_at"] = None
            logger.info(
                "Processed week reopened by a shift close",
                extra={"data": {"employee": employee_name, "week_start": week_start.isoformat()}},
            )
        return await weekly_achievement_repository.update(db, achievement, update_data)

    # === 주간 보상 (Weekly rewards) ===

    async def _add_points(self, db: AsyncSession, points: EmployeePoints, amount: int) -> None:
        if amount <= 0:
            return
        points.total_points += amount
        points.level = calculate_level(points.total_points)
        await db.flush()

    async def _award_badges(self, db: AsyncSession, points: EmployeePoints) -> list[BadgeResponse]:
        """조건을 충족한 미획득 배지를 부여합니다.

        Award every active badge the employee qualifies for and does not
        own yet, crediting its bonus points.
        """
        owned: set = {eb.badge_id for eb in await employee_badge_repository.list_for_employee(db, points.employee_name)}
        stats: dict[str, Any] = await weekly_achievement_repository.lifetime_stats(db, points.employee_name)
        values: dict[str, float] = {
            REQ_COMPLETION_RATE: stats["avg_completion_rate"],
            REQ_STREAK: points.longest_streak,
            REQ_TOTAL_TASKS: stats["tasks_completed"],
            REQ_TOTAL_SHIFTS: await shift_repository.count_closed_by_employee(db, points.employee_name),
            REQ_REWARDS_COUNT: stats["rewards_count"],
            REQ_PERFECT_WEEKS: stats["perfect_weeks"],
        }

        earned: list[BadgeResponse] = []
        for badge in await badge_repository.list_active(db):
            if badge.id in owned or badge.requirement_type not in values:
                continue
            if values[badge.requirement_type] < badge.requirement_value:
                continue
            employee_badge: EmployeeBadge = await employee_badge_repository.create(
                db, {"employee_name": points.employee_name, "badge_id": badge.id},
            )
            await self._add_points(db, points, badge.points_value)
            earned.append(self._badge_response(badge, employee_badge.earned_at))
        return earned

    async def calculate_weekly_rewards(self, db: AsyncSession, today: date | None = None) -> RewardsCalculationResponse:
        """현재 주의 보상을 계산합니다.

        Process every achievement of the current week that has not been
        processed since its last change: premio, points, streak, level and
        badges. Processed rows are stamped with rewards_calculated_at, so a
        repeated run in the same week credits nothing twice. A row reopened by
        a later shift close is recomputed from its new totals: only points
        above those already credited are added, the streak is rebuilt from
        its value before the week, and the premio follows the new rate.

        Rules:
            - 100%: REWARD_PERFECT_TITLE, >= 90%: REWARD_SECONDARY_TITLE
            - Points 100/75/50/25/10/0 at 100/95/90/80/70/below
            - Streak +1 at >= STREAK_MIN_COMPLETION, else reset to 0

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            today: 영업일 (Business date; defaults to today in TIMEZONE)

        Returns:
            RewardsCalculationResponse: 보상, 레벨 상승, 신규 배지
                                        (Rewards, level-ups and new badges)
        """
        week_start, _ = week_bounds(today or business_today())
        achievements: list[WeeklyAchievement] = await weekly_achievement_repository.list_for_week(db, week_start)

        rewards: list[RewardGrant] = []
        level_ups: list[LevelUp] = []
        new_badges: list[BadgeGrant] = []
        now = datetime.now(timezone.utc)

        for achievement in achievements:
            if achievement.rewards_calculated_at is not None:
                continue

            rate: float = achievement.completion_rate
            perfect: bool = achievement.total_tasks > 0 and achievement.tasks_completed == achievement.total_tasks
            if perfect:
                rate = 100.0

            points: EmployeePoints = await employee_points_repository.get_or_create(db, achievement.employee_name)
            level_before: int = points.level
            if achievement.streak_before is None:
                achievement.streak_before = points.current_streak

            # 재계산 시 차액만 적립, 회수 없음 — a reprocessed week only adds the difference
            week_points: int = calculate_points(rate)
            earned_points: int = max(week_points - achievement.points_credited, 0)
            await self._add_points(db, points, earned_points)
            achievement.points_credited = max(achievement.points_credited, week_points)

            qualifies: bool = rate >= settings.STREAK_MIN_COMPLETION
            points.current_streak = achievement.streak_before + 1 if qualifies else 0
            points.longest_streak = max(points.longest_streak, points.current_streak)

            premio: str | None = None
            icon: str | None = None
            description: str | None = None
            if perfect:
                premio, icon, description = settings.REWARD_PERFECT_TITLE, PERFECT_REWARD_ICON, "100% of tasks completed"
            elif rate >= SECONDARY_REWARD_MIN_RATE:
                premio, icon, description = settings.REWARD_SECONDARY_TITLE, SECONDARY_REWARD_ICON, f"{rate:.1f}% of tasks completed"

            previous_premio: str | None = achievement.premio
            achievement.premio = premio
            achievement.rewards_calculated_at = now
            await db.flush()

            if premio is not None and premio != previous_premio:
                await rewards_history_repository.create(
                    db,
                    {
                        "employee_name": achievement.employee_name,
                        "reward_title": premio,
                        "reward_description": description,
                        "reward_icon": icon,
                        "points_earned": earned_points,
                        "reason": "Weekly reward",
                        "week_start": week_start,
                    },
                )
                rewards.append(
                    RewardGrant(
                        employee_name=achievement.employee_name,
                        premio=premio,
                        completion_rate=round(rate, 1),
                        points_earned=earned_points,
                        current_streak=points.current_streak,
                    )
                )

            badges: list[BadgeResponse] = await self._award_badges(db, points)
            if badges:
                new_badges.append(BadgeGrant(employee_name=achievement.employee_name, badges=badges))

            if points.level > level_before:
                level_ups.append(
                    LevelUp(employee_name=points.employee_name, new_level=points.level, total_points=points.total_points)
                )

        response = RewardsCalculationResponse(
            week_start=week_start, rewards=rewards, level_ups=level_ups, new_badges=new_badges,
        )
        payload: dict[str, Any] = response.model_dump(mode="json")
        queue_event(db, event_types.REWARDS_CALCULATED, {"week_start": payload["week_start"], "rewards": payload["rewards"]})
        if level_ups:
            queue_event(db, event_types.LEVEL_UP, {"level_ups": payload["level_ups"]})
        if new_badges:
            queue_event(db, event_types.BADGES_EARNED, {"new_badges": payload["new_badges"]})

        logger.info(
            "Weekly rewards calculated",
            extra={"data": {
                "week_start": week_start.isoformat(),
                "rewards": len(rewards),
                "level_ups": len(level_ups),
                "badges": sum(len(grant.badges) for grant in new_badges),
            }},
        )
        return response

    # === 조회 (Reads) ===

    async def current_week(self, db: AsyncSession, today: date | None = None) -> list[WeeklyAchievementResponse]:
        """현재 주의 성과 목록 (Achievements of the current business week)."""
        week_start, _ = week_bounds(today or business_today())
        achievements = await weekly_achievement_repository.list_for_week(db, week_start)
        return [self._achievement_response(a) for a in achievements]

    async def leaderboard(self, db: AsyncSession, limit: int = 10) -> list[LeaderboardEntry]:
        """포인트 순위표 (Leaderboard by total points)."""
        rows: list[EmployeePoints] = await employee_points_repository.leaderboard(db, limit)
        return [
            LeaderboardEntry(
                rank=index,
                employee_name=row.employee_name,
                total_points=row.total_points,
                level=row.level,
                current_streak=row.current_streak,
                longest_streak=row.longest_streak,
            )
            for index, row in enumerate(rows, start=1)
        ]

    async def employee_stats(self, db: AsyncSession, employee_name: str) -> EmployeeStatsResponse:
        """직원 통계 — 누적 성과, 최근 5주, 포인트, 배지.

        Employee stats: lifetime weekly aggregates, the five most recent
        weeks, points and unlocked badges. Unknown employees get zeroes.
        """
        stats = await weekly_achievement_repository.lifetime_stats(db, employee_name)
        recent = await weekly_achievement_repository.list_for_employee(db, employee_name, limit=5)
        points = await employee_points_repository.get_by_employee(db, employee_name)
        owned = await employee_badge_repository.list_for_employee(db, employee_name)
        return EmployeeStatsResponse(
            employee_name=employee_name,
            stats=EmployeeWeeklyStats(
                total_weeks=stats["total_weeks"],
                total_tasks_completed=stats["tasks_completed"],
                total_tasks=stats["total_tasks"],
                avg_completion_rate=round(stats["avg_completion_rate"], 1),
                rewards_earned=stats["rewards_count"],
            ),
            recent_weeks=[self._achievement_response(a) for a in recent],
            points=self._points_response(points, employee_name),
            badges=[self._badge_response(eb.badge, eb.earned_at) for eb in owned],
        )

    async def rewards_history(self, db: AsyncSession, employee_name: str, limit: int = 20) -> list[RewardsHistoryResponse]:
        """보상 이력 (Awarded rewards, newest first)."""
        rows: list[RewardsHistory] = await rewards_history_repository.list_for_employee(db, employee_name, limit)
        return [
            RewardsHistoryResponse(
                id=str(row.id),
                employee_name=row.employee_name,
                reward_title=row.reward_title,
                reward_description=row.reward_description,
                reward_icon=row.reward_icon,
                points_earned=row.points_earned,
                reason=row.reason,
                week_start=row.week_start,
                awarded_at=row.awarded_at,
            )
            for row in rows
        ]

    async def badges_for(self, db: AsyncSession, employee_name: str) -> list[BadgeResponse]:
        """활성 배지 전체와 직원의 획득 여부 (Every active badge, flagged when earned)."""
        earned_at: dict = {
            eb.badge_id: eb.earned_at for eb in await employee_badge_repository.list_for_employee(db, employee_name)
        }
        return [self._badge_response(b, earned_at.get(b.id)) for b in await badge_repository.list_active(db)]


# 싱글턴 인스턴스 — Singleton instance
gamification_service: GamificationService = GamificationService()
