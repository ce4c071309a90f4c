"""게이미피케이션 관련 Pydantic 응답 스키마 정의.

Gamification Pydantic response schema definitions.
"""

from datetime import date, datetime

from pydantic import BaseModel


class WeeklyAchievementResponse(BaseModel):
    """주간 성과 응답 (Weekly achievement with its completion rate)."""

    id: str
    week_start: date
    week_end: date
    employee_name: str
    tasks_completed: int
    total_tasks: int
    completion_rate: float
    premio: str | None = None
    rewards_calculated_at: datetime | None = None


class EmployeePointsResponse(BaseModel):
    """직원 포인트 응답 (Points, streaks and level)."""

    employee_name: str
    total_points: int
    current_streak: int
    longest_streak: int
    level: int


class BadgeResponse(BaseModel):
    """배지 응답 (Badge definition, with earned_at when owned)."""

    id: str
    name: str
    description: str
    icon: str
    requirement_type: str
    requirement_value: int
    points_value: int
    earned: bool = False
    earned_at: datetime | None = None


class RewardsHistoryResponse(BaseModel):
    """보상 이력 응답 (Awarded reward)."""

    id: str
    employee_name: str
    reward_title: str
    reward_description: str | None = None
    reward_icon: str | None = None
    points_earned: int
    reason: str
    week_start: date | None = None
    awarded_at: datetime


class RewardGrant(BaseModel):
    """주간 보상 지급 결과 (Reward granted for the week)."""

    employee_name: str
    premio: str
    completion_rate: float
    points_earned: int
    current_streak: int


class LevelUp(BaseModel):
    """레벨 상승 (Level reached after points were credited)."""

    employee_name: str
    new_level: int
    total_points: int


class BadgeGrant(BaseModel):
    """신규 배지 (Badges newly unlocked by one employee)."""

    employee_name: str
    badges: list[BadgeResponse]


class RewardsCalculationResponse(BaseModel):
    """주간 보상 계산 결과 (Outcome of a weekly rewards run)."""

    week_start: date
    rewards: list[RewardGrant]
    level_ups: list[LevelUp]
    new_badges: list[BadgeGrant]


class EmployeeWeeklyStats(BaseModel):
    """직원 누적 주간 통계 (Lifetime weekly aggregates)."""

    total_weeks: int
    total_tasks_completed: int
    total_tasks: int
    avg_completion_rate: float
    rewards_earned: int


class EmployeeStatsResponse(BaseModel):
    """직원 게이미피케이션 통계 (Employee stats, points and badges)."""

    employee_name: str
    stats: EmployeeWeeklyStats
    recent_weeks: list[WeeklyAchievementResponse]
    points: EmployeePointsResponse
    badges: list[BadgeResponse]


class LeaderboardEntry(BaseModel):
    """포인트 순위 항목 (Leaderboard row)."""

    rank: int
    employee_name: str
    total_points: int
    level: int
    current_streak: int
    longest_streak: int
