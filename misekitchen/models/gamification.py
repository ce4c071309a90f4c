"""게이미피케이션 SQLAlchemy ORM 모델 정의.

Gamification SQLAlchemy ORM model definitions.
Weekly task-completion accumulators feed points, streaks, levels and badges.
Employees are keyed by name, the same value stamped on shifts.

Tables:
    - weekly_achievements: 주간 성과 (Per week/employee task counters)
    - employee_points: 직원 포인트 (Points, streaks and level)
    - badges: 배지 정의 (Badge catalogue)
    - employee_badges: 획득 배지 (Unlocked badges, one per employee/badge)
    - rewards_history: 보상 이력 (Append-only awarded rewards)
"""

import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, Boolean, Date, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from misekitchen.database import Base

# 배지 요구 조건 유형 — Badge requirement types
REQ_COMPLETION_RATE: str = "completion_rate"  # 평균 주간 완료율 (average weekly completion %)
REQ_STREAK: str = "streak"  # 최장 연속 주 (longest streak)
REQ_TOTAL_TASKS: str = "total_tasks"  # 누적 완료 작업 수 (lifetime completed tasks)
REQ_TOTAL_SHIFTS: str = "total_shifts"  # 마감한 교대 수 (closed shifts)
REQ_REWARDS_COUNT: str = "rewards_count"  # 받은 주간 보상 수 (weeks with a premio)
REQ_PERFECT_WEEKS: str = "perfect_weeks"  # 100% 주 수 (weeks at 100%)


class WeeklyAchievement(Base):
    """주간 성과 — 화요일~토요일 영업주 단위 누적.

    Weekly achievement — additive task counters for one business week
    (Tuesday to Saturday). Incremented on every shift close in that week;
    a close after a rewards run clears rewards_calculated_at so the next run
    reprocesses the row and credits only the points not yet credited.

    Constraints:
        uq_weekly_achievement: (week_start, employee_name) 고유
    """

    __tablename__ = "weekly_achievements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date] = mapped_column(Date, nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tasks_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    premio: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 이 주에 이미 적립한 포인트 — points already credited for this week
    points_credited: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # 첫 계산 직전의 연속 기록 — streak before this week was first processed
    streak_before: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # 보상 계산 완료 시각 — 미계산 변경이 없으면 재계산 건너뜀
    rewards_calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("week_start", "employee_name", name="uq_weekly_achievement"),
    )

    @property
    def completion_rate(self) -> float:
        """완료율 % (Completion rate, 0 when no tasks were tracked)."""
        if not self.total_tasks:
            return 0.0
        return self.tasks_completed / self.total_tasks * 100


class EmployeePoints(Base):
    """직원 포인트/연속 기록/레벨."""

    __tablename__ = "employee_points"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class Badge(Base):
    """배지 정의 — 수치 요구 조건 충족 시 영구 부여.

    Badge definition — awarded once when requirement_type reaches
    requirement_value; grants points_value bonus points.
    """

    __tablename__ = "badges"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[str] = mapped_column(String(20), nullable=False)
    requirement_type: Mapped[str] = mapped_column(String(30), nullable=False)
    requirement_value: Mapped[int] = mapped_column(Integer, nullable=False)
    points_value: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class EmployeeBadge(Base):
    """직원이 획득한 배지."""

    __tablename__ = "employee_badges"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    badge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("employee_name", "badge_id", name="uq_employee_badge"),
    )

    badge = relationship("Badge", lazy="joined")


class RewardsHistory(Base):
    """보상 이력 — 추가 전용."""

    __tablename__ = "rewards_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reward_title: Mapped[str] = mapped_column(String(255), nullable=False)
    reward_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reward_icon: Mapped[str | None] = mapped_column(String(20), nullable=True)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    week_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
