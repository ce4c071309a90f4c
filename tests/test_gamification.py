"""게이미피케이션 테스트 — 영업주, 포인트, 레벨, 연속 기록, 배지.

Gamification tests — Tuesday-to-Saturday weeks, the points and level
tables, premio tiers, streaks across weeks, idempotent reward runs and
badge bonuses.
"""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.config import settings
from misekitchen.events import event_types
from misekitchen.models.gamification import REQ_PERFECT_WEEKS, REQ_STREAK, Badge
from misekitchen.services.gamification_service import (
    calculate_level,
    calculate_points,
    gamification_service,
    week_bounds,
)
from tests.conftest import event_names

WEEK_1 = date(2026, 10, 13)
WEEK_2 = date(2026, 10, 20)


async def _make_badge(db: AsyncSession, name: str, requirement_type: str, value: int, points: int = 50) -> Badge:
    badge = Badge(
        name=name,
        description=f"{name} badge",
        icon="⭐",
        requirement_type=requirement_type,
        requirement_value=value,
        points_value=points,
    )
    db.add(badge)
    await db.flush()
    return badge


class TestRules:
    """순수 규칙 함수."""

    @pytest.mark.parametrize(
        ("today", "expected"),
        [
            (date(2026, 10, 20), (date(2026, 10, 20), date(2026, 10, 24))),  # 화요일
            (date(2026, 10, 24), (date(2026, 10, 20), date(2026, 10, 24))),  # 토요일
            (date(2026, 10, 25), (date(2026, 10, 20), date(2026, 10, 24))),  # 일요일
            (date(2026, 10, 19), (date(2026, 10, 13), date(2026, 10, 17))),  # 월요일
        ],
    )
    def test_week_bounds(self, today, expected):
        assert week_bounds(today) == expected

    @pytest.mark.parametrize(
        ("rate", "points"),
        [(100, 100), (99.9, 75), (95, 75), (90, 50), (85, 25), (80, 25), (70, 10), (69.9, 0), (0, 0)],
    )
    def test_points_table(self, rate, points):
        assert calculate_points(rate) == points

    @pytest.mark.parametrize(
        ("total", "level"),
        [(0, 1), (149, 1), (150, 2), (400, 3), (999, 4), (1000, 5), (1999, 6), (2000, 7), (4999, 9), (5000, 10), (9000, 10)],
    )
    def test_level_table(self, total, level):
        assert calculate_level(total) == level


class TestWeeklyAccumulation:
    """주간 누적."""

    async def test_accumulates_within_week(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Ana", 20, 22, today=WEEK_2)
        row = await gamification_service.accumulate_week(db, "Ana", 22, 22, today=date(2026, 10, 23))

        assert row.week_start == WEEK_2
        assert row.week_end == date(2026, 10, 24)
        assert row.tasks_completed == 42
        assert row.total_tasks == 44

    async def test_new_week_new_row(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_1)
        await gamification_service.accumulate_week(db, "Ana", 11, 22, today=WEEK_2)

        assert len(await gamification_service.current_week(db, today=WEEK_1)) == 1
        week = await gamification_service.current_week(db, today=WEEK_2)
        assert week[0].completion_rate == 50


class TestWeeklyRewards:
    """주간 보상 계산."""

    async def test_perfect_weeks_build_a_streak(self, db: AsyncSession):
        for today in (WEEK_1, WEEK_2):
            await gamification_service.accumulate_week(db, "Ana", 22, 22, today=today)
            result = await gamification_service.calculate_weekly_rewards(db, today=today)
            assert result.rewards[0].premio == settings.REWARD_PERFECT_TITLE
            assert result.rewards[0].points_earned == 100

        stats = await gamification_service.employee_stats(db, "Ana")
        assert stats.points.current_streak == 2
        assert stats.points.longest_streak == 2
        assert stats.points.total_points == 200
        assert stats.points.level == 2
        assert stats.stats.total_weeks == 2
        assert stats.stats.rewards_earned == 2

        history = await gamification_service.rewards_history(db, "Ana")
        assert len(history) == 2
        assert {h.reward_icon for h in history} == {"🍕"}
        assert {h.reason for h in history} == {"Weekly reward"}

    async def test_secondary_reward(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Luis", 20, 22, today=WEEK_2)
        result = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        grant = result.rewards[0]
        assert grant.premio == settings.REWARD_SECONDARY_TITLE
        assert grant.completion_rate == 90.9
        assert grant.points_earned == 50

        week = await gamification_service.current_week(db, today=WEEK_2)
        assert week[0].premio == settings.REWARD_SECONDARY_TITLE
        assert week[0].rewards_calculated_at is not None

    async def test_low_week_resets_streak(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_1)
        await gamification_service.calculate_weekly_rewards(db, today=WEEK_1)
        await gamification_service.accumulate_week(db, "Ana", 10, 22, today=WEEK_2)
        result = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        assert result.rewards == []
        stats = await gamification_service.employee_stats(db, "Ana")
        assert stats.points.current_streak == 0
        assert stats.points.longest_streak == 1
        assert stats.points.total_points == 100

    async def test_rerun_credits_nothing_twice(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_2)
        await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)
        again = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        assert again.rewards == []
        assert again.level_ups == []
        stats = await gamification_service.employee_stats(db, "Ana")
        assert stats.points.total_points == 100
        assert stats.points.current_streak == 1
        assert len(await gamification_service.rewards_history(db, "Ana")) == 1

    async def test_close_after_run_reopens_week(self, db: AsyncSession):
        """계산 후 마감된 교대가 주를 다시 열고 새 합계로 재계산."""
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_2)
        await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        row = await gamification_service.accumulate_week(db, "Ana", 0, 22, today=WEEK_2)
        assert row.rewards_calculated_at is None

        again = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)
        assert again.rewards == []

        week = await gamification_service.current_week(db, today=WEEK_2)
        assert (week[0].tasks_completed, week[0].total_tasks) == (22, 44)
        assert week[0].premio is None
        assert week[0].rewards_calculated_at is not None

        stats = await gamification_service.employee_stats(db, "Ana")
        assert stats.points.total_points == 100
        assert stats.points.current_streak == 0

    async def test_reopened_week_credits_only_the_difference(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Luis", 18, 22, today=WEEK_2)
        first = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)
        assert first.rewards == []

        await gamification_service.accumulate_week(db, "Luis", 22, 22, today=WEEK_2)
        second = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        grant = second.rewards[0]
        assert grant.premio == settings.REWARD_SECONDARY_TITLE
        assert grant.points_earned == 25
        assert grant.current_streak == 1

        stats = await gamification_service.employee_stats(db, "Luis")
        assert stats.points.total_points == 50
        assert stats.points.longest_streak == 1
        assert len(await gamification_service.rewards_history(db, "Luis")) == 1

    async def test_events(self, db: AsyncSession, events):
        await _make_badge(db, "Perfeccionista", REQ_PERFECT_WEEKS, 1, points=50)
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_2)
        await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)
        await db.commit()

        assert event_names(events) == [
            event_types.REWARDS_CALCULATED,
            event_types.LEVEL_UP,
            event_types.BADGES_EARNED,
        ]
        _, level_payload = events[1]
        assert level_payload["level_ups"][0]["new_level"] == 2
        assert level_payload["level_ups"][0]["total_points"] == 150

    async def test_empty_week_emits_only_summary(self, db: AsyncSession, events):
        result = await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)
        await db.commit()

        assert result.week_start == WEEK_2
        assert event_names(events) == [event_types.REWARDS_CALCULATED]


class TestBadges:
    """배지 부여."""

    async def test_badge_grants_bonus_points_once(self, db: AsyncSession):
        await _make_badge(db, "Constante", REQ_STREAK, 2, points=80)

        for today in (WEEK_1, WEEK_2):
            await gamification_service.accumulate_week(db, "Ana", 22, 22, today=today)
            result = await gamification_service.calculate_weekly_rewards(db, today=today)

        assert [b.name for b in result.new_badges[0].badges] == ["Constante"]
        stats = await gamification_service.employee_stats(db, "Ana")
        assert stats.points.total_points == 280
        assert [b.name for b in stats.badges] == ["Constante"]
        assert stats.badges[0].earned is True

        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=date(2026, 10, 27))
        result = await gamification_service.calculate_weekly_rewards(db, today=date(2026, 10, 27))
        assert result.new_badges == []

    async def test_badges_for_flags_earned(self, db: AsyncSession):
        await _make_badge(db, "Perfeccionista", REQ_PERFECT_WEEKS, 1)
        await _make_badge(db, "Constante", REQ_STREAK, 5)
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_2)
        await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        flags = {b.name: b.earned for b in await gamification_service.badges_for(db, "Ana")}
        assert flags == {"Perfeccionista": True, "Constante": False}


class TestReads:
    """순위표와 통계."""

    async def test_leaderboard_ranks(self, db: AsyncSession):
        await gamification_service.accumulate_week(db, "Ana", 22, 22, today=WEEK_2)
        await gamification_service.accumulate_week(db, "Luis", 20, 22, today=WEEK_2)
        await gamification_service.calculate_weekly_rewards(db, today=WEEK_2)

        board = await gamification_service.leaderboard(db)
        assert [(e.rank, e.employee_name, e.total_points) for e in board] == [(1, "Ana", 100), (2, "Luis", 50)]

    async def test_unknown_employee_stats(self, db: AsyncSession):
        stats = await gamification_service.employee_stats(db, "Nadie")
        assert stats.points.total_points == 0
        assert stats.points.level == 1
        assert stats.stats.total_weeks == 0
        assert stats.recent_weeks == []
        assert stats.badges == []
