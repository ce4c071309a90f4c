"""게이미피케이션 라우터 — 주간 성과, 보상 계산, 순위, 직원 통계.

Gamification Router — weekly achievements, reward runs, leaderboard and
employee stats.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import get_db
from misekitchen.schemas.gamification import (
    BadgeResponse,
    EmployeeStatsResponse,
    LeaderboardEntry,
    RewardsCalculationResponse,
    RewardsHistoryResponse,
    WeeklyAchievementResponse,
)
from misekitchen.services.gamification_service import gamification_service

router: APIRouter = APIRouter()


@router.get("/current-week", response_model=list[WeeklyAchievementResponse])
async def current_week(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[WeeklyAchievementResponse]:
    """현재 영업주 성과 (Achievements of the current Tuesday-Saturday week)."""
    return await gamification_service.current_week(db)


@router.post("/calculate-rewards", response_model=RewardsCalculationResponse)
async def calculate_rewards(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RewardsCalculationResponse:
    """현재 주의 보상을 계산합니다.

    Run the weekly rewards for the current week. Repeating the run in the
    same week credits nothing twice.
    """
    result: RewardsCalculationResponse = await gamification_service.calculate_weekly_rewards(db)
    await db.commit()
    return result


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(10, ge=1, le=100),
) -> list[LeaderboardEntry]:
    """포인트 순위표."""
    return await gamification_service.leaderboard(db, limit)


@router.get("/employee/{name}", response_model=EmployeeStatsResponse)
async def employee_stats(
    name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EmployeeStatsResponse:
    """직원 통계."""
    return await gamification_service.employee_stats(db, name)


@router.get("/history/{name}", response_model=list[RewardsHistoryResponse])
async def rewards_history(
    name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(20, ge=1, le=100),
) -> list[RewardsHistoryResponse]:
    """직원 보상 이력."""
    return await gamification_service.rewards_history(db, name, limit)


@router.get("/badges/{name}", response_model=list[BadgeResponse])
async def badges(
    name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[BadgeResponse]:
    """활성 배지와 획득 여부 (Active badges, flagged when earned)."""
    return await gamification_service.badges_for(db, name)
