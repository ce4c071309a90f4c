"""알림 레포지토리 — 미해결 알림 조회 및 집계.

Alert Repository — unresolved alert lookups and counts.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.inventory import Alert
from misekitchen.repositories.base import BaseRepository


class AlertRepository(BaseRepository[Alert]):
    """알림 테이블 레포지토리 (Repository for the alerts table)."""

    def __init__(self) -> None:
        super().__init__(Alert)

    async def get_unresolved_for_ingredient(self, db: AsyncSession, ingredient_id: UUID) -> Alert | None:
        """재료의 미해결 알림을 조회합니다.

        Return the pending alert for an ingredient, whatever its scope.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            ingredient_id: 재료 ID (Ingredient UUID)

        Returns:
            Alert | None: 미해결 알림 또는 None (Pending alert or None)
        """
        query: Select = (
            select(Alert)
            .where(Alert.ingredient_id == ingredient_id, Alert.resolved.is_(False))
            .order_by(Alert.created_at.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.unique().scalar_one_or_none()

    async def list_alerts(self, db: AsyncSession, resolved: bool | None = None, limit: int = 200) -> list[Alert]:
        """우선순위, 최신순으로 알림 목록 (Alerts by priority then newest first)."""
        query: Select = select(Alert)
        if resolved is not None:
            query = query.where(Alert.resolved.is_(resolved))
        query = query.order_by(Alert.priority.desc(), Alert.created_at.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.unique().scalars().all())

    async def count_unresolved(self, db: AsyncSession) -> int:
        """미해결 알림 수 (Number of unresolved alerts)."""
        query: Select = select(func.count()).select_from(Alert).where(Alert.resolved.is_(False))
        return (await db.execute(query)).scalar() or 0

    async def count_since(self, db: AsyncSession, since: datetime) -> int:
        """특정 시각 이후 생성된 알림 수 (Alerts created at or after ``since``)."""
        query: Select = select(func.count()).select_from(Alert).where(Alert.created_at >= since)
        return (await db.execute(query)).scalar() or 0


# 싱글턴 인스턴스 — Singleton instance
alert_repository: AlertRepository = AlertRepository()
