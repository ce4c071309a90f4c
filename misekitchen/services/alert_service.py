"""알림 서비스 — 임계값 알림 생성, 조회, 해결.

Alert Service — threshold alerts for global stock and mise en place.
One rule for both scopes: an ingredient has at most one unresolved alert;
new breaches are suppressed silently while one is pending. Alert inserts run
in their own SAVEPOINT so a failed insert never aborts the sale or restock
that triggered it.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.config import settings
from misekitchen.events import event_types
from misekitchen.events.broker import queue_event
from misekitchen.models.inventory import (
    ALERT_CRITICAL,
    ALERT_SUGGESTION,
    ALERT_WARNING,
    SCOPE_GENERAL,
    SCOPE_INVENTORY,
    SCOPE_MISE_EN_PLACE,
    Alert,
    Ingredient,
)
from misekitchen.models.shift import ShiftMisePlace
from misekitchen.repositories.alert_repository import alert_repository
from misekitchen.schemas.inventory import AlertCountResponse, AlertResponse
from misekitchen.utils.exceptions import NotFoundError
from misekitchen.utils.logging import get_logger

logger = get_logger(__name__)

# 우선순위 — Alert priorities
PRIORITY_CRITICAL: int = 3
PRIORITY_WARNING: int = 2
PRIORITY_SUGGESTION: int = 1


class AlertService:
    """재고 알림 비즈니스 로직 (AlertEngine)."""

    def to_response(self, alert: Alert) -> AlertResponse:
        """알림 모델을 응답 스키마로 변환합니다 (Convert an Alert to its response)."""
        return AlertResponse(
            id=str(alert.id),
            type=alert.type,
            message=alert.message,
            ingredient_id=str(alert.ingredient_id) if alert.ingredient_id else None,
            ingredient_name=alert.ingredient.name if alert.ingredient is not None else None,
            scope=alert.scope,
            priority=alert.priority,
            resolved=alert.resolved,
            created_at=alert.created_at,
            resolved_at=alert.resolved_at,
        )

    async def evaluate(self, db: AsyncSession, ingredient: Ingredient) -> Alert | None:
        """전역 재고 임계값을 평가합니다.

        Evaluate an ingredient's stored percentage against its thresholds.
        percentage <= critical_threshold creates a critical alert (priority 3),
        else <= warning_threshold a warning (priority 2). No-op while the
        ingredient already has an unresolved alert.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            ingredient: 방금 갱신된 재료 (Freshly re-read ingredient)

        Returns:
            Alert | None: 생성된 알림 또는 None (Created alert, or None)
        """
        percentage: int = ingredient.current_percentage
        if percentage <= ingredient.critical_threshold:
            alert_type, priority = ALERT_CRITICAL, PRIORITY_CRITICAL
            message = f"CRITICAL: {ingredient.name} is at {percentage}% (threshold {ingredient.critical_threshold}%)"
        elif percentage <= ingredient.warning_threshold:
            alert_type, priority = ALERT_WARNING, PRIORITY_WARNING
            message = f"Warning: {ingredient.name} is at {percentage}% (threshold {ingredient.warning_threshold}%)"
        else:
            return None

        if await alert_repository.get_unresolved_for_ingredient(db, ingredient.id) is not None:
            return None

        return await self._create(
            db,
            {
                "type": alert_type,
                "message": message,
                "ingredient_id": ingredient.id,
                "scope": SCOPE_INVENTORY,
                "priority": priority,
            },
        )

    async def evaluate_mise_en_place(self, db: AsyncSession, row: ShiftMisePlace) -> Alert | None:
        """교대 미장플라스 임계값을 평가합니다.

        Evaluate a shift mise en place row: <= MISE_CRITICAL_PERCENTAGE is
        critical, <= MISE_WARNING_PERCENTAGE a warning. Shares the
        one-unresolved-alert-per-ingredient rule with global alerts, so mise
        en place depletion is masked while a global alert for the same
        ingredient is pending; it is raised on the first check after that
        alert is resolved.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            row: 방금 갱신된 미장플라스 행 (Freshly updated mise en place row)

        Returns:
            Alert | None: 생성된 알림 또는 None (Created alert, or None)
        """
        percentage: float = row.percentage
        if percentage > settings.MISE_WARNING_PERCENTAGE:
            return None

        if percentage <= settings.MISE_CRITICAL_PERCENTAGE:
            alert_type, priority = ALERT_CRITICAL, PRIORITY_CRITICAL
        else:
            alert_type, priority = ALERT_WARNING, PRIORITY_WARNING

        if await alert_repository.get_unresolved_for_ingredient(db, row.ingredient_id) is not None:
            return None

        return await self._create(
            db,
            {
                "type": alert_type,
                "message": f"{row.ingredient.name} is at {round(percentage)}% of its mise en place",
                "ingredient_id": row.ingredient_id,
                "scope": SCOPE_MISE_EN_PLACE,
                "priority": priority,
            },
        )

    async def _create(self, db: AsyncSession, data: dict) -> Alert | None:
        """SAVEPOINT 안에서 알림을 생성합니다 — 실패는 기록만 하고 무시.

        Insert an alert inside a SAVEPOINT. A failure is logged and swallowed
        so the triggering operation continues.
        """
        try:
            async with db.begin_nested():
                alert: Alert = await alert_repository.create(db, data)
        except SQLAlchemyError:
            logger.exception(
                "Alert creation failed",
                extra={"data": {"ingredient_id": str(data.get("ingredient_id")), "type": data["type"]}},
            )
            return None

        logger.info(
            "Alert created",
            extra={"data": {"alert_id": str(alert.id), "type": alert.type, "scope": alert.scope}},
        )
        queue_event(db, event_types.ALERT_CREATED, self.to_response(alert).model_dump(mode="json"))
        return alert

    async def create_suggestion(self, db: AsyncSession, message: str) -> AlertResponse:
        """자유 형식 제안 알림을 생성합니다.

        Create a free-form suggestion (no ingredient, priority 1).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            message: 제안 내용 (Suggestion text)

        Returns:
            AlertResponse: 생성된 알림 (Created alert)
        """
        alert: Alert = await alert_repository.create(
            db,
            {
                "type": ALERT_SUGGESTION,
                "message": message.strip(),
                "ingredient_id": None,
                "scope": SCOPE_GENERAL,
                "priority": PRIORITY_SUGGESTION,
            },
        )
        response = self.to_response(alert)
        queue_event(db, event_types.ALERT_CREATED, response.model_dump(mode="json"))
        return response

    async def resolve(self, db: AsyncSession, alert_id: UUID) -> AlertResponse:
        """알림을 해결 처리합니다. 이미 해결된 알림은 그대로 반환.

        Resolve an alert; resolving a resolved alert is a no-op.

        Raises:
            NotFoundError: 알림이 없을 때 (Alert not found)
        """
        alert: Alert | None = await alert_repository.get_by_id(db, alert_id)
        if alert is None:
            raise NotFoundError("Alert not found", code="alert_not_found")

        if alert.resolved:
            return self.to_response(alert)

        alert = await alert_repository.update(
            db, alert, {"resolved": True, "resolved_at": datetime.now(timezone.utc)},
        )
        response = self.to_response(alert)
        queue_event(db, event_types.ALERT_RESOLVED, response.model_dump(mode="json"))
        return response

    async def list_alerts(self, db: AsyncSession, resolved: bool | None = None) -> list[AlertResponse]:
        """알림 목록 — 우선순위, 최신순 (Alerts by priority, newest first)."""
        alerts: list[Alert] = await alert_repository.list_alerts(db, resolved)
        return [self.to_response(a) for a in alerts]

    async def count_unresolved(self, db: AsyncSession) -> AlertCountResponse:
        """미해결 알림 수 (Unresolved alert count)."""
        return AlertCountResponse(count=await alert_repository.count_unresolved(db))


# 싱글턴 인스턴스 — Singleton instance
alert_service: AlertService = AlertService()
