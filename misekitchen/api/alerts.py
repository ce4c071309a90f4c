"""알림 라우터 — 알림 조회, 해결, 제안 생성.

Alert Router — alert listing, resolution and suggestions.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import get_db
from misekitchen.schemas.inventory import AlertCountResponse, AlertResponse, SuggestionCreate
from misekitchen.services.alert_service import alert_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[AlertResponse])
async def list_alerts(
    db: Annotated[AsyncSession, Depends(get_db)],
    resolved: bool | None = Query(None),
) -> list[AlertResponse]:
    """알림 목록 — 우선순위, 최신순."""
    return await alert_service.list_alerts(db, resolved)


@router.get("/count", response_model=AlertCountResponse)
async def count_alerts(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AlertCountResponse:
    """미해결 알림 수."""
    return await alert_service.count_unresolved(db)


@router.put("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AlertResponse:
    """알림을 해결 처리합니다."""
    result: AlertResponse = await alert_service.resolve(db, alert_id)
    await db.commit()
    return result


@router.post("/suggestion", response_model=AlertResponse, status_code=201)
async def create_suggestion(
    data: SuggestionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AlertResponse:
    """제안 알림을 생성합니다 (Create a free-form suggestion)."""
    result: AlertResponse = await alert_service.create_suggestion(db, data.message)
    await db.commit()
    return result
