"""API 라우터 패키지 — 모든 REST 엔드포인트 통합.

API Router package — aggregates every REST endpoint into a single router
mounted under /api/v1. The event WebSocket lives in ``events`` and is
mounted at the application root.

Included routers:
    - ingredients: 전역 재고 (Global inventory and restocks)
    - recipes: 레시피 (Recipes)
    - sales: 판매 (Sale registration)
    - shifts: 교대 생명주기 (Shift lifecycle, checklist, mise en place)
    - alerts: 알림 (Threshold alerts and suggestions)
    - gamification: 주간 보상/포인트/배지 (Weekly rewards, points, badges)
"""

from fastapi import APIRouter

from misekitchen.api.alerts import router as alerts_router
from misekitchen.api.gamification import router as gamification_router
from misekitchen.api.ingredients import router as ingredients_router
from misekitchen.api.recipes import router as recipes_router
from misekitchen.api.sales import router as sales_router
from misekitchen.api.shifts import router as shifts_router

api_router: APIRouter = APIRouter()

api_router.include_router(ingredients_router, prefix="/ingredients", tags=["Ingredients"])
api_router.include_router(recipes_router, prefix="/recipes", tags=["Recipes"])
api_router.include_router(sales_router, prefix="/sales", tags=["Sales"])
api_router.include_router(shifts_router, prefix="/shifts", tags=["Shifts"])
api_router.include_router(alerts_router, prefix="/alerts", tags=["Alerts"])
api_router.include_router(gamification_router, prefix="/gamification", tags=["Gamification"])
