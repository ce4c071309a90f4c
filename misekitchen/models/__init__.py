"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package registers every table with the metadata, which
is required for ``create_all`` and relationship resolution.

Modules:
    user: 주방 사용자 (Kitchen users, RUT + role)
    inventory: 재료, 레시피, 재입고, 재고 이동, 알림 (Ingredients, recipes, restocks, movements, alerts)
    shift: 교대, 체크리스트, 미장플라스, 판매, 보고서, 주방 상태/설정 (Shifts, tasks, mise en place, sales, reports, state/settings)
    gamification: 주간 성과, 포인트, 배지, 보상 이력 (Weekly achievements, points, badges, rewards history)
"""

from misekitchen.models.user import User
from misekitchen.models.inventory import Ingredient, Recipe, RecipeIngredient, Restock, InventoryMovement, Alert
from misekitchen.models.shift import (
    Shift, ShiftTask, ShiftMisePlace, Sale, ShiftChecklistCompletion, ShiftReport, KitchenState, KitchenSettings,
)
from misekitchen.models.gamification import WeeklyAchievement, EmployeePoints, Badge, EmployeeBadge, RewardsHistory

__all__ = [
    "User",
    "Ingredient", "Recipe", "RecipeIngredient", "Restock", "InventoryMovement", "Alert",
    "Shift", "ShiftTask", "ShiftMisePlace", "Sale", "ShiftChecklistCompletion", "ShiftReport",
    "KitchenState", "KitchenSettings",
    "WeeklyAchievement", "EmployeePoints", "Badge", "EmployeeBadge", "RewardsHistory",
]
