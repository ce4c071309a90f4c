"""이벤트 이름 상수.

Event name constants broadcast to kitchen displays.
"""

# 재료 — Ingredient events
INGREDIENT_CREATED = "ingredient:created"
INGREDIENT_UPDATED = "ingredient:updated"
INGREDIENT_RESTOCKED = "ingredient:restocked"

# 판매/미장플라스 — Sale and mise en place events
SALE_REGISTERED = "sale:registered"
MISE_UPDATED = "mise:updated"

# 알림 — Alert events
ALERT_CREATED = "alert:created"
ALERT_RESOLVED = "alert:resolved"

# 교대 — Shift lifecycle events
SHIFT_OPENED = "shift:opened"
SHIFT_CLOSED = "shift:closed"
TASK_UPDATED = "task:updated"
CHECKLIST_SIGNED = "checklist:signed"

# 게이미피케이션 — Gamification events
REWARDS_CALCULATED = "rewards:calculated"
LEVEL_UP = "level:up"
BADGES_EARNED = "badges:earned"

ALL_EVENTS: frozenset[str] = frozenset({
    INGREDIENT_CREATED, INGREDIENT_UPDATED, INGREDIENT_RESTOCKED,
    SALE_REGISTERED, MISE_UPDATED,
    ALERT_CREATED, ALERT_RESOLVED,
    SHIFT_OPENED, SHIFT_CLOSED, TASK_UPDATED, CHECKLIST_SIGNED,
    REWARDS_CALCULATED, LEVEL_UP, BADGES_EARNED,
})
