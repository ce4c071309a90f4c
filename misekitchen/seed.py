"""초기 데이터 시드 스크립트 — 셰프 계정, 배지, 설정, 데모 재고/레시피.

Seed script — creates the chef account, the default badges, the kitchen
settings and a demo pantry with pizza recipes.

Usage:
    python -m misekitchen.seed

Creates:
    - 셰프 계정 1개: 11111111-1 / 1111 (Chef user)
    - 직원 계정 2개 (Two employee users)
    - 기본 배지 5개 (Five default badges)
    - 주방 상태/설정 단일 행 (Kitchen state and settings rows)
    - 데모 재료와 피자 레시피 (Demo ingredients and pizza recipes)
"""

import asyncio

from sqlalchemy import select

from misekitchen.database import Base, async_session, engine
from misekitchen.models.gamification import (
    REQ_COMPLETION_RATE,
    REQ_PERFECT_WEEKS,
    REQ_REWARDS_COUNT,
    REQ_STREAK,
    REQ_TOTAL_SHIFTS,
    Badge,
)
from misekitchen.models.inventory import Ingredient, Recipe, RecipeIngredient
from misekitchen.models.user import ROLE_CHEF, ROLE_EMPLOYEE, User
from misekitchen.repositories.shift_repository import kitchen_settings_repository, kitchen_state_repository
from misekitchen.utils.password import hash_password

# (rut, 이름, 역할, 비밀번호) — (rut, name, role, password)
USERS: list[tuple[str, str, str, str]] = [
    ("11111111-1", "Administrador", ROLE_CHEF, "1111"),
    ("22222222-2", "Juan Pérez", ROLE_EMPLOYEE, "2222"),
    ("33333333-3", "María González", ROLE_EMPLOYEE, "3333"),
]

# (이름, 설명, 아이콘, 요구 조건, 값, 포인트) — badge catalogue
BADGES: list[tuple[str, str, str, str, int, int]] = [
    ("Perfeccionista", "100% completion three weeks", "⭐", REQ_PERFECT_WEEKS, 3, 100),
    ("Racha de Fuego", "Seven consecutive weeks at 70% or more", "🔥", REQ_STREAK, 7, 75),
    ("Veterano", "50 shifts closed", "🏆", REQ_TOTAL_SHIFTS, 50, 150),
    ("Coleccionista", "10 weekly rewards earned", "🎁", REQ_REWARDS_COUNT, 10, 200),
    ("Maestro", "Average completion of 95% or more", "👑", REQ_COMPLETION_RATE, 95, 125),
]

# (이름, 단위, 카테고리, 총량, 위험, 경고) — demo pantry
INGREDIENTS: list[tuple[str, str, str, float, int, int]] = [
    ("Masa de pizza", "unidades", "bases", 100, 20, 50),
    ("Salsa de tomate", "ml", "salsas", 10000, 30, 60),
    ("Salsa BBQ", "ml", "salsas", 3000, 30, 60),
    ("Mozzarella", "g", "quesos", 20000, 20, 50),
    ("Parmesano", "g", "quesos", 3000, 40, 70),
    ("Pepperoni", "g", "proteinas", 5000, 30, 60),
    ("Jamón", "g", "proteinas", 5000, 30, 60),
    ("Champiñones", "g", "vegetales", 4000, 40, 70),
    ("Albahaca fresca", "g", "vegetales", 500, 50, 75),
    ("Aceite de oliva", "ml", "bases", 5000, 40, 70),
]

# 레시피 (이름, 크기, [(재료, L 기준 수량)]) — recipes with L-size quantities
RECIPES: list[tuple[str, list[tuple[str, float]]]] = [
    ("Margarita", [("Masa de pizza", 1), ("Salsa de tomate", 150), ("Mozzarella", 200), ("Albahaca fresca", 5), ("Aceite de oliva", 20)]),
    ("Pepperoni", [("Masa de pizza", 1), ("Salsa de tomate", 150), ("Mozzarella", 200), ("Pepperoni", 100)]),
    ("Jamón y Champiñones", [("Masa de pizza", 1), ("Salsa de tomate", 150), ("Mozzarella", 200), ("Jamón", 100), ("Champiñones", 80)]),
    ("BBQ", [("Masa de pizza", 1), ("Salsa BBQ", 120), ("Mozzarella", 200), ("Jamón", 80)]),
]

# 크기별 배율 — size multipliers relative to L
SIZE_FACTORS: dict[str, float] = {"L": 1.0, "M": 0.75, "S": 0.5}


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with initial data. Creates tables if they don't
    exist. Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if already seeded).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            print("Already seeded. Skipping.")
            return

        for rut, name, role, password in USERS:
            db.add(User(rut=rut, name=name, role=role, password_hash=hash_password(password), is_active=True))

        for name, description, icon, requirement_type, value, points in BADGES:
            db.add(Badge(
                name=name,
                description=description,
                icon=icon,
                requirement_type=requirement_type,
                requirement_value=value,
                points_value=points,
            ))

        ingredients: dict[str, Ingredient] = {}
        for name, unit, category, total, critical, warning in INGREDIENTS:
            ingredient = Ingredient(
                name=name,
                unit=unit,
                category=category,
                total_quantity=total,
                current_quantity=total,
                current_percentage=100,
                critical_threshold=critical,
                warning_threshold=warning,
            )
            db.add(ingredient)
            ingredients[name] = ingredient
        await db.flush()  # flush로 재료 id 생성 (Flush to generate ingredient ids)

        for name, lines in RECIPES:
            for size, factor in SIZE_FACTORS.items():
                recipe = Recipe(name=name, type="pizza", size=size, active=True)
                recipe.ingredients = [
                    RecipeIngredient(
                        ingredient_id=ingredients[ingredient_name].id,
                        # 도우는 크기와 무관하게 1개 — one dough ball per pizza
                        quantity=quantity if ingredient_name == "Masa de pizza" else round(quantity * factor, 2),
                        position=position,
                    )
                    for position, (ingredient_name, quantity) in enumerate(lines)
                ]
                db.add(recipe)

        await kitchen_state_repository.get_state(db)
        await kitchen_settings_repository.get_settings(db)

        await db.commit()
        print(f"Seeded: {len(USERS)} users, {len(BADGES)} badges, {len(INGREDIENTS)} ingredients, "
              f"{len(RECIPES) * len(SIZE_FACTORS)} recipes (chef 11111111-1/1111)")


if __name__ == "__main__":
    asyncio.run(seed())
