"""테스트 인프라 — 인메모리 SQLite, 세션, httpx 클라이언트, 이벤트 기록기.

Test infrastructure — in-memory SQLite (aiosqlite + StaticPool), a session
shared by service tests and the HTTP client, and a recorder subscribed to
the event broker. Tables are created before and dropped after each test.
"""

from collections.abc import AsyncGenerator
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from misekitchen.database import Base, configure_sqlite_engine, get_db
from misekitchen.events.broker import event_broker
from misekitchen.main import app
from misekitchen.models import *  # noqa: F401,F403 — register all models with metadata
from misekitchen.models.inventory import Ingredient, Recipe, RecipeIngredient
from misekitchen.models.user import ROLE_CHEF, ROLE_EMPLOYEE, User
from misekitchen.schemas.shift import MiseEnPlaceInput, ShiftCreate, ShiftResponse
from misekitchen.services.shift_service import shift_service
from misekitchen.services.stock_ledger import compute_percentage
from misekitchen.utils.password import hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite://"

CHEF_RUT = "11111111-1"
CHEF_PASSWORD = "1111"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 인메모리 엔진 — 테스트마다 스키마 생성/삭제."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite_engine(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def events() -> Any:
    """커밋 후 방송된 이벤트 기록기 (Records events published after commit)."""
    recorded: list[tuple[str, dict[str, Any]]] = []

    def _record(name: str, payload: dict[str, Any]) -> None:
        recorded.append((name, payload))

    event_broker.subscribe(_record)
    yield recorded
    event_broker.unsubscribe(_record)


def event_names(recorded: list[tuple[str, dict[str, Any]]]) -> list[str]:
    return [name for name, _ in recorded]


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def make_ingredient(
    db: AsyncSession,
    name: str,
    category: str,
    unit: str,
    total: float,
    current: float | None = None,
    critical: int = 20,
    warning: int = 50,
) -> Ingredient:
    """재료 행을 직접 생성합니다 (Insert an ingredient row)."""
    current = total if current is None else current
    ingredient = Ingredient(
        name=name,
        category=category,
        unit=unit,
        total_quantity=total,
        current_quantity=current,
        current_percentage=compute_percentage(current, total),
        critical_threshold=critical,
        warning_threshold=warning,
    )
    db.add(ingredient)
    await db.flush()
    await db.refresh(ingredient)
    return ingredient


@pytest_asyncio.fixture
async def chef(db: AsyncSession) -> User:
    """서명 권한이 있는 셰프 계정."""
    user = User(rut=CHEF_RUT, name="Administrador", role=ROLE_CHEF, password_hash=hash_password(CHEF_PASSWORD))
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def employee(db: AsyncSession) -> User:
    """서명 권한이 없는 직원 계정."""
    user = User(rut="22222222-2", name="Juan Pérez", role=ROLE_EMPLOYEE, password_hash=hash_password("2222"))
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def ingredients(db: AsyncSession) -> dict[str, Ingredient]:
    """데모 재료 — 모차렐라는 80% 상태로 시작."""
    return {
        "mozzarella": await make_ingredient(db, "Mozzarella", "quesos", "g", total=100, current=80),
        "masa": await make_ingredient(db, "Masa de pizza", "bases", "unidades", total=50),
        "tomate": await make_ingredient(db, "Salsa de tomate", "salsas", "ml", total=1000),
        "bbq": await make_ingredient(db, "Salsa BBQ", "salsas", "ml", total=1000),
    }


@pytest_asyncio.fixture
async def recipe(db: AsyncSession, ingredients: dict[str, Ingredient]) -> Recipe:
    """마르게리타 L — 도우, 두 가지 소스, 모차렐라 60 g."""
    r = Recipe(name="Margarita", type="pizza", size="L", active=True)
    r.ingredients = [
        RecipeIngredient(ingredient=ingredients["masa"], quantity=1, position=0),
        RecipeIngredient(ingredient=ingredients["tomate"], quantity=100, position=1),
        RecipeIngredient(ingredient=ingredients["bbq"], quantity=50, position=2),
        RecipeIngredient(ingredient=ingredients["mozzarella"], quantity=60, position=3),
    ]
    db.add(r)
    await db.flush()
    return r


@pytest_asyncio.fixture
async def open_shift(db: AsyncSession, ingredients: dict[str, Ingredient]) -> ShiftResponse:
    """열린 AM 교대 — 모차렐라 100 g, 도우 10개, 토마토 소스 500 ml 준비."""
    shift = await shift_service.open_shift(
        db,
        ShiftCreate(
            date=date(2026, 10, 20),
            type="AM",
            employee_name="Juan Pérez",
            mise_en_place=[
                MiseEnPlaceInput(ingredient_id=ingredients["mozzarella"].id, quantity=100),
                MiseEnPlaceInput(ingredient_id=ingredients["masa"].id, quantity=10),
                MiseEnPlaceInput(ingredient_id=ingredients["tomate"].id, quantity=500),
            ],
        ),
    )
    await db.commit()
    return shift
