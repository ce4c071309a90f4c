"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — middleware and router registration.
Configures logging, schema creation on startup, CORS, the health check,
the REST routers under /api/v1 and the event WebSocket.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from misekitchen import models  # noqa: F401  테이블 메타데이터 등록 (registers tables)
from misekitchen.config import settings
from misekitchen.database import Base, async_session, engine
from misekitchen.middleware.axiom_logging import AxiomLoggingMiddleware
from misekitchen.repositories.shift_repository import kitchen_settings_repository, kitchen_state_repository
from misekitchen.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """시작 시 로깅 구성, 스키마 생성, 단일 행 테이블 준비.

    Startup: configure logging, create tables and make sure the kitchen
    state and settings singleton rows exist.
    """
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as db:
        await kitchen_state_repository.get_state(db)
        await kitchen_settings_repository.get_settings(db)
        await db.commit()
    logger.info("Application started", extra={"data": {"app": settings.APP_NAME}})
    yield
    await engine.dispose()


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 요청 로깅 미들웨어 — CORS보다 먼저 등록하여 모든 요청을 캡처
# (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from misekitchen.api import api_router  # noqa: E402
from misekitchen.api.events import router as events_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
app.include_router(events_router, tags=["Events"])
