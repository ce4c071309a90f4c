"""주방 데이터베이스 — 엔진, 세션 팩토리, ORM 베이스.

Kitchen database wiring. The store is a single SQLite file opened through
aiosqlite; every request gets its own AsyncSession and one transaction.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from misekitchen.config import settings


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """SQLite 엔진에 외래 키와 SAVEPOINT 지원을 설정합니다.

    Enable foreign keys and working SAVEPOINTs on an aiosqlite engine.
    The driver's implicit BEGIN is disabled and an explicit BEGIN is emitted
    instead, so nested transactions (begin_nested) roll back correctly.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # 드라이버 자동 BEGIN 비활성화 — disable driver-level BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


# 엔진 — aiosqlite engine
engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)
if engine.dialect.name == "sqlite":
    configure_sqlite_engine(engine)

# 요청 단위 세션 — one session per request; rows stay readable after commit
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """모든 주방 모델의 선언적 베이스 (Declarative base; create_all builds every table from it)."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청용 세션 의존성.

    FastAPI dependency yielding the request session.
    Routers commit once at the end of a successful request; any exception
    raised while handling the request rolls the whole unit of work back.

    Yields:
        AsyncSession: SQLAlchemy 비동기 세션 인스턴스 (Async session instance)
    """
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
