"""기본 레포지토리 — 모든 주방 레포지토리의 부모 클래스.

Base repository shared by the kitchen repositories. It only knows about
primary keys: lookup, batch lookup, insert and in-place update. Anything
that filters on business columns lives in the concrete repository.

Repositories never commit. They flush so generated ids and defaults are
available to the calling service, which runs inside the request's
transaction.

Usage:
    class AlertRepository(BaseRepository[Alert]):
        def __init__(self) -> None:
            super().__init__(Alert)
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """UUID 기본 키 모델용 제네릭 레포지토리.

    Attributes:
        model: 관리하는 ORM 모델 (ORM model handled by this repository)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(self, db: AsyncSession, record_id: UUID) -> ModelType | None:
        """기본 키로 한 행을 읽습니다 (One row by primary key, or None)."""
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        # joined eager load 관계가 있는 모델은 unique() 필요
        return result.unique().scalar_one_or_none()

    async def get_many(self, db: AsyncSession, record_ids: list[UUID]) -> dict[UUID, ModelType]:
        """여러 행을 ID 맵으로 읽습니다.

        Load several rows in one query, keyed by id. Ids without a row are
        simply absent from the result, so callers can report them.
        """
        if not record_ids:
            return {}
        result = await db.execute(select(self.model).where(self.model.id.in_(record_ids)))
        return {row.id: row for row in result.unique().scalars().all()}

    async def create(self, db: AsyncSession, obj_data: dict[str, Any]) -> ModelType:
        """행을 추가하고 flush 후 다시 읽어 반환합니다.

        Insert a row. The refresh after flush loads server-side defaults
        and eager relationships before the row is handed back.
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(self, db: AsyncSession, db_obj: ModelType, update_data: dict[str, Any]) -> ModelType:
        """이미 읽은 행에 값을 적용합니다.

        Apply ``update_data`` to a loaded row; unknown keys are ignored.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            db_obj: 변경할 행 (Row to change)
            update_data: 컬럼 이름 → 새 값 (Column name to new value)

        Returns:
            ModelType: flush 후 다시 읽은 행 (Row re-read after flush)
        """
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return db_obj
