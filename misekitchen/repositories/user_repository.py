"""사용자 레포지토리 — RUT 기반 조회.

User Repository — lookups by RUT for checklist signing and restock authorization.
"""

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.models.user import User
from misekitchen.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블 레포지토리 (Repository for the users table)."""

    def __init__(self) -> None:
        super().__init__(User)

    async def get_by_rut(self, db: AsyncSession, rut: str) -> User | None:
        """RUT로 사용자를 조회합니다.

        Retrieve a user by RUT. Surrounding whitespace is ignored.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            rut: 국가 신분 번호 (National id, e.g. "11111111-1")

        Returns:
            User | None: 사용자 또는 None (Matching user or None)
        """
        query: Select = select(User).where(User.rut == rut.strip())
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
