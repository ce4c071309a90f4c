"""주방 사용자 SQLAlchemy ORM 모델 정의.

Kitchen user SQLAlchemy ORM model definition.
Users identify themselves by RUT (Chilean national id) and have one of two
roles: "empleado" (line cook) or "chef" (elevated, signs checklists).

Tables:
    - users: 사용자 계정 (User accounts)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from misekitchen.database import Base

# 역할 상수 — Role constants
ROLE_EMPLOYEE: str = "empleado"
ROLE_CHEF: str = "chef"


class User(Base):
    """사용자 모델 — 주방 직원 계정.

    User model — Kitchen staff account.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        rut: 국가 신분 번호 (National id, unique, used as login)
        name: 표시 이름 (Display name, stamped as checklist signer)
        password_hash: bcrypt 해시 (bcrypt-hashed password)
        role: 역할 (empleado | chef)
        is_active: 활성 상태 (Inactive users cannot sign or authorize)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # RUT — 전역 고유 (globally unique login id, e.g. "11111111-1")
    rut: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 비밀번호 해시 — never store plaintext
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # 역할 — empleado | chef
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_EMPLOYEE)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
