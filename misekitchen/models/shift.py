"""교대(Shift) 관련 SQLAlchemy ORM 모델 정의.

Shift lifecycle SQLAlchemy ORM model definitions.
A shift owns its checklist tasks, its mise en place snapshot, its sales,
its checklist-completion snapshot and, once closed, exactly one report.

Tables:
    - shifts: 교대 (AM/PM production shifts)
    - shift_tasks: 교대 체크리스트 항목 (Checklist tasks seeded at open)
    - shift_mise_en_place: 교대 미장플라스 (Per-shift prepared stock)
    - sales: 판매 기록 (Immutable sale records)
    - shift_checklist_completion: 서명 시점 완료 스냅샷 (Snapshot at signing)
    - shift_reports: 마감 보고서 (One report per closed shift)
    - kitchen_state: 현재 교대 단일 행 (Singleton current-shift cell)
    - kitchen_settings: 미장플라스 설정 단일 행 (Singleton mise en place settings)
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any
from sqlalchemy import (
    JSON, String, Boolean, Date, DateTime, Float, Integer, ForeignKey, Index, UniqueConstraint, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from misekitchen.database import Base

# 교대 상태 — Shift status values
SHIFT_OPEN: str = "open"
SHIFT_CLOSED: str = "closed"


class Shift(Base):
    """교대 모델 — 하루 AM/PM 생산 교대.

    Shift model — One AM or PM production shift.
    State machine: open -> closed (exactly once). checklist_signed is an
    orthogonal flag; a shift may close unsigned.

    Constraints:
        uq_shifts_single_open: status='open'인 행은 하나뿐 (At most one open shift)
    """

    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 영업일 — Business date (column "date")
    shift_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    # 유형 — AM | PM
    type: Mapped[str] = mapped_column(String(2), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default=SHIFT_OPEN)
    # 체크리스트 서명 — Checklist signature fields
    checklist_signed: Mapped[bool] = mapped_column(Boolean, default=False)
    checklist_signed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    checklist_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 체크리스트 버전 — Checklist definition version seeded into this shift
    checklist_version: Mapped[str] = mapped_column(String(20), nullable=False, default="v1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index(
            "uq_shifts_single_open",
            "status",
            unique=True,
            sqlite_where=text("status = 'open'"),
            postgresql_where=text("status = 'open'"),
        ),
    )

    # 관계 — Relationships (교대 삭제 시 하위 행 모두 삭제)
    tasks = relationship(
        "ShiftTask", back_populates="shift", cascade="all, delete-orphan",
        order_by="ShiftTask.position", lazy="selectin",
    )
    mise_en_place = relationship(
        "ShiftMisePlace", back_populates="shift", cascade="all, delete-orphan", lazy="selectin",
    )


class ShiftTask(Base):
    """교대 체크리스트 항목."""

    __tablename__ = "shift_tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    task_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    shift = relationship("Shift", back_populates="tasks")


class ShiftMisePlace(Base):
    """교대 미장플라스 — 교대 시작 시 준비한 재료 스냅샷.

    Shift mise en place — prepared quantity snapshot taken at shift open.
    percentage is derived: current_quantity * 100 / initial_quantity.
    """

    __tablename__ = "shift_mise_en_place"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    ingredient_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    initial_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    current_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("shift_id", "ingredient_id", name="uq_shift_mise_ingredient"),
    )

    shift = relationship("Shift", back_populates="mise_en_place")
    ingredient = relationship("Ingredient", lazy="joined")

    @property
    def percentage(self) -> float:
        """남은 비율 (Remaining share of the initial quantity, 0 when initial is 0)."""
        if not self.initial_quantity:
            return 0.0
        return self.current_quantity * 100.0 / self.initial_quantity


class Sale(Base):
    """판매 기록 — 검증/차감 성공 후에만 생성되며 변경되지 않음."""

    __tablename__ = "sales"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    recipe_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    recipe = relationship("Recipe", lazy="joined")


class ShiftChecklistCompletion(Base):
    """서명 시점의 체크리스트 완료 스냅샷 — 이후 항목 변경과 무관.

    Checklist completion snapshot recorded when a chef signs; independent of
    later task toggles and used for reward eligibility.
    """

    __tablename__ = "shift_checklist_completion"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_tasks: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_tasks: Mapped[int] = mapped_column(Integer, nullable=False)
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    signed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    signed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class ShiftReport(Base):
    """교대 마감 보고서 — 교대당 정확히 하나."""

    __tablename__ = "shift_reports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, unique=True)
    total_sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sale_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # [{"ingredient_id", "name", "used_quantity", "unit"}, ...]
    ingredients_used: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    alerts_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    checklist_completion: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    closed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    closed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class KitchenState(Base):
    """주방 상태 단일 행 — 현재 열린 교대 참조.

    Singleton row (id=1) holding the one active shift. Written in the same
    transaction that opens or closes a shift.
    """

    __tablename__ = "kitchen_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    current_shift_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="SET NULL"), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class KitchenSettings(Base):
    """미장플라스 설정 단일 행.

    Mise en place settings: base pizza count used to suggest the initial
    prep, size split, and the minimum remaining percentage to close a shift.
    """

    __tablename__ = "kitchen_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    base_pizza_count: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    size_l_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    size_m_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=25)
    size_s_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    min_close_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=80)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
