"""이벤트 브로커 및 공통 구성 요소 테스트.

Event broker tests — events reach subscribers only after commit, rolled
back work publishes nothing, a failing subscriber is isolated. Also covers
the checklist catalog and request-log masking.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from misekitchen.events import event_types
from misekitchen.events.broker import event_broker, pending_events, queue_event
from misekitchen.middleware.axiom_logging import mask_sensitive
from misekitchen.services.checklist_catalog import checklist_catalog
from tests.conftest import event_names


class TestEventBroker:
    """커밋 후 방송."""

    async def test_published_after_commit(self, db: AsyncSession, events):
        queue_event(db, event_types.ALERT_RESOLVED, {"id": "a"})
        assert events == []
        assert len(pending_events(db)) == 1

        await db.commit()
        assert events == [(event_types.ALERT_RESOLVED, {"id": "a"})]
        assert pending_events(db) == []

    async def test_rollback_discards(self, db: AsyncSession, events):
        await db.connection()
        queue_event(db, event_types.ALERT_RESOLVED, {"id": "a"})
        await db.rollback()
        await db.commit()

        assert events == []
        assert pending_events(db) == []

    async def test_savepoint_release_does_not_publish(self, db: AsyncSession, events):
        """SAVEPOINT 해제는 방송하지 않고, 바깥 롤백 시 모두 폐기."""
        await db.connection()
        queue_event(db, event_types.INGREDIENT_UPDATED, {"id": "before"})
        async with db.begin_nested():
            queue_event(db, event_types.MISE_UPDATED, {"id": "inside"})

        assert events == []
        assert len(pending_events(db)) == 2

        await db.rollback()
        assert events == []
        assert pending_events(db) == []

    async def test_savepoint_events_published_on_outer_commit(self, db: AsyncSession, events):
        await db.connection()
        async with db.begin_nested():
            queue_event(db, event_types.MISE_UPDATED, {"id": "inside"})
        assert events == []

        await db.commit()
        assert event_names(events) == [event_types.MISE_UPDATED]

    async def test_unknown_event_rejected(self, db: AsyncSession):
        with pytest.raises(ValueError):
            queue_event(db, "pizza:eaten", {})

    async def test_failing_subscriber_is_isolated(self, db: AsyncSession, events):
        def _broken(name, payload):
            raise RuntimeError("socket closed")

        event_broker.subscribe(_broken)
        try:
            queue_event(db, event_types.SHIFT_OPENED, {})
            await db.commit()
        finally:
            event_broker.unsubscribe(_broken)

        assert event_names(events) == [event_types.SHIFT_OPENED]


class TestChecklistCatalog:
    """체크리스트 버전 카탈로그."""

    def test_default_version(self):
        checklist = checklist_catalog.get()
        assert checklist.version == "v1"
        assert "v1" in checklist_catalog.available_versions()
        assert len({item.position for item in checklist.items}) == len(checklist.items)

    def test_unknown_version(self):
        with pytest.raises(ValueError):
            checklist_catalog.get("v999")


class TestMasking:
    """요청 로그 마스킹."""

    def test_masks_nested_secrets(self):
        body = {
            "authorized_rut": "11111111-1",
            "authorized_password": "1111",
            "lines": [{"password": "x", "quantity": 2}],
        }
        masked = mask_sensitive(body)
        assert masked["authorized_password"] == "***"
        assert masked["lines"][0]["password"] == "***"
        assert masked["lines"][0]["quantity"] == 2
