"""이벤트 브로커 — 커밋된 작업에 대해서만 이벤트를 방송합니다.

Event broker — broadcasts notification events for committed work only.

Services stage events on the session with ``queue_event``. A global
SQLAlchemy ``after_commit`` listener hands them to the broker once the
outermost transaction commits; a rollback discards them. Subscribers are
plain callables ``(name, payload) -> None`` (WebSocket queues, test recorders).
"""

from collections.abc import Callable
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, SessionTransaction

from misekitchen.events.event_types import ALL_EVENTS
from misekitchen.utils.logging import get_logger

logger = get_logger(__name__)

# 세션 info 키 — Session.info key holding staged events
_PENDING_KEY: str = "pending_events"

Subscriber = Callable[[str, dict[str, Any]], None]


class EventBroker:
    """이벤트 구독자 레지스트리 (Fan-out registry of event subscribers)."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        """구독자를 등록합니다 (Register a subscriber)."""
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """구독자를 해제합니다. 미등록이면 무시 (Remove a subscriber if present)."""
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, name: str, payload: dict[str, Any]) -> None:
        """모든 구독자에게 이벤트를 전달합니다.

        Deliver an event to every subscriber. Broadcasts are fire-and-forget:
        a failing subscriber is logged and never affects the operation that
        produced the event.
        """
        for subscriber in list(self._subscribers):
            try:
                subscriber(name, payload)
            except Exception:
                logger.exception("Event subscriber failed", extra={"data": {"event": name}})


def queue_event(db: AsyncSession | Session, name: str, payload: dict[str, Any]) -> None:
    """현재 트랜잭션에 이벤트를 예약합니다.

    Stage an event on the session; it is published after the outermost
    transaction commits and dropped if that transaction rolls back.

    Args:
        db: 이벤트를 소유할 세션 (Session whose commit releases the event)
        name: 이벤트 이름 (One of event_types)
        payload: JSON 직렬화 가능한 데이터 (JSON-serializable payload)
    """
    if name not in ALL_EVENTS:
        raise ValueError(f"Unknown event: {name}")
    db.info.setdefault(_PENDING_KEY, []).append((name, payload))


def pending_events(db: AsyncSession | Session) -> list[tuple[str, dict[str, Any]]]:
    """아직 커밋되지 않은 예약 이벤트 목록 (Events staged but not yet committed)."""
    return list(db.info.get(_PENDING_KEY, []))


def event_mark(db: AsyncSession | Session) -> int:
    """SAVEPOINT 시작 전 예약 이벤트 위치 (Position to rewind to if a savepoint rolls back)."""
    return len(db.info.get(_PENDING_KEY, []))


def discard_events_since(db: AsyncSession | Session, mark: int) -> None:
    """롤백된 SAVEPOINT에서 예약된 이벤트를 버립니다 (Drop events staged after ``mark``)."""
    staged: list[tuple[str, dict[str, Any]]] = db.info.get(_PENDING_KEY, [])
    del staged[mark:]


@event.listens_for(Session, "after_commit")
def _publish_committed_events(session: Session) -> None:
    # SAVEPOINT 해제도 after_commit을 발생시킴 — only the outermost commit publishes
    if session.in_nested_transaction():
        return
    staged: list[tuple[str, dict[str, Any]]] = session.info.pop(_PENDING_KEY, [])
    for name, payload in staged:
        event_broker.publish(name, payload)


@event.listens_for(Session, "after_transaction_end")
def _discard_rolled_back_events(session: Session, transaction: SessionTransaction) -> None:
    # 최상위 트랜잭션 종료 시 남은 이벤트는 롤백된 작업 — leftovers belong to rolled-back work
    if transaction.parent is None and session.info.get(_PENDING_KEY):
        dropped = session.info.pop(_PENDING_KEY)
        logger.debug("Discarded events from rolled back transaction", extra={"data": {"count": len(dropped)}})


# 전역 브로커 싱글턴 — Global broker singleton
event_broker: EventBroker = EventBroker()
