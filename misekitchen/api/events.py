"""실시간 이벤트 WebSocket — 커밋된 이벤트를 클라이언트로 전달.

Realtime events WebSocket — streams every committed broker event to the
connected client as ``{"event": name, "data": payload}``. Clients may send
"ping" and receive "pong" as a heartbeat.
"""

import asyncio
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from misekitchen.events.broker import event_broker
from misekitchen.utils.logging import get_logger

logger = get_logger(__name__)

router: APIRouter = APIRouter()

# 연결당 대기 이벤트 상한 — per-connection backlog before events are dropped
MAX_PENDING_EVENTS: int = 1000


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        name, payload = await queue.get()
        await websocket.send_json({"event": name, "data": payload})


async def _answer_heartbeats(websocket: WebSocket) -> None:
    while True:
        message: str = await websocket.receive_text()
        if message == "ping":
            await websocket.send_text("pong")


@router.websocket("/ws/events")
async def events_websocket(websocket: WebSocket) -> None:
    """이벤트 스트림 엔드포인트 (Event stream endpoint)."""
    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue(maxsize=MAX_PENDING_EVENTS)

    def enqueue(name: str, payload: dict[str, Any]) -> None:
        try:
            queue.put_nowait((name, payload))
        except asyncio.QueueFull:
            logger.warning("Event dropped for slow websocket client", extra={"data": {"event": name}})

    event_broker.subscribe(enqueue)
    logger.info("Event stream connected")
    tasks: list[asyncio.Task] = [
        asyncio.create_task(_forward_events(websocket, queue)),
        asyncio.create_task(_answer_heartbeats(websocket)),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Event stream failed", exc_info=exc)
    finally:
        event_broker.unsubscribe(enqueue)
        for task in tasks:
            task.cancel()
        logger.info("Event stream disconnected")
