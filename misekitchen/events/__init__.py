"""주방 이벤트 출력 포트 패키지.

Kitchen notification events: names, broker and session staging helpers.

Usage:
    from misekitchen.events import event_types
    from misekitchen.events.broker import queue_event
    queue_event(db, event_types.SALE_REGISTERED, {"sale_id": str(sale.id)})
"""
