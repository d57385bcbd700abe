"""
In-process event bus connecting open views.

Delivery is synchronous and reaches only subscribers in this process; other
processes learn about changes from their next poll of the backend.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from util.logging import logger
from .schema import EntityKind, StatusChangeEvent

_CREATED_EVENTS = {
    EntityKind.BUSINESS: "newBusinessCreated",
    EntityKind.PRODUCT: "newProductCreated",
}

_STATUS_EVENTS = {
    EntityKind.BUSINESS: "businessStatusUpdated",
    EntityKind.PRODUCT: "productStatusUpdated",
}


def created_event(kind: EntityKind) -> str:
    return _CREATED_EVENTS[EntityKind(kind)]


def status_event(kind: EntityKind) -> str:
    return _STATUS_EVENTS[EntityKind(kind)]


@dataclass
class BusEvent:
    name: str
    detail: Dict[str, Any] = field(default_factory=dict)


Handler = Callable[[BusEvent], None]


class EventBus:
    """Named-channel publish/subscribe.

    Handlers are not filtered beyond the event name, so each handler checks
    the entity id in the detail itself.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        """Register a handler; the returned callable unsubscribes it (idempotent)."""
        if not callable(handler):
            raise ValueError(f"Handler must be callable: {handler}")

        with self._lock:
            self._handlers.setdefault(name, []).append(handler)

        def unsubscribe():
            with self._lock:
                handlers = self._handlers.get(name, [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def publish(self, name: str, detail: Dict[str, Any] = None) -> int:
        """Deliver to every current subscriber; returns how many were called."""
        event = BusEvent(name=name, detail=dict(detail or {}))
        with self._lock:
            handlers = list(self._handlers.get(name, []))

        logger.log_bus_event(name, len(handlers), {"entity_id": event.detail.get("entityId")})

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # A failing handler is logged and the rest still run
                logger.exception(f"Event handler for '{name}' failed")

        return len(handlers)

    def handler_count(self, name: str) -> int:
        with self._lock:
            return len(self._handlers.get(name, []))


def publish_created(bus: EventBus, kind: EntityKind, entity_id: str) -> int:
    return bus.publish(created_event(kind), {"entityId": entity_id, "kind": EntityKind(kind).value})


def publish_status_change(bus: EventBus, event: StatusChangeEvent) -> int:
    return bus.publish(status_event(event.kind), event.to_detail())
