"""
Notification fetcher - what currently needs an admin's attention.

Two tiers: the dedicated notifications endpoint is authoritative when it
answers; otherwise the full admin listing is filtered down to recent pending
entities. Failures never reach the caller, they become an empty list.
"""

from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from util.logging import logger
from . import config, routes
from .errors import DashboardError, SchemaMismatch
from .orphans import filter_orphans
from .payloads import Entity, NotificationItem, parse_entity_listing, parse_notifications, ref_name
from .schema import ApprovalStatus, EntityKind, NotificationView, utcnow


def select_pending(entities: Iterable[Entity], now: datetime, recency_hours: float) -> List[Entity]:
    """Pending entities created within the trailing window.

    A window of 0 disables the recency check. Entities without a readable
    creation time never pass an active window.
    """
    cutoff = now - timedelta(hours=recency_hours) if recency_hours else None
    selected = []
    for entity in entities:
        if entity.approval_status is not ApprovalStatus.PENDING:
            continue
        if cutoff is not None and (entity.created_at is None or entity.created_at < cutoff):
            continue
        selected.append(entity)
    return selected


def view_from_entity(entity: Entity, kind: EntityKind) -> NotificationView:
    return NotificationView(
        id=entity.id,
        kind=kind,
        type=kind.submission_type,
        name=entity.name or entity.id,
        parent_id=entity.parent_id if kind is EntityKind.PRODUCT else None,
        owner=ref_name(entity.owner),
        category=ref_name(entity.category),
        timestamp=entity.created_at,
        description=entity.description,
        source="listing",
    )


def view_from_item(item: NotificationItem, kind: EntityKind) -> NotificationView:
    return NotificationView(
        id=item.id,
        kind=kind,
        type=kind.submission_type,
        name=item.display_name(),
        reference_id=item.reference_id(kind),
        parent_id=item.parent_ref() if kind is EntityKind.PRODUCT else None,
        owner=ref_name(item.owner or item.data.get("owner")),
        category=ref_name(item.category or item.data.get("category")),
        timestamp=item.created_at,
        description=item.description or item.message,
        source="notifications",
    )


class NotificationFetcher:
    """Builds the NotificationView list for one entity kind."""

    def __init__(self, client, recency_hours: Optional[float] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.client = client
        self.recency_hours = config.PENDING_RECENCY_HOURS if recency_hours is None else recency_hours
        self.clock = clock

    def fetch_notifications(self, kind: EntityKind) -> List[NotificationView]:
        kind = EntityKind(kind)
        try:
            views = self._from_notifications_endpoint(kind)
        except DashboardError as e:
            logger.log_fetch(routes.notifications(), "fallback", {"kind": kind.value, "reason": str(e)})
            try:
                views = self._from_listing(kind)
            except DashboardError as e2:
                logger.log_fetch(routes.admin_listing(kind), "failed", {"kind": kind.value, "error": str(e2)})
                return []

        if kind is EntityKind.PRODUCT:
            views = filter_orphans(views, EntityKind.BUSINESS, self.client)

        logger.log_fetch("notifications", "success", {"kind": kind.value, "count": len(views)})
        return views

    def _from_notifications_endpoint(self, kind: EntityKind) -> List[NotificationView]:
        body = self.client.get(routes.notifications()).require_body()
        if body is None:
            raise SchemaMismatch("notifications endpoint returned no body", path=routes.notifications())
        items = parse_notifications(body)
        return [view_from_item(item, kind) for item in items if item.is_kind(kind)]

    def _from_listing(self, kind: EntityKind) -> List[NotificationView]:
        entities = parse_entity_listing(kind, self.client.get(routes.admin_listing(kind)).require_body())
        pending = select_pending(entities, self.clock(), self.recency_hours)
        return [view_from_entity(entity, kind) for entity in pending]
