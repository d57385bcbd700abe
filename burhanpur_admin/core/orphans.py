"""
Orphan filter - drops product notifications whose business is gone.
"""

from typing import Iterable, List, Set

from util.logging import logger
from . import routes
from .errors import DashboardError, OrphanDataInconsistency
from .payloads import parse_entity_listing
from .schema import EntityKind, NotificationView


def check_parent(item: NotificationView, valid_parent_ids: Set[str]) -> None:
    """Raise OrphanDataInconsistency if the item's parent is missing or unknown."""
    if not item.parent_id:
        raise OrphanDataInconsistency(f"{item.kind.value} {item.entity_id} has no parent reference")
    if item.parent_id not in valid_parent_ids:
        raise OrphanDataInconsistency(f"{item.kind.value} {item.entity_id} references missing parent {item.parent_id}")


def filter_orphans(items: Iterable[NotificationView], parent_kind: EntityKind, client) -> List[NotificationView]:
    """Keep only items whose parent still exists on the backend.

    If the parent listing cannot be fetched the items are returned unchanged.
    """
    items = list(items)
    if not items:
        return items

    path = routes.admin_listing(parent_kind)
    try:
        parents = parse_entity_listing(parent_kind, client.get(path).require_body())
    except DashboardError as e:
        logger.log_fetch(path, "failed", {"purpose": "orphan_check", "error": str(e), "fail_open": True})
        return items

    valid_ids = {parent.id for parent in parents}
    kept = []
    for item in items:
        try:
            check_parent(item, valid_ids)
        except OrphanDataInconsistency as e:
            logger.debug(f"Dropping orphaned notification: {e}")
            continue
        kept.append(item)

    if len(kept) != len(items):
        logger.log_operation("orphan.filter", "success", {"dropped": len(items) - len(kept), "kept": len(kept)})
    return kept
