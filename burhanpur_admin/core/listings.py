"""
Loaders for the entity lists the views poll.
Each loader raises DashboardError on failure; the view decides how to degrade.
"""

from typing import Callable, List

from . import routes
from .payloads import Entity, parse_entity_listing, parse_owner_businesses, parse_product_listing
from .schema import EntityKind

Loader = Callable[[], List[Entity]]


def admin_listing_loader(client, kind: EntityKind) -> Loader:
    """Everything of one kind, as the admin screens see it."""
    kind = EntityKind(kind)

    def load():
        return parse_entity_listing(kind, client.get(routes.admin_listing(kind)).require_body())

    return load


def owner_business_loader(client, owner_id: str) -> Loader:
    """Businesses registered by one owner."""

    def load():
        return parse_owner_businesses(client.get(routes.owner_businesses(owner_id)).require_body())

    return load


def business_product_loader(client, business_id: str) -> Loader:
    """Products listed under one business."""

    def load():
        return parse_product_listing(client.get(routes.business_products(business_id)).require_body())

    return load
