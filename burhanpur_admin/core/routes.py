"""
Backend routes per entity kind.
"""

from . import config
from .schema import EntityKind


def admin_listing(kind: EntityKind) -> str:
    return f"/{config.get_resource(kind)}/admin/all"


def approve(kind: EntityKind, entity_id: str) -> str:
    return f"/{config.get_resource(kind)}/admin/approve/{entity_id}"


def reject(kind: EntityKind, entity_id: str) -> str:
    return f"/{config.get_resource(kind)}/admin/reject/{entity_id}"


def notifications() -> str:
    return config.NOTIFICATIONS_PATH


def register(kind: EntityKind) -> str:
    if EntityKind(kind) is EntityKind.BUSINESS:
        return f"/{config.BUSINESS_RESOURCE}/registerBuss"
    return f"/{config.PRODUCT_RESOURCE}/createproduct"


def owner_businesses(owner_id: str) -> str:
    return f"/{config.BUSINESS_RESOURCE}/getBussById/{owner_id}"


def business_products(business_id: str) -> str:
    return f"/{config.PRODUCT_RESOURCE}/business/{business_id}"
