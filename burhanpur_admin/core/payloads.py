"""
Wire schemas for the remote source of truth.

Each endpoint gets one declared envelope; bodies are validated and normalized
here so the rest of the package only ever sees Entity and NotificationItem.
Individual items that fail validation are dropped and logged; an envelope that
does not match raises SchemaMismatch, which read paths treat as a failed fetch.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from util.logging import logger
from .errors import SchemaMismatch
from .schema import ApprovalStatus, EntityKind, normalize_approval_status


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort timestamp parsing; anything unreadable becomes None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # JavaScript-style epoch milliseconds
        parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def ref_id(value: Any) -> Optional[str]:
    """ID of a reference that may be a bare id or an embedded document."""
    if value is None:
        return None
    if isinstance(value, dict):
        nested = value.get("_id") or value.get("id")
        return str(nested) if nested else None
    text = str(value).strip()
    return text or None


def ref_name(value: Any) -> Optional[str]:
    """Display name of a reference that may be a bare id or an embedded document."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get("name") or value.get("title") or ref_id(value)
    return str(value)


class _RemoteModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    name: Optional[str] = None
    description: Optional[str] = None
    owner: Optional[Any] = None
    category: Optional[Any] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    bussiness_id: Optional[Any] = Field(default=None, alias="bussinessId")
    business_id: Optional[Any] = Field(default=None, alias="businessId")
    business: Optional[Any] = None

    @field_validator("id", mode="before")
    @classmethod
    def id_must_not_be_empty(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("_id cannot be empty")
        return str(v).strip()

    @field_validator("created_at", mode="before")
    @classmethod
    def lenient_timestamp(cls, v):
        return parse_timestamp(v)

    @property
    def parent_id(self) -> Optional[str]:
        """Owning business, however this payload spells it."""
        return ref_id(self.bussiness_id) or ref_id(self.business_id) or ref_id(self.business)


class Entity(_RemoteModel):
    """A business or product as listed by the backend."""

    approval_status: Optional[ApprovalStatus] = Field(default=None, alias="approvalStatus")
    status: Optional[str] = None  # active|inactive, unrelated to approval
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("approval_status", mode="before")
    @classmethod
    def canonical_status(cls, v):
        return normalize_approval_status(v)

    @field_validator("updated_at", mode="before")
    @classmethod
    def lenient_updated_at(cls, v):
        return parse_timestamp(v)


class NotificationItem(_RemoteModel):
    """An item from the dedicated notifications endpoint."""

    type: Optional[str] = None
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def data_defaults_to_empty(cls, v):
        return v if isinstance(v, dict) else {}

    def is_kind(self, kind: EntityKind) -> bool:
        return (
            self.type in (kind.submission_type, kind.value)
            or self.data.get("type") == kind.value
        )

    def reference_id(self, kind: EntityKind) -> Optional[str]:
        return ref_id(self.data.get(f"{kind.value}Id"))

    def parent_ref(self) -> Optional[str]:
        return (
            self.parent_id
            or ref_id(self.data.get("bussinessId"))
            or ref_id(self.data.get("businessId"))
        )

    def display_name(self) -> str:
        return self.name or self.data.get("name") or self.message or self.id


# Envelopes, one per endpoint

class BusinessListing(BaseModel):
    data: Optional[List[Dict[str, Any]]] = None


class ProductsResult(BaseModel):
    products: Optional[List[Dict[str, Any]]] = None


class ProductListing(BaseModel):
    result: Optional[ProductsResult] = None


class OwnerBusinessListing(BaseModel):
    result: Optional[Union[List[Dict[str, Any]], Dict[str, Any]]] = None


class NotificationsResult(BaseModel):
    notifications: Optional[List[Dict[str, Any]]] = None


class NotificationsEnvelope(BaseModel):
    result: Optional[NotificationsResult] = None


class CreatedEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[Any] = Field(default=None, alias="_id")
    data: Optional[Any] = None
    result: Optional[Any] = None


def _envelope(model, body: Any, operation: str):
    if not isinstance(body, dict):
        raise SchemaMismatch(f"{operation}: expected an object, got {type(body).__name__}")
    try:
        return model.model_validate(body)
    except ValidationError as e:
        logger.log_schema_validation_error(operation, e.errors())
        raise SchemaMismatch(f"{operation}: {e.error_count()} validation error(s)") from e


def _items(model, raw_items: Optional[List[Dict[str, Any]]], operation: str) -> list:
    parsed = []
    for raw in raw_items or []:
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as e:
            logger.log_schema_validation_error(operation, e.errors(), raw)
    return parsed


def parse_business_listing(body: Any) -> List[Entity]:
    """GET /<business>/admin/all -> {data: [...]}"""
    envelope = _envelope(BusinessListing, body, "business_listing")
    return _items(Entity, envelope.data, "business_listing")


def parse_product_listing(body: Any) -> List[Entity]:
    """GET /product/admin/all and /product/business/<id> -> {result: {products: [...]}}"""
    envelope = _envelope(ProductListing, body, "product_listing")
    products = envelope.result.products if envelope.result else None
    return _items(Entity, products, "product_listing")


def parse_entity_listing(kind: EntityKind, body: Any) -> List[Entity]:
    if EntityKind(kind) is EntityKind.BUSINESS:
        return parse_business_listing(body)
    return parse_product_listing(body)


def parse_owner_businesses(body: Any) -> List[Entity]:
    """GET /<business>/getBussById/<ownerId> -> {result: [...]} or {result: {...}}"""
    envelope = _envelope(OwnerBusinessListing, body, "owner_businesses")
    result = envelope.result
    if isinstance(result, dict):
        result = [result]
    return _items(Entity, result, "owner_businesses")


def parse_notifications(body: Any) -> List[NotificationItem]:
    """GET /notifications -> {result: {notifications: [...]}} or a bare list."""
    if isinstance(body, list):
        return _items(NotificationItem, body, "notifications")
    envelope = _envelope(NotificationsEnvelope, body, "notifications")
    notifications = envelope.result.notifications if envelope.result else None
    return _items(NotificationItem, notifications, "notifications")


def extract_created_id(body: Any) -> Optional[str]:
    """ID of a freshly created entity: data._id, result._id or _id."""
    if not isinstance(body, dict):
        return None
    envelope = CreatedEnvelope.model_validate(body)
    for candidate in (envelope.data, envelope.result):
        if isinstance(candidate, dict) and candidate.get("_id"):
            return str(candidate["_id"])
    return str(envelope.id) if envelope.id else None
