"""
Internal records shared by the fetcher, the commands and the reconciler.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class EntityKind(str, Enum):
    BUSINESS = "business"
    PRODUCT = "product"

    @property
    def submission_type(self) -> str:
        return f"{self.value}_submission"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


# Inbound spellings seen across backend screens; "denied" is the legacy negative value
_STATUS_ALIASES = {
    "pending": ApprovalStatus.PENDING,
    "approved": ApprovalStatus.APPROVED,
    "rejected": ApprovalStatus.REJECTED,
    "denied": ApprovalStatus.REJECTED,
}

# Outbound spelling on the event bus, which existing listeners expect
_EVENT_STATUS = {
    ApprovalStatus.PENDING: "pending",
    ApprovalStatus.APPROVED: "approved",
    ApprovalStatus.REJECTED: "denied",
}


def normalize_approval_status(raw: Any) -> Optional[ApprovalStatus]:
    """Map any backend spelling onto the canonical status; unknown values become None."""
    if raw is None:
        return None
    if isinstance(raw, ApprovalStatus):
        return raw
    return _STATUS_ALIASES.get(str(raw).strip().lower())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def override_key(kind: EntityKind, entity_id: str) -> str:
    """Storage key for a local pending flag."""
    return f"pending_{EntityKind(kind).value}_{entity_id}"


def parse_override_key(key: str):
    """Inverse of override_key; returns (kind, entity_id) or None for foreign keys."""
    for kind in EntityKind:
        prefix = f"pending_{kind.value}_"
        if key.startswith(prefix) and len(key) > len(prefix):
            return kind, key[len(prefix):]
    return None


@dataclass
class OverrideEntry:
    kind: EntityKind
    entity_id: str
    set_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        return override_key(self.kind, self.entity_id)


@dataclass
class StatusChangeEvent:
    """Broadcast after a successful approve/reject."""
    entity_id: str
    kind: EntityKind
    new_status: ApprovalStatus
    action: str  # approve|reject
    timestamp: datetime = field(default_factory=utcnow)

    def to_detail(self) -> Dict[str, Any]:
        return {
            "entityId": self.entity_id,
            "status": _EVENT_STATUS[self.new_status],
            "timestamp": self.timestamp.isoformat(),
            "action": self.action,
        }

    @classmethod
    def from_detail(cls, kind: EntityKind, detail: Dict[str, Any]) -> 'StatusChangeEvent':
        timestamp = detail.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            entity_id=str(detail["entityId"]),
            kind=EntityKind(kind),
            new_status=normalize_approval_status(detail.get("status")) or ApprovalStatus.PENDING,
            action=detail.get("action", ""),
            timestamp=timestamp or utcnow(),
        )


@dataclass
class NotificationView:
    """Transient projection of an entity that needs admin attention."""
    id: str
    kind: EntityKind
    type: str  # business_submission|product_submission
    name: str
    reference_id: Optional[str] = None  # nested business/product id, when the source nests it
    parent_id: Optional[str] = None  # owning business, for products
    owner: Optional[str] = None
    category: Optional[str] = None
    timestamp: Optional[datetime] = None
    description: Optional[str] = None
    source: str = "listing"  # notifications|listing

    @property
    def entity_id(self) -> str:
        return self.reference_id or self.id

    def matches(self, entity_id: str) -> bool:
        return entity_id in (self.id, self.reference_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entity_id": self.entity_id,
            "kind": self.kind.value,
            "type": self.type,
            "name": self.name,
            "parent_id": self.parent_id,
            "owner": self.owner,
            "category": self.category,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "description": self.description,
            "source": self.source,
        }
