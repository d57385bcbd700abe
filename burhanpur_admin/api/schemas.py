"""
Request and response models for the local dashboard API.
"""

from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime


class HealthResponse(BaseModel):
    status: str
    version: str
    store_health: bool
    pending_overrides: int


class NotificationResponse(BaseModel):
    id: str
    entity_id: str
    kind: str
    type: str
    name: str
    parent_id: Optional[str] = None
    owner: Optional[str] = None
    category: Optional[str] = None
    timestamp: Optional[datetime] = None
    description: Optional[str] = None
    source: str


class NotificationListResponse(BaseModel):
    kind: str
    pending_count: int
    items: List[NotificationResponse]


class RejectRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator('reason')
    @classmethod
    def reason_length(cls, v):
        if v is not None and len(v) > 500:
            raise ValueError('reason must be at most 500 characters')
        return v


class CommandResponse(BaseModel):
    success: bool
    entity_id: str
    kind: str
    action: str
    message: str


class OverrideResponse(BaseModel):
    key: str
    kind: str
    entity_id: str
    set_at: Optional[datetime] = None


class OverrideListResponse(BaseModel):
    items: List[OverrideResponse]


class GarbageCollectResponse(BaseModel):
    kind: str
    removed: List[str]
    kept: int
