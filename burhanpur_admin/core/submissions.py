"""
Owner-side submissions: register a business or list a product.

A successful submission flags the new entity as pending locally and announces
it on the bus, so open lists pick it up before the backend reports a status.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from util.logging import logger, sanitize_payload
from . import routes
from .errors import DashboardError
from .events import EventBus, publish_created
from .overrides import LocalOverrideStore
from .payloads import extract_created_id
from .schema import EntityKind


@dataclass
class SubmissionResult:
    ok: bool
    kind: EntityKind
    entity_id: Optional[str] = None
    error: Optional[DashboardError] = None

    @property
    def message(self) -> str:
        if self.ok:
            return f"{self.kind.value.capitalize()} submitted for approval"
        return f"Error submitting {self.kind.value}: {self.error}"


class SubmissionService:
    def __init__(self, client, store: LocalOverrideStore, bus: EventBus):
        self.client = client
        self.store = store
        self.bus = bus

    def submit_business(self, payload: Dict[str, Any]) -> SubmissionResult:
        return self._submit(EntityKind.BUSINESS, dict(payload))

    def submit_product(self, business_id: str, payload: Dict[str, Any]) -> SubmissionResult:
        body = dict(payload)
        body["bussinessId"] = business_id
        return self._submit(EntityKind.PRODUCT, body)

    def _submit(self, kind: EntityKind, body: Dict[str, Any]) -> SubmissionResult:
        path = routes.register(kind)
        try:
            response = self.client.post(path, json=body)
            response.raise_for_command()
        except DashboardError as e:
            logger.log_command(kind.value, "submit", "-", "failed", {"error": str(e), "path": path})
            return SubmissionResult(False, kind, error=e)

        entity_id = extract_created_id(response.body)
        if not entity_id:
            # Nothing to flag or announce; the next poll shows the new entity
            logger.warning(f"Created {kind.value} response carried no id: {sanitize_payload(response.body)}")
            logger.log_command(kind.value, "submit", "-", "success")
            return SubmissionResult(True, kind)

        self.store.set_pending(kind, entity_id)
        logger.log_command(kind.value, "submit", entity_id, "success")
        publish_created(self.bus, kind, entity_id)
        return SubmissionResult(True, kind, entity_id=entity_id)
