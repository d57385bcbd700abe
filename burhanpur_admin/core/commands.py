"""
Approve/reject commands.

A command succeeds only on HTTP 200/201. On success the affected boards are
patched first, the local flag is cleared, every attached view is re-fetched,
and the status change is broadcast last.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from util.logging import logger
from . import config, routes
from .errors import DashboardError, EndpointUnavailable, NetworkFailure
from .events import EventBus, publish_status_change
from .overrides import LocalOverrideStore
from .reconcile import NotificationBoard
from .schema import ApprovalStatus, EntityKind, StatusChangeEvent

_ACTION_STATUS = {
    "approve": ApprovalStatus.APPROVED,
    "reject": ApprovalStatus.REJECTED,
}

_ACTION_NOUN = {
    "approve": "Approval",
    "reject": "Rejection",
}

_ACTION_VERB = {
    "approve": "approving",
    "reject": "rejecting",
}


@dataclass
class CommandResult:
    ok: bool
    entity_id: str
    kind: EntityKind
    action: str
    error: Optional[DashboardError] = None

    @property
    def message(self) -> str:
        """One-line text for a toast."""
        if self.ok:
            past = "approved" if self.action == "approve" else "rejected"
            return f"{self.kind.value.capitalize()} {past} successfully"
        if isinstance(self.error, EndpointUnavailable):
            return f"{_ACTION_NOUN[self.action]} endpoint not found. Please check API configuration."
        if isinstance(self.error, NetworkFailure):
            return f"Network error while {_ACTION_VERB[self.action]} {self.kind.value}. Please try again."
        return f"Error {_ACTION_VERB[self.action]} {self.kind.value}"


class ApprovalService:
    """Sends approve/reject to the backend and keeps attached views in step."""

    def __init__(self, client, store: LocalOverrideStore, bus: EventBus,
                 boards: Iterable = (), views: Iterable = (), method: Optional[str] = None):
        self.client = client
        self.store = store
        self.bus = bus
        self.method = (method or config.COMMAND_METHOD).upper()
        self.boards: List = list(boards)
        self.views: List = list(views)

    def attach(self, view) -> None:
        """Register a view for forced refresh after commands, until the view stops."""
        target = self.boards if isinstance(view, NotificationBoard) else self.views
        if view not in target:
            target.append(view)
            view.on_stop(lambda: self.detach(view))

    def detach(self, view) -> None:
        for target in (self.boards, self.views):
            if view in target:
                target.remove(view)

    def approve(self, entity_id: str, kind: EntityKind) -> CommandResult:
        return self._execute("approve", EntityKind(kind), entity_id, routes.approve(kind, entity_id), None)

    def reject(self, entity_id: str, kind: EntityKind, reason: Optional[str] = None) -> CommandResult:
        body = {"rejectionReason": (reason or "").strip() or config.DEFAULT_REJECTION_REASON}
        return self._execute("reject", EntityKind(kind), entity_id, routes.reject(kind, entity_id), body)

    def _execute(self, action: str, kind: EntityKind, entity_id: str, path: str, body) -> CommandResult:
        try:
            response = self.client.request(self.method, path, json=body)
            response.raise_for_command()
        except DashboardError as e:
            logger.log_command(kind.value, action, entity_id, "failed", {"error": str(e), "path": path})
            return CommandResult(False, entity_id, kind, action, error=e)

        details = {"status_code": response.status_code}
        if body:
            details["body"] = body
        logger.log_command(kind.value, action, entity_id, "success", details)
        self._on_success(action, kind, entity_id)
        return CommandResult(True, entity_id, kind, action)

    def _on_success(self, action: str, kind: EntityKind, entity_id: str) -> None:
        boards = [board for board in self.boards if board.kind is kind]

        for board in boards:
            board.remove(entity_id)

        self.store.clear_pending(kind, entity_id)

        for view in boards + [view for view in self.views if view.kind is kind]:
            view.refresh(force=True)

        publish_status_change(self.bus, StatusChangeEvent(
            entity_id=entity_id,
            kind=kind,
            new_status=_ACTION_STATUS[action],
            action=action,
        ))
