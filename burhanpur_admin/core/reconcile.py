"""
Reconciliation of remote state with local pending flags, and the polling views built on it.

The backend is the source of truth for terminal statuses. A local flag only
keeps an entity shown as pending until the backend agrees (or the entity is
gone). Views refresh on mount, on a fixed interval, on bus events (debounced)
and on focus; out-of-order or post-unmount results are discarded.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from util.logging import logger
from . import config
from .errors import DashboardError
from .events import BusEvent, EventBus, created_event, status_event
from .heartbeat import Scheduler, TimerHandle
from .overrides import LocalOverrideStore
from .payloads import Entity
from .schema import ApprovalStatus, EntityKind, NotificationView, StatusChangeEvent

# Guard windows closer than this to their end count as over
_CLOCK_SLACK = 1e-6


@dataclass
class ReconciledEntity:
    """An entity as a view displays it."""
    entity: Entity
    effective_status: Optional[ApprovalStatus]
    locally_pending: bool = False

    @property
    def id(self) -> str:
        return self.entity.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entity.id,
            "name": self.entity.name,
            "remote_status": self.entity.approval_status.value if self.entity.approval_status else None,
            "effective_status": self.effective_status.value if self.effective_status else None,
            "locally_pending": self.locally_pending,
        }


def merge_with_overrides(entity: Entity, kind: EntityKind, store: LocalOverrideStore,
                         confirmed: Dict[str, ApprovalStatus], trust_server: bool = False) -> ReconciledEntity:
    """Combine the remote status with the local flag and update both bookkeeping maps.

    A terminal remote status wins and clears the flag, except when its
    updatedAt predates the flag (a stale read), unless trust_server is set.
    A terminal status seen once is remembered in `confirmed` and outlives a
    later stale pending read.
    """
    remote = entity.approval_status

    if remote is not None and remote.is_terminal:
        entry = store.get_entry(kind, entity.id)
        if (entry is not None and not trust_server and entry.set_at and entity.updated_at
                and entity.updated_at < entry.set_at):
            return ReconciledEntity(entity, ApprovalStatus.PENDING, locally_pending=True)
        if entry is not None:
            store.clear_pending(kind, entity.id)
        confirmed[entity.id] = remote
        return ReconciledEntity(entity, remote)

    if entity.id in confirmed:
        if store.is_pending(kind, entity.id):
            store.clear_pending(kind, entity.id)
        return ReconciledEntity(entity, confirmed[entity.id])

    if store.is_pending(kind, entity.id):
        return ReconciledEntity(entity, ApprovalStatus.PENDING, locally_pending=True)

    return ReconciledEntity(entity, remote)


class PollingView(ABC):
    """Base for anything that mirrors remote state on a schedule.

    Fetches run outside the lock and are stamped with a sequence number; a
    result is applied only if nothing newer (fetch or local patch) was
    applied first, and only if the view was not unmounted meanwhile.
    """

    def __init__(self, name: str, scheduler: Scheduler, bus: Optional[EventBus] = None,
                 poll_interval: Optional[float] = None, debounce_delay: Optional[float] = None,
                 min_refresh_interval: Optional[float] = None):
        self.name = name
        self.scheduler = scheduler
        self.bus = bus
        self.poll_interval = poll_interval or config.OWNER_POLL_INTERVAL_SEC
        self.debounce_delay = config.get_debounce_delay() if debounce_delay is None else debounce_delay
        self.min_refresh_interval = (
            config.MIN_REFRESH_INTERVAL_SEC if min_refresh_interval is None else min_refresh_interval
        )

        self._lock = threading.RLock()
        self._issued_seq = 0
        self._applied_seq = 0
        self._generation = 0
        self._last_completed: Optional[float] = None
        self._debounce_handle: Optional[TimerHandle] = None
        self._debounce_trust = False
        self._poll_handle: Optional[TimerHandle] = None
        self._unsubscribers: List[Callable[[], None]] = []
        self._listeners: List[Callable[['PollingView'], None]] = []
        self._stop_hooks: List[Callable[[], None]] = []
        self.mounted = False
        self.stopped = False

    @abstractmethod
    def _fetch(self) -> Any:
        """Load fresh data. Must not raise DashboardError."""
        pass

    @abstractmethod
    def _apply(self, result: Any, trust_server: bool) -> None:
        """Install a fetch result. Called with the lock held."""
        pass

    def _subscriptions(self) -> Dict[str, Callable[[BusEvent], None]]:
        return {}

    # Lifecycle

    def start(self) -> None:
        """Mount: subscribe, refresh immediately, then poll."""
        with self._lock:
            if self.mounted:
                return
            self.mounted = True
            self.stopped = False

        if self.bus is not None:
            self._unsubscribers = [
                self.bus.subscribe(name, handler) for name, handler in self._subscriptions().items()
            ]

        self.refresh(force=True)
        self._poll_handle = self.scheduler.call_every(self.poll_interval, self._poll, name=f"{self.name}.poll")
        logger.log_refresh(self.name, "mounted", {"poll_interval": self.poll_interval})

    def stop(self) -> None:
        """Unmount: no further fetches start and in-flight ones are dropped."""
        with self._lock:
            self.mounted = False
            self.stopped = True
            self._generation += 1
            handles = [self._poll_handle, self._debounce_handle]
            self._poll_handle = None
            self._debounce_handle = None
            unsubscribers, self._unsubscribers = self._unsubscribers, []
            unsubscribers += self._stop_hooks
            self._stop_hooks = []

        for handle in handles:
            if handle is not None:
                handle.cancel()
        for unsubscribe in unsubscribers:
            unsubscribe()
        logger.log_refresh(self.name, "unmounted")

    def on_stop(self, callback: Callable[[], None]) -> None:
        """Run callback once when the view is next stopped."""
        with self._lock:
            self._stop_hooks.append(callback)

    def add_listener(self, callback: Callable[['PollingView'], None]) -> Callable[[], None]:
        """Call back after every applied change; returns a remover."""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                logger.exception(f"Listener on view '{self.name}' failed")

    # Refresh paths

    def refresh(self, force: bool = False, trust_server: bool = False) -> bool:
        """Fetch and apply. Returns True if the result was applied."""
        with self._lock:
            if self.stopped:
                logger.log_refresh(self.name, "skipped", {"reason": "unmounted"})
                return False
            if not force and self._guard_remaining() > 0:
                logger.log_refresh(self.name, "skipped", {"reason": "min_interval"})
                return False
            self._issued_seq += 1
            seq = self._issued_seq
            generation = self._generation

        result = self._fetch()

        with self._lock:
            self._last_completed = self.scheduler.now()
            if generation != self._generation:
                logger.log_refresh(self.name, "discarded", {"seq": seq, "reason": "unmounted"})
                return False
            if seq <= self._applied_seq:
                logger.log_refresh(self.name, "discarded", {"seq": seq, "applied": self._applied_seq})
                return False
            self._applied_seq = seq
            self._apply(result, trust_server)

        logger.log_refresh(self.name, "applied", {"seq": seq, "force": force})
        self._notify()
        return True

    def schedule_refresh(self, trust_server: bool = False) -> None:
        """Debounced refresh; each call restarts the timer."""
        with self._lock:
            if self.stopped:
                return
            if self._debounce_handle is not None:
                self._debounce_handle.cancel()
            self._debounce_trust = self._debounce_trust or trust_server
            self._debounce_handle = self.scheduler.call_later(
                self.debounce_delay, self._fire_debounced, name=f"{self.name}.debounce"
            )

    def _guard_remaining(self) -> float:
        """Seconds until a non-forced refresh is allowed again. Lock must be held."""
        if self._last_completed is None:
            return 0.0
        remaining = self._last_completed + self.min_refresh_interval - self.scheduler.now()
        return remaining if remaining > _CLOCK_SLACK else 0.0

    def _fire_debounced(self) -> None:
        with self._lock:
            self._debounce_handle = None
            if self.stopped:
                return
            wait = self._guard_remaining()
            if wait > 0:
                # Too soon after the last refresh: run once the guard window ends
                logger.log_refresh(self.name, "deferred", {"wait": round(wait, 3)})
                self._debounce_handle = self.scheduler.call_later(
                    wait, self._fire_debounced, name=f"{self.name}.debounce"
                )
                return
            trust_server = self._debounce_trust
            self._debounce_trust = False
        self.refresh(trust_server=trust_server)

    def _poll(self) -> None:
        self.refresh()

    def notify_focus(self) -> None:
        """The user came back to this view."""
        self.schedule_refresh(trust_server=True)

    def _mark_patched(self) -> None:
        """Make any fetch issued before now stale. Lock must be held."""
        self._applied_seq = self._issued_seq


class Visibility(str, Enum):
    ALL = "all"
    HIDE_PENDING = "hide_pending"
    APPROVED_ONLY = "approved_only"


class EntityListView(PollingView):
    """A list of businesses or products with local pending flags merged in."""

    def __init__(self, name: str, kind: EntityKind, loader: Callable[[], List[Entity]],
                 store: LocalOverrideStore, scheduler: Scheduler, bus: Optional[EventBus] = None,
                 visibility: Visibility = Visibility.ALL, collect_garbage: bool = False, **kwargs):
        super().__init__(name, scheduler, bus, **kwargs)
        self.kind = EntityKind(kind)
        self.loader = loader
        self.store = store
        self.visibility = Visibility(visibility)
        # Only views over complete listings may garbage-collect
        self.collect_garbage = collect_garbage
        self._items: List[ReconciledEntity] = []
        self._confirmed: Dict[str, ApprovalStatus] = {}

    def _fetch(self) -> Optional[List[Entity]]:
        try:
            return self.loader()
        except DashboardError as e:
            logger.log_refresh(self.name, "failed", {"error": str(e)})
            return None

    def _apply(self, entities, trust_server):
        if entities is None:
            self._items = []
            return

        self._items = [
            merge_with_overrides(entity, self.kind, self.store, self._confirmed, trust_server)
            for entity in entities
        ]
        if self.collect_garbage:
            self.store.garbage_collect({entity.id for entity in entities}, self.kind)

    def _subscriptions(self):
        return {
            created_event(self.kind): lambda event: self.schedule_refresh(),
            status_event(self.kind): self._on_status_changed,
        }

    def _on_status_changed(self, event: BusEvent) -> None:
        change = StatusChangeEvent.from_detail(self.kind, event.detail)
        with self._lock:
            if not self.tracks(change.entity_id):
                return
            if change.new_status.is_terminal:
                self._confirmed[change.entity_id] = change.new_status
                self.store.clear_pending(self.kind, change.entity_id)
            self._items = [
                ReconciledEntity(item.entity, change.new_status) if item.id == change.entity_id else item
                for item in self._items
            ]
            self._mark_patched()
        self._notify()
        self.schedule_refresh()

    def tracks(self, entity_id: str) -> bool:
        with self._lock:
            return any(item.id == entity_id for item in self._items)

    @property
    def items(self) -> List[ReconciledEntity]:
        with self._lock:
            return list(self._items)

    @property
    def visible(self) -> List[ReconciledEntity]:
        items = self.items
        if self.visibility is Visibility.HIDE_PENDING:
            return [item for item in items if item.effective_status is not ApprovalStatus.PENDING]
        if self.visibility is Visibility.APPROVED_ONLY:
            return [item for item in items if item.effective_status is ApprovalStatus.APPROVED]
        return items

    def get(self, entity_id: str) -> Optional[ReconciledEntity]:
        for item in self.items:
            if item.id == entity_id:
                return item
        return None

    def stats(self) -> Dict[str, int]:
        """Counts by effective status."""
        counts = {status.value: 0 for status in ApprovalStatus}
        counts["unknown"] = 0
        for item in self.items:
            counts[item.effective_status.value if item.effective_status else "unknown"] += 1
        counts["total"] = len(self.items)
        return counts


class NotificationBoard(PollingView):
    """Admin notification list for one kind; pending_count is always its length."""

    def __init__(self, kind: EntityKind, fetcher, scheduler: Scheduler, bus: Optional[EventBus] = None,
                 name: Optional[str] = None, **kwargs):
        kwargs.setdefault("poll_interval", config.ADMIN_POLL_INTERVAL_SEC)
        kind = EntityKind(kind)
        super().__init__(name or f"{kind.value}_notifications", scheduler, bus, **kwargs)
        self.kind = kind
        self.fetcher = fetcher
        self._notifications: List[NotificationView] = []
        self._resolved: Set[str] = set()

    def _fetch(self) -> List[NotificationView]:
        return self.fetcher.fetch_notifications(self.kind)

    def _apply(self, views, trust_server):
        # Ids the backend no longer lists need no hiding
        self._resolved = {
            entity_id for entity_id in self._resolved
            if any(view.matches(entity_id) for view in views)
        }
        self._notifications = [
            view for view in views
            if not any(view.matches(entity_id) for entity_id in self._resolved)
        ]

    def _subscriptions(self):
        return {
            created_event(self.kind): lambda event: self.schedule_refresh(),
            status_event(self.kind): self._on_status_changed,
        }

    def _on_status_changed(self, event: BusEvent) -> None:
        change = StatusChangeEvent.from_detail(self.kind, event.detail)
        if not self.tracks(change.entity_id):
            return
        if change.new_status.is_terminal:
            self.remove(change.entity_id)
        self.schedule_refresh()

    def remove(self, entity_id: str) -> int:
        """Drop an entity's notifications now, ahead of the next fetch.

        The id is remembered, so a later fetch that still lists it (a lagging
        backend) does not bring it back. It is forgotten once a fetch omits it.
        """
        with self._lock:
            before = len(self._notifications)
            self._notifications = [view for view in self._notifications if not view.matches(entity_id)]
            self._resolved.add(entity_id)
            self._mark_patched()
            removed = before - len(self._notifications)
        self._notify()
        return removed

    def tracks(self, entity_id: str) -> bool:
        with self._lock:
            return any(view.matches(entity_id) for view in self._notifications)

    @property
    def notifications(self) -> List[NotificationView]:
        with self._lock:
            return list(self._notifications)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._notifications)
