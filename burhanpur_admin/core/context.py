"""
Wiring of the shared dashboard services.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from util.logging import logger
from . import config
from .client import RestClient
from .commands import ApprovalService
from .events import EventBus
from .heartbeat import Scheduler, ThreadingScheduler
from .listings import admin_listing_loader, business_product_loader, owner_business_loader
from .notifications import NotificationFetcher
from .overrides import LocalOverrideStore, build_override_store
from .reconcile import EntityListView, NotificationBoard, Visibility
from .schema import EntityKind
from .submissions import SubmissionService


@dataclass
class DashboardContext:
    client: object
    store: LocalOverrideStore
    bus: EventBus
    scheduler: Scheduler
    fetcher: NotificationFetcher
    approvals: ApprovalService
    submissions: SubmissionService
    boards: Dict[EntityKind, NotificationBoard] = field(default_factory=dict)

    def board(self, kind: EntityKind) -> NotificationBoard:
        return self.boards[EntityKind(kind)]

    def admin_list(self, kind: EntityKind) -> EntityListView:
        """Admin list for a kind: every business, but only approved products."""
        kind = EntityKind(kind)
        visibility = Visibility.ALL if kind is EntityKind.BUSINESS else Visibility.APPROVED_ONLY
        view = EntityListView(
            f"admin_{kind.value}s", kind, admin_listing_loader(self.client, kind), self.store,
            self.scheduler, self.bus, visibility=visibility, collect_garbage=True,
            poll_interval=config.ADMIN_POLL_INTERVAL_SEC,
        )
        self.approvals.attach(view)
        return view

    def owner_businesses(self, owner_id: str) -> EntityListView:
        view = EntityListView(
            f"owner_{owner_id}_businesses", EntityKind.BUSINESS, owner_business_loader(self.client, owner_id),
            self.store, self.scheduler, self.bus, visibility=Visibility.HIDE_PENDING,
        )
        self.approvals.attach(view)
        return view

    def business_products(self, business_id: str) -> EntityListView:
        view = EntityListView(
            f"business_{business_id}_products", EntityKind.PRODUCT, business_product_loader(self.client, business_id),
            self.store, self.scheduler, self.bus, visibility=Visibility.HIDE_PENDING,
        )
        self.approvals.attach(view)
        return view

    def start(self) -> None:
        for board in self.boards.values():
            board.start()

    def stop(self) -> None:
        for board in self.boards.values():
            board.stop()
        if isinstance(self.scheduler, ThreadingScheduler):
            self.scheduler.shutdown()


def build_context(client=None, store: Optional[LocalOverrideStore] = None,
                  scheduler: Optional[Scheduler] = None, bus: Optional[EventBus] = None) -> DashboardContext:
    """Assemble the services; anything not passed in comes from config."""
    logger.set_debug(config.debug_enabled())
    for issue in config.validate_config():
        logger.warning(f"Config issue: {issue}")

    client = client or RestClient()
    store = store or build_override_store()
    scheduler = scheduler or ThreadingScheduler()
    bus = bus or EventBus()
    fetcher = NotificationFetcher(client)

    boards = {kind: NotificationBoard(kind, fetcher, scheduler, bus) for kind in EntityKind}
    approvals = ApprovalService(client, store, bus, boards=boards.values())

    return DashboardContext(
        client=client,
        store=store,
        bus=bus,
        scheduler=scheduler,
        fetcher=fetcher,
        approvals=approvals,
        submissions=SubmissionService(client, store, bus),
        boards=boards,
    )
