"""
Submission tests and the create -> decide scenarios end to end.
"""

import pytest

from burhanpur_admin.core.client import ApiResponse
from burhanpur_admin.core.commands import ApprovalService
from burhanpur_admin.core.listings import owner_business_loader
from burhanpur_admin.core.reconcile import EntityListView, NotificationBoard, Visibility
from burhanpur_admin.core.schema import EntityKind
from burhanpur_admin.core.submissions import SubmissionService


@pytest.fixture
def submissions(backend, store, bus):
    return SubmissionService(backend, store, bus)


@pytest.fixture
def approvals(backend, store, bus):
    return ApprovalService(backend, store, bus)


class TestSubmissionService:
    def test_business_sets_flag_and_announces(self, backend, store, bus, submissions):
        created = []
        bus.subscribe("newBusinessCreated", created.append)

        result = submissions.submit_business({"name": "Cafe"})

        assert result.ok
        assert store.is_pending(EntityKind.BUSINESS, result.entity_id)
        assert backend.calls_to("/bussiness/registerBuss")[0][2] == {"name": "Cafe"}
        assert created[0].detail["entityId"] == result.entity_id

    def test_product_carries_parent(self, backend, store, submissions):
        result = submissions.submit_product("b9", {"name": "Samosa"})

        assert result.ok
        assert backend.calls_to("/product/createproduct")[0][2] == {"name": "Samosa", "bussinessId": "b9"}
        assert store.is_pending(EntityKind.PRODUCT, result.entity_id)

    def test_response_without_id_is_not_announced(self, backend, store, bus, submissions, monkeypatch):
        monkeypatch.setattr(backend, "post", lambda path, json=None: ApiResponse(201, {"success": True}, path))
        created = []
        bus.subscribe("newBusinessCreated", created.append)

        result = submissions.submit_business({"name": "Cafe"})

        assert result.ok
        assert result.entity_id is None
        assert store.list_pending() == []
        assert created == []

    def test_failure_leaves_no_flag(self, backend, store, bus, submissions):
        backend.failing["/bussiness/registerBuss"] = 500
        created = []
        bus.subscribe("newBusinessCreated", created.append)

        result = submissions.submit_business({"name": "Cafe"})

        assert not result.ok
        assert store.list_pending() == []
        assert created == []


class TestScenarios:
    def test_create_then_approve(self, backend, store, scheduler, bus, submissions, approvals):
        owner_view = EntityListView(
            "owner_businesses", EntityKind.BUSINESS, owner_business_loader(backend, "owner1"),
            store, scheduler, bus, visibility=Visibility.HIDE_PENDING,
        )
        approvals.attach(owner_view)

        business_id = submissions.submit_business({"name": "Cafe"}).entity_id
        assert store.is_pending(EntityKind.BUSINESS, business_id)

        owner_view.refresh(force=True)
        assert business_id not in [item.id for item in owner_view.visible]

        assert approvals.approve(business_id, EntityKind.BUSINESS).ok

        assert business_id in [item.id for item in owner_view.visible]
        assert not store.is_pending(EntityKind.BUSINESS, business_id)

    def test_reject_product_with_reason(self, backend, store, scheduler, bus, fetcher, submissions, approvals):
        backend.add_business("b1", status="approved")
        board = NotificationBoard(EntityKind.PRODUCT, fetcher, scheduler, bus)
        approvals.attach(board)
        observed = []
        bus.subscribe("productStatusUpdated", observed.append)

        product_id = submissions.submit_product("b1", {"name": "Samosa"}).entity_id
        board.refresh(force=True)
        assert product_id in [v.id for v in board.notifications]

        assert approvals.reject(product_id, EntityKind.PRODUCT, "image blurry").ok

        assert backend.calls_to(f"/product/admin/reject/{product_id}")[0][2] == {"rejectionReason": "image blurry"}
        board.refresh(force=True)
        assert product_id not in [v.id for v in board.notifications]
        assert observed[0].detail["entityId"] == product_id
        assert observed[0].detail["status"] == "denied"
        assert observed[0].detail["action"] == "reject"
