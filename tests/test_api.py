"""
Local API tests - routes over an injected context.
"""

import pytest
from fastapi.testclient import TestClient

from burhanpur_admin.api.main import app, get_context
from burhanpur_admin.core.context import build_context
from burhanpur_admin.core.schema import EntityKind


@pytest.fixture
def ctx(backend, store, scheduler, bus):
    return build_context(client=backend, store=store, scheduler=scheduler, bus=bus)


@pytest.fixture
def client(ctx):
    app.dependency_overrides[get_context] = lambda: ctx
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client, store):
    store.set_pending(EntityKind.BUSINESS, "b1")
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["pending_overrides"] == 1


def test_notifications(client, backend):
    backend.add_notification("n1", entity_id="b1", name="Cafe")
    response = client.get("/notifications/business")
    assert response.status_code == 200
    data = response.json()
    assert data["pending_count"] == 1
    assert data["items"][0]["entity_id"] == "b1"
    assert data["items"][0]["source"] == "notifications"


def test_unknown_kind(client):
    assert client.get("/notifications/order").status_code == 422


def test_approve(client, backend, ctx):
    backend.add_business("b1")
    ctx.board(EntityKind.BUSINESS).refresh(force=True)

    response = client.post("/business/approve/b1")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert backend.calls_to("/bussiness/admin/approve/b1")
    assert ctx.board(EntityKind.BUSINESS).pending_count == 0


def test_approve_endpoint_missing(client, backend):
    backend.failing["/bussiness/admin/approve/b1"] = 404
    response = client.post("/business/approve/b1")
    assert response.status_code == 404
    assert response.json()["detail"] == "Approval endpoint not found. Please check API configuration."


def test_approve_server_error(client, backend):
    backend.failing["/product/admin/approve/p1"] = 500
    assert client.post("/product/approve/p1").status_code == 502


def test_approve_network_error(client, backend):
    backend.failing["/product/admin/approve/p1"] = "network"
    assert client.post("/product/approve/p1").status_code == 504


def test_reject_with_reason(client, backend):
    backend.add_product("p1", "b1")
    response = client.post("/product/reject/p1", json={"reason": "image blurry"})
    assert response.status_code == 200
    assert backend.calls_to("/product/admin/reject/p1")[0][2] == {"rejectionReason": "image blurry"}


def test_reject_without_body(client, backend):
    response = client.post("/business/reject/b1")
    assert response.status_code == 200
    assert backend.calls_to("/bussiness/admin/reject/b1")[0][2] == {"rejectionReason": "Not approved by admin"}


def test_overrides_list_and_delete(client, store):
    store.set_pending(EntityKind.BUSINESS, "b1")
    store.set_pending(EntityKind.PRODUCT, "p1")

    items = client.get("/overrides", params={"kind": "product"}).json()["items"]
    assert [i["key"] for i in items] == ["pending_product_p1"]

    assert client.delete("/overrides/product/p1").status_code == 200
    assert client.delete("/overrides/product/p1").status_code == 404
    assert len(client.get("/overrides").json()["items"]) == 1


def test_overrides_gc(client, backend, store):
    backend.add_business("b1")
    store.set_pending(EntityKind.BUSINESS, "b1")
    store.set_pending(EntityKind.BUSINESS, "ghost")

    data = client.post("/overrides/business/gc").json()

    assert data["removed"] == ["pending_business_ghost"]
    assert data["kept"] == 1


def test_overrides_gc_listing_failure(client, backend, store):
    store.set_pending(EntityKind.BUSINESS, "ghost")
    backend.failing["/bussiness/admin/all"] = 500

    assert client.post("/overrides/business/gc").status_code == 502
    assert store.is_pending(EntityKind.BUSINESS, "ghost")
