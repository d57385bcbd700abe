"""
In-memory stand-in for the Burhanpur backend.

Speaks the same envelopes as the real routes and records every call. A path
can be gated so its next GET answers with the data as it was when the request
arrived, but only after the test releases it (a slow, stale fetch).
"""

import copy
import itertools
import threading
from datetime import datetime, timezone

from burhanpur_admin.core.client import ApiResponse
from burhanpur_admin.core.errors import NetworkFailure
from burhanpur_admin.core.schema import utcnow

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt):
    return dt.isoformat().replace("+00:00", "Z")


class Gate:
    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()


class FakeBackend:
    def __init__(self, clock=utcnow):
        self.clock = clock
        self.businesses = []
        self.products = []
        self.notifications = None  # None answers 404
        self.failing = {}  # path -> status code or "network"
        self.command_status = 200
        self.calls = []
        self._ids = itertools.count(1)
        self._gates = {}
        self._lock = threading.Lock()

    # Seeding

    def add_business(self, _id, status="pending", created_at=None, updated_at=None, owner="owner1", **extra):
        record = {
            "_id": _id,
            "name": extra.pop("name", f"Business {_id}"),
            "owner": {"_id": owner, "name": f"Owner {owner}"},
            "category": {"_id": "cat1", "name": "Food"},
            "createdAt": iso(created_at or self.clock()),
            "status": "active",
        }
        if status is not None:
            record["approvalStatus"] = status
        if updated_at is not None:
            record["updatedAt"] = iso(updated_at)
        record.update(extra)
        self.businesses.append(record)
        return record

    def add_product(self, _id, business_id, status="pending", created_at=None, updated_at=None, **extra):
        record = {
            "_id": _id,
            "name": extra.pop("name", f"Product {_id}"),
            "bussinessId": business_id,
            "createdAt": iso(created_at or self.clock()),
        }
        if status is not None:
            record["approvalStatus"] = status
        if updated_at is not None:
            record["updatedAt"] = iso(updated_at)
        record.update(extra)
        self.products.append(record)
        return record

    def add_notification(self, _id, kind="business", entity_id=None, **data):
        if self.notifications is None:
            self.notifications = []
        item = {
            "_id": _id,
            "type": f"{kind}_submission",
            "message": f"New {kind} submitted",
            "createdAt": iso(self.clock()),
            "data": dict(data, **{f"{kind}Id": entity_id or _id}),
        }
        self.notifications.append(item)
        return item

    def find(self, _id):
        for record in self.businesses + self.products:
            if record["_id"] == _id:
                return record
        return None

    def gate(self, path):
        """Hold the next request to path; returns the Gate to release it."""
        gate = Gate()
        with self._lock:
            self._gates[path] = gate
        return gate

    def calls_to(self, path, method=None):
        return [c for c in self.calls if c[1] == path and (method is None or c[0] == method)]

    # Client interface

    def request(self, method, path, json=None):
        method = method.upper()
        with self._lock:
            self.calls.append((method, path, copy.deepcopy(json)))
            gate = self._gates.pop(path, None)
            response = self._respond(method, path, json)

        if gate is not None:
            gate.entered.set()
            gate.release.wait(5)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, path):
        return self.request("GET", path)

    def put(self, path, json=None):
        return self.request("PUT", path, json=json)

    def post(self, path, json=None):
        return self.request("POST", path, json=json)

    def close(self):
        pass

    # Routing

    def _respond(self, method, path, json):
        if path in self.failing:
            failure = self.failing[path]
            if failure == "network":
                return NetworkFailure("connection refused", path=path)
            return ApiResponse(failure, None if failure == 404 else {"message": "error"}, path)

        if method == "GET":
            return self._read(path)

        for action, status in (("approve", "approved"), ("reject", "Denied")):
            marker = f"/admin/{action}/"
            if marker in path:
                if self.command_status in (200, 201):
                    self._decide(path.rsplit("/", 1)[1], status)
                return ApiResponse(self.command_status, {"message": "ok"}, path)

        if method == "POST" and path == "/bussiness/registerBuss":
            record = self.add_business(f"b{next(self._ids)}", **(json or {}))
            return ApiResponse(201, {"success": True, "data": {"_id": record["_id"]}}, path)

        if method == "POST" and path == "/product/createproduct":
            body = dict(json or {})
            business_id = body.pop("bussinessId")
            record = self.add_product(f"p{next(self._ids)}", business_id, **body)
            return ApiResponse(201, {"result": {"_id": record["_id"]}}, path)

        return ApiResponse(404, None, path)

    def _read(self, path):
        if path == "/notifications":
            if self.notifications is None:
                return ApiResponse(404, None, path)
            return ApiResponse(200, {"result": {"notifications": copy.deepcopy(self.notifications)}}, path)

        if path == "/bussiness/admin/all":
            return ApiResponse(200, {"data": copy.deepcopy(self.businesses)}, path)

        if path == "/product/admin/all":
            return ApiResponse(200, {"result": {"products": copy.deepcopy(self.products)}}, path)

        if path.startswith("/bussiness/getBussById/"):
            owner_id = path.rsplit("/", 1)[1]
            owned = [b for b in self.businesses if b["owner"]["_id"] == owner_id]
            return ApiResponse(200, {"result": copy.deepcopy(owned)}, path)

        if path.startswith("/product/business/"):
            business_id = path.rsplit("/", 1)[1]
            listed = [p for p in self.products if p["bussinessId"] == business_id]
            return ApiResponse(200, {"result": {"products": copy.deepcopy(listed)}}, path)

        return ApiResponse(404, None, path)

    def _decide(self, entity_id, status):
        record = self.find(entity_id)
        if record is not None:
            record["approvalStatus"] = status
            record["updatedAt"] = iso(self.clock())
        if self.notifications is not None:
            self.notifications = [
                n for n in self.notifications
                if entity_id != n["_id"] and entity_id not in n["data"].values()
            ]
