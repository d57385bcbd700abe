"""
Wire schema tests - envelopes, status normalization and lenient fields.
"""

import pytest
from datetime import datetime, timezone

from burhanpur_admin.core.errors import SchemaMismatch
from burhanpur_admin.core.payloads import (
    parse_timestamp,
    parse_business_listing,
    parse_product_listing,
    parse_owner_businesses,
    parse_notifications,
    extract_created_id,
)
from burhanpur_admin.core.schema import ApprovalStatus, EntityKind, normalize_approval_status


class TestStatusNormalization:
    @pytest.mark.parametrize("raw", ["denied", "Denied", "rejected", "Rejected", " REJECTED "])
    def test_negative_spellings(self, raw):
        assert normalize_approval_status(raw) is ApprovalStatus.REJECTED

    def test_unknown_values(self):
        assert normalize_approval_status(None) is None
        assert normalize_approval_status("on-hold") is None

    def test_terminal(self):
        assert ApprovalStatus.APPROVED.is_terminal
        assert not ApprovalStatus.PENDING.is_terminal


class TestTimestamps:
    def test_zulu_string(self):
        assert parse_timestamp("2026-10-19T10:00:00Z") == datetime(2026, 10, 19, 10, tzinfo=timezone.utc)

    def test_epoch_millis(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-10-19T10:00:00").tzinfo == timezone.utc

    def test_garbage(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp("") is None


class TestListings:
    def test_business_listing(self):
        entities = parse_business_listing({"data": [
            {"_id": "b1", "name": "Cafe", "approvalStatus": "Pending", "createdAt": "2026-10-19T10:00:00Z"},
            {"_id": "b2", "approvalStatus": "denied", "createdAt": "not a date"},
        ]})

        assert [e.id for e in entities] == ["b1", "b2"]
        assert entities[0].approval_status is ApprovalStatus.PENDING
        assert entities[1].approval_status is ApprovalStatus.REJECTED
        assert entities[1].created_at is None

    def test_invalid_items_are_skipped(self):
        entities = parse_business_listing({"data": [{"name": "no id"}, {"_id": ""}, {"_id": "b1"}]})
        assert [e.id for e in entities] == ["b1"]

    def test_product_listing_and_parent_spellings(self):
        entities = parse_product_listing({"result": {"products": [
            {"_id": "p1", "bussinessId": "b1"},
            {"_id": "p2", "businessId": "b2"},
            {"_id": "p3", "business": {"_id": "b3", "name": "Shop"}},
        ]}})
        assert [e.parent_id for e in entities] == ["b1", "b2", "b3"]

    def test_empty_result(self):
        assert parse_product_listing({"result": {}}) == []

    def test_envelope_mismatch(self):
        with pytest.raises(SchemaMismatch):
            parse_business_listing(["not", "an", "object"])
        with pytest.raises(SchemaMismatch):
            parse_business_listing({"data": "nope"})

    def test_owner_businesses_single_object(self):
        entities = parse_owner_businesses({"result": {"_id": "b1", "name": "Only"}})
        assert [e.id for e in entities] == ["b1"]


class TestNotifications:
    def test_enveloped(self):
        items = parse_notifications({"result": {"notifications": [
            {"_id": "n1", "type": "business_submission", "data": {"businessId": "b1"}},
            {"_id": "n2", "type": "order", "data": None},
        ]}})

        assert items[0].is_kind(EntityKind.BUSINESS)
        assert items[0].reference_id(EntityKind.BUSINESS) == "b1"
        assert not items[1].is_kind(EntityKind.BUSINESS)
        assert items[1].data == {}

    def test_bare_list_and_data_type(self):
        items = parse_notifications([{"_id": "n1", "type": "other", "data": {"type": "product", "productId": "p1"}}])
        assert items[0].is_kind(EntityKind.PRODUCT)
        assert items[0].reference_id(EntityKind.PRODUCT) == "p1"

    def test_plain_business_type(self):
        items = parse_notifications([{"_id": "n1", "type": "business"}])
        assert items[0].is_kind(EntityKind.BUSINESS)


class TestCreatedId:
    @pytest.mark.parametrize("body", [
        {"data": {"_id": "x1"}},
        {"result": {"_id": "x1"}},
        {"_id": "x1"},
    ])
    def test_shapes(self, body):
        assert extract_created_id(body) == "x1"

    def test_missing(self):
        assert extract_created_id({"success": True}) is None
        assert extract_created_id(None) is None
