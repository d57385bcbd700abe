"""
Configuration tests.
"""

import pytest

from burhanpur_admin.core import config, routes
from burhanpur_admin.core.schema import EntityKind


def test_defaults_are_valid():
    assert config.validate_config() == []


def test_invalid_method(monkeypatch):
    monkeypatch.setattr(config, "COMMAND_METHOD", "PATCH")
    assert any("COMMAND_METHOD" in issue for issue in config.validate_config())


def test_debounce_in_seconds(monkeypatch):
    monkeypatch.setattr(config, "REFRESH_DEBOUNCE_MS", 250)
    assert config.get_debounce_delay() == 0.25


def test_resources():
    assert config.get_resource(EntityKind.BUSINESS) == "bussiness"
    assert config.get_resource("product") == "product"
    with pytest.raises(ValueError):
        config.get_resource("order")


def test_routes():
    assert routes.admin_listing(EntityKind.BUSINESS) == "/bussiness/admin/all"
    assert routes.approve(EntityKind.PRODUCT, "p1") == "/product/admin/approve/p1"
    assert routes.reject(EntityKind.BUSINESS, "b1") == "/bussiness/admin/reject/b1"
    assert routes.register(EntityKind.BUSINESS) == "/bussiness/registerBuss"
    assert routes.register(EntityKind.PRODUCT) == "/product/createproduct"
    assert routes.owner_businesses("o1") == "/bussiness/getBussById/o1"
    assert routes.business_products("b1") == "/product/business/b1"
