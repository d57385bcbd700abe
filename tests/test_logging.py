"""
Structured logging tests.
"""

import logging

from util.logging import StructuredLogger, sanitize_payload


def test_sanitize_truncates_nested_strings():
    payload = {"rejectionReason": "x" * 150, "tags": ["short", "y" * 120], "count": 3}
    clean = sanitize_payload(payload)

    assert clean["rejectionReason"] == "x" * 100 + "..."
    assert clean["tags"] == ["short", "y" * 100 + "..."]
    assert clean["count"] == 3


def test_command_log_format(caplog):
    log = StructuredLogger("burhanpur_admin.test")
    with caplog.at_level(logging.INFO, logger="burhanpur_admin.test"):
        log.log_command("business", "approve", "b1", "success", {"status_code": 200})

    assert "Operation: command.approve, Status: success" in caplog.text
    assert "'entity_id': 'b1'" in caplog.text


def test_failed_fetch_is_warning(caplog):
    log = StructuredLogger("burhanpur_admin.test")
    with caplog.at_level(logging.DEBUG, logger="burhanpur_admin.test"):
        log.log_fetch("/notifications", "unavailable")

    assert caplog.records[-1].levelno == logging.WARNING
