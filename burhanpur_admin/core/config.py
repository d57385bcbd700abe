"""
Runtime configuration for the approval reconciliation layer.
Everything is read from the environment; entry points load .env first.
"""

import os

# Remote source of truth
API_BASE_URL = os.getenv("API_BASE_URL", "https://burhanpur-city-backend-mfs4.onrender.com/api")
API_AUTH_TOKEN = os.getenv("API_AUTH_TOKEN")  # Opaque, sent verbatim
API_TIMEOUT_SEC = float(os.getenv("API_TIMEOUT_SEC", "15"))

# Resource path segments per entity kind (the backend spells it "bussiness")
BUSINESS_RESOURCE = os.getenv("BUSINESS_RESOURCE", "bussiness")
PRODUCT_RESOURCE = os.getenv("PRODUCT_RESOURCE", "product")
NOTIFICATIONS_PATH = os.getenv("NOTIFICATIONS_PATH", "/notifications")
COMMAND_METHOD = os.getenv("COMMAND_METHOD", "PUT").upper()  # PUT|POST
DEFAULT_REJECTION_REASON = os.getenv("DEFAULT_REJECTION_REASON", "Not approved by admin")

# Local override store
OVERRIDE_STORE = os.getenv("OVERRIDE_STORE", "sqlite")  # sqlite|memory
OVERRIDE_DB_PATH = os.getenv("OVERRIDE_DB_PATH", "./data/overrides.db")

# Reconciler timing
OWNER_POLL_INTERVAL_SEC = float(os.getenv("OWNER_POLL_INTERVAL_SEC", "10"))
ADMIN_POLL_INTERVAL_SEC = float(os.getenv("ADMIN_POLL_INTERVAL_SEC", "30"))
REFRESH_DEBOUNCE_MS = int(os.getenv("REFRESH_DEBOUNCE_MS", "500"))
MIN_REFRESH_INTERVAL_SEC = float(os.getenv("MIN_REFRESH_INTERVAL_SEC", "5"))
PENDING_RECENCY_HOURS = float(os.getenv("PENDING_RECENCY_HOURS", "24"))  # 0 disables the window

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_debounce_delay():
    """Debounce window in seconds."""
    return REFRESH_DEBOUNCE_MS / 1000.0


def get_resource(kind):
    """Path segment for an entity kind ("business" or "product")."""
    value = getattr(kind, "value", kind)
    if value == "business":
        return BUSINESS_RESOURCE
    if value == "product":
        return PRODUCT_RESOURCE
    raise ValueError(f"Unknown entity kind: {kind}")


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if COMMAND_METHOD not in ["PUT", "POST"]:
        issues.append(f"Invalid COMMAND_METHOD: {COMMAND_METHOD}")

    if OVERRIDE_STORE not in ["sqlite", "memory"]:
        issues.append(f"Invalid OVERRIDE_STORE: {OVERRIDE_STORE}")

    if API_TIMEOUT_SEC <= 0:
        issues.append("API_TIMEOUT_SEC must be > 0")

    if OWNER_POLL_INTERVAL_SEC <= 0 or ADMIN_POLL_INTERVAL_SEC <= 0:
        issues.append("Poll intervals must be > 0")

    if REFRESH_DEBOUNCE_MS < 0:
        issues.append("REFRESH_DEBOUNCE_MS must be >= 0")

    if MIN_REFRESH_INTERVAL_SEC < 0:
        issues.append("MIN_REFRESH_INTERVAL_SEC must be >= 0")

    if PENDING_RECENCY_HOURS < 0:
        issues.append("PENDING_RECENCY_HOURS must be >= 0")

    if not API_BASE_URL.startswith(("http://", "https://")):
        issues.append(f"Invalid API_BASE_URL: {API_BASE_URL}")

    return issues
