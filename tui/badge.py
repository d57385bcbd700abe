"""
Text formatting for the approval dashboard widgets.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from burhanpur_admin.core.schema import EntityKind, NotificationView, utcnow


def format_badge(count: int) -> str:
    """Bell badge; empty when nothing is pending."""
    if count <= 0:
        return ""
    return f"🔔 {count}"


def format_pending_button(kind: EntityKind, count: int) -> str:
    return f"Pending {EntityKind(kind).value}s: {count}"


def format_age(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Relative age like '5m ago'; '-' when unknown."""
    if timestamp is None:
        return "-"
    seconds = int(((now or utcnow()) - timestamp).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def format_row(view: NotificationView, now: Optional[datetime] = None) -> Tuple[str, str, str, str, str]:
    return (
        view.name,
        view.owner or "-",
        view.category or "-",
        format_age(view.timestamp, now),
        view.entity_id,
    )


def format_rows(views: List[NotificationView], now: Optional[datetime] = None) -> List[Tuple[str, str, str, str, str]]:
    """Newest first; items without a timestamp sort last."""
    ordered = sorted(views, key=lambda v: v.timestamp.timestamp() if v.timestamp else float("-inf"), reverse=True)
    return [format_row(view, now) for view in ordered]
