"""
Local HTTP API over the dashboard core, for a browser frontend on this machine.
"""

from fastapi import FastAPI, HTTPException, Depends, Body
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional

from util.logging import logger
from .schemas import (
    HealthResponse,
    NotificationResponse,
    NotificationListResponse,
    RejectRequest,
    CommandResponse,
    OverrideResponse,
    OverrideListResponse,
    GarbageCollectResponse,
)
from ..core.config import VERSION, debug_enabled
from ..core.context import DashboardContext, build_context
from ..core.errors import DashboardError, EndpointUnavailable, NetworkFailure
from ..core.listings import admin_listing_loader
from ..core.schema import EntityKind

_context: Optional[DashboardContext] = None


def get_context() -> DashboardContext:
    """Shared services, built on first use."""
    global _context
    if _context is None:
        _context = build_context()
    return _context


def error_status(error: Optional[DashboardError]) -> int:
    if isinstance(error, EndpointUnavailable):
        return 404
    if isinstance(error, NetworkFailure):
        return 504
    return 502


# Initialize the FastAPI application
app = FastAPI(
    title="Burhanpur Admin API",
    version=VERSION,
    description="Local approval dashboard over the Burhanpur city backend",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

# Add CORS middleware to allow frontend connections
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(ctx: DashboardContext = Depends(get_context)):
    """Check local store health."""
    store_health = ctx.store.health_check()
    return HealthResponse(
        status="healthy" if store_health else "unhealthy",
        version=VERSION,
        store_health=store_health,
        pending_overrides=len(ctx.store.list_pending()) if store_health else 0,
    )


@app.get("/notifications/{kind}", response_model=NotificationListResponse)
def list_notifications(kind: EntityKind, ctx: DashboardContext = Depends(get_context)):
    """Current notifications for a kind; at most one backend fetch per refresh interval."""
    board = ctx.board(kind)
    board.refresh()
    return NotificationListResponse(
        kind=kind.value,
        pending_count=board.pending_count,
        items=[NotificationResponse(**view.to_dict()) for view in board.notifications],
    )


# Override routes go before /{kind}/... so "overrides" is never read as a kind
@app.get("/overrides", response_model=OverrideListResponse)
def list_overrides(kind: Optional[EntityKind] = None, ctx: DashboardContext = Depends(get_context)):
    entries = ctx.store.list_pending(kind)
    return OverrideListResponse(items=[
        OverrideResponse(key=e.key, kind=e.kind.value, entity_id=e.entity_id, set_at=e.set_at)
        for e in entries
    ])


@app.delete("/overrides/{kind}/{entity_id}")
def delete_override(kind: EntityKind, entity_id: str, ctx: DashboardContext = Depends(get_context)):
    if not ctx.store.is_pending(kind, entity_id):
        raise HTTPException(status_code=404, detail=f"No pending flag for {kind.value} {entity_id}")
    ctx.store.clear_pending(kind, entity_id)
    return {"success": True, "kind": kind.value, "entity_id": entity_id}


@app.post("/overrides/{kind}/gc", response_model=GarbageCollectResponse)
def collect_overrides(kind: EntityKind, ctx: DashboardContext = Depends(get_context)):
    """Drop flags for entities the backend no longer lists."""
    try:
        entities = admin_listing_loader(ctx.client, kind)()
    except DashboardError as e:
        logger.log_operation("override.gc", "failed", {"kind": kind.value, "error": str(e)})
        raise HTTPException(status_code=error_status(e), detail=str(e))

    removed = ctx.store.garbage_collect({entity.id for entity in entities}, kind)
    return GarbageCollectResponse(kind=kind.value, removed=removed, kept=len(ctx.store.list_pending(kind)))


@app.post("/{kind}/approve/{entity_id}", response_model=CommandResponse)
def approve_endpoint(kind: EntityKind, entity_id: str, ctx: DashboardContext = Depends(get_context)):
    result = ctx.approvals.approve(entity_id, kind)
    if not result.ok:
        raise HTTPException(status_code=error_status(result.error), detail=result.message)
    return CommandResponse(success=True, entity_id=entity_id, kind=kind.value, action="approve", message=result.message)


@app.post("/{kind}/reject/{entity_id}", response_model=CommandResponse)
def reject_endpoint(kind: EntityKind, entity_id: str, req: Optional[RejectRequest] = Body(default=None),
                    ctx: DashboardContext = Depends(get_context)):
    reason = req.reason if req else None
    result = ctx.approvals.reject(entity_id, kind, reason)
    if not result.ok:
        raise HTTPException(status_code=error_status(result.error), detail=result.message)
    return CommandResponse(success=True, entity_id=entity_id, kind=kind.value, action="reject", message=result.message)
