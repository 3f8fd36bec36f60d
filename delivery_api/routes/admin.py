"""
Admin Routes for the BebCom Delivery API
========================================

This module contains the admin endpoints used by the store's admin panel to
toggle product and flavor availability.

Endpoints:
----------
- GET /api/admin/status: Admin API status and counts (public)
- POST /api/admin/product-availability/bulk: Merge a product availability patch
- POST /api/admin/flavor-availability/bulk: Merge a flavor availability patch
- POST /api/admin/reset-data: Clear both availability maps
- GET /api/admin/backup: Persisted snapshot of both maps
- GET /api/admin/audit: Recent admin writes, newest first
- POST /api/admin/reconnect: Ask the connection supervisor to retry now

Authentication:
---------------
All endpoints except /status require the x-admin-key header.

Bulk Updates:
-------------
A bulk update is a merge, not a replace: keys in the patch overwrite, keys
not in the patch keep their value. An empty patch is rejected (400).

Writes fail closed: while the store is unreachable they are refused with 503
and ``offline: true``; if the store rejects the write the answer is 500. In
both cases nothing changes in the served data.

Usage:
------
    POST /api/admin/product-availability/bulk
    x-admin-key: <key>
    {"productAvailability": {"p1": false}, "adminName": "Maria"}

    -> {"success": true, "count": 1, "message": "Salvo 1 produtos no sistema", ...}
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from .. import auth
from ..auth import verify_admin_key
from ..connection import ConnectionSupervisor
from ..dependencies import get_availability_service, get_supervisor
from ..errors import result_error_response
from ..schemas.availability import (
    AvailabilityCounts,
    BulkUpdateOut,
    FlavorAvailabilityUpdate,
    ProductAvailabilityUpdate,
    ResetRequest,
)
from ..schemas.health import AdminStatusOut
from ..services.availability import AvailabilityService
from ..storage.base import AvailabilityKind


logger = logging.getLogger(__name__)

# Router definition
admin_router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Status
# =============================================================================

@admin_router.get("/status", response_model=AdminStatusOut)
def admin_status(
    service: AvailabilityService = Depends(get_availability_service),
) -> AdminStatusOut:
    """Report whether the admin API is usable. No authentication required."""
    sizes = service.cache.sizes()
    return AdminStatusOut(
        admin_enabled=auth.admin_enabled(),
        storage=service.store.backend_name,
        connected=service.connected,
        data=AvailabilityCounts(
            products=sizes[AvailabilityKind.PRODUCTS.value],
            flavors=sizes[AvailabilityKind.FLAVORS.value],
        ),
        timestamp=_now(),
        message="API administrativa funcionando",
    )


# =============================================================================
# Bulk Availability Updates
# =============================================================================

@admin_router.post("/product-availability/bulk", response_model=BulkUpdateOut)
async def update_product_availability(
    payload: ProductAvailabilityUpdate,
    service: AvailabilityService = Depends(get_availability_service),
    _admin: None = Depends(verify_admin_key),
):
    """Merge a product availability patch into the catalog."""
    logger.debug("Received product availability update: %d entries", len(payload.product_availability))

    result = await service.update_availability(
        AvailabilityKind.PRODUCTS,
        payload.product_availability,
        actor=payload.actor,
    )
    if not result.success:
        return result_error_response(result)

    return BulkUpdateOut(
        count=result.count,
        message=f"Salvo {result.count} produtos no sistema",
        timestamp=_now(),
    )


@admin_router.post("/flavor-availability/bulk", response_model=BulkUpdateOut)
async def update_flavor_availability(
    payload: FlavorAvailabilityUpdate,
    service: AvailabilityService = Depends(get_availability_service),
    _admin: None = Depends(verify_admin_key),
):
    """Merge a flavor availability patch into the catalog."""
    logger.debug("Received flavor availability update: %d entries", len(payload.flavor_availability))

    result = await service.update_availability(
        AvailabilityKind.FLAVORS,
        payload.flavor_availability,
        actor=payload.actor,
    )
    if not result.success:
        return result_error_response(result)

    return BulkUpdateOut(
        count=result.count,
        message=f"Salvo {result.count} sabores no sistema",
        timestamp=_now(),
    )


@admin_router.post("/reset-data", response_model=BulkUpdateOut)
async def reset_data(
    payload: Optional[ResetRequest] = None,
    service: AvailabilityService = Depends(get_availability_service),
    _admin: None = Depends(verify_admin_key),
):
    """Clear both availability maps in the store and the cache."""
    result = await service.reset_all(actor=payload.actor if payload else None)
    if not result.success:
        return result_error_response(result)

    return BulkUpdateOut(
        count=result.count,
        message="Dados resetados com sucesso",
        timestamp=_now(),
    )


# =============================================================================
# Backup, Audit and Connection
# =============================================================================

@admin_router.get("/backup")
async def backup(
    service: AvailabilityService = Depends(get_availability_service),
    _admin: None = Depends(verify_admin_key),
):
    """Return the persisted snapshot of both maps."""
    result = await service.backup()
    if not result.success:
        return result_error_response(result)

    return {
        "success": True,
        "backup": result.data,
        "timestamp": _now(),
    }


@admin_router.get("/audit")
def audit_log(
    service: AvailabilityService = Depends(get_availability_service),
    _admin: None = Depends(verify_admin_key),
    limit: int = Query(50, ge=1, le=500),
):
    """Return the most recent admin writes, newest first."""
    entries = service.audit.entries(limit=limit)
    return {
        "success": True,
        "entries": [entry.to_dict() for entry in entries],
        "count": len(entries),
        "timestamp": _now(),
    }


@admin_router.post("/reconnect")
def reconnect(
    supervisor: ConnectionSupervisor = Depends(get_supervisor),
    _admin: None = Depends(verify_admin_key),
):
    """Trigger an immediate reconnect round if the store is disconnected."""
    requested = supervisor.reconnect()
    state = supervisor.connection_state()
    return {
        "success": True,
        "requested": requested,
        "connection": state.to_dict(),
        "timestamp": _now(),
    }
