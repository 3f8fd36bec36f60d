"""
Availability Routes for the BebCom Delivery API
===============================================

Public read endpoints used by the storefront to grey out products and flavors
that are out of stock.

Endpoints:
----------
- GET /api/product-availability: Product id -> available flag
- GET /api/flavor-availability: Flavor key -> available flag
- GET /api/sync-all: Both maps in one call (storefront startup sync)

No Authentication:
------------------
These endpoints are public. They are answered from the in-process sync cache
and never touch the store, so they keep working while the store is down. In
that case ``offline`` is true and the data is the last known state.

Usage:
------
    GET /api/product-availability
    {
        "success": true,
        "productAvailability": {"p1": true, "p2": false},
        "count": 2,
        "lastUpdated": "2024-01-01T12:00:00+00:00",
        "offline": false,
        "timestamp": "..."
    }
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..dependencies import get_availability_service
from ..schemas.availability import (
    AvailabilityCounts,
    FlavorAvailabilityOut,
    ProductAvailabilityOut,
    SyncAllOut,
)
from ..services.availability import AvailabilityService
from ..storage.base import AvailabilityKind


logger = logging.getLogger(__name__)

# Router definition
availability_router = APIRouter(prefix="/api", tags=["Availability"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Availability Endpoints
# =============================================================================

@availability_router.get("/product-availability", response_model=ProductAvailabilityOut)
def get_product_availability(
    service: AvailabilityService = Depends(get_availability_service),
) -> ProductAvailabilityOut:
    """Return the product availability map (stale-but-available when offline)."""
    snapshot = service.get_availability(AvailabilityKind.PRODUCTS)
    return ProductAvailabilityOut(
        product_availability=snapshot.data,
        count=len(snapshot.data),
        last_updated=snapshot.last_updated.isoformat() if snapshot.last_updated else None,
        offline=snapshot.degraded,
        timestamp=_now(),
    )


@availability_router.get("/flavor-availability", response_model=FlavorAvailabilityOut)
def get_flavor_availability(
    service: AvailabilityService = Depends(get_availability_service),
) -> FlavorAvailabilityOut:
    """Return the flavor availability map (stale-but-available when offline)."""
    snapshot = service.get_availability(AvailabilityKind.FLAVORS)
    return FlavorAvailabilityOut(
        flavor_availability=snapshot.data,
        count=len(snapshot.data),
        last_updated=snapshot.last_updated.isoformat() if snapshot.last_updated else None,
        offline=snapshot.degraded,
        timestamp=_now(),
    )


@availability_router.get("/sync-all", response_model=SyncAllOut)
def sync_all(
    service: AvailabilityService = Depends(get_availability_service),
) -> SyncAllOut:
    """Return both maps at once."""
    products = service.get_availability(AvailabilityKind.PRODUCTS)
    flavors = service.get_availability(AvailabilityKind.FLAVORS)
    offline = products.degraded or flavors.degraded

    return SyncAllOut(
        message="Sincronização completa realizada" if not offline else "Dados em cache (armazenamento offline)",
        product_availability=products.data,
        flavor_availability=flavors.data,
        counts=AvailabilityCounts(products=len(products.data), flavors=len(flavors.data)),
        offline=offline,
        timestamp=_now(),
    )
