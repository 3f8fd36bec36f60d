"""
Routes Package for the BebCom Delivery API
==========================================

This package contains all API route definitions organized by domain. Each
module defines a FastAPI APIRouter with related endpoints grouped together.

Architecture Overview:
----------------------
**Storefront Routes (public):**
- availability.py: Product/flavor availability reads and full sync
- orders.py: Simulated PIX checkout and order status

**Admin Routes (x-admin-key):**
- admin.py: Bulk availability updates, reset, backup, audit, reconnect

Router Registration:
--------------------
All routers are registered by create_app() in app_factory.py. Each router
carries its own prefix and tags for the OpenAPI documentation:

    availability_router = APIRouter(prefix="/api", tags=["Availability"])

Route Dependencies:
-------------------
Common dependencies are injected via FastAPI's Depends():
- get_availability_service / get_payment_service / get_supervisor
- verify_admin_key: Admin authentication
- limiter.limit(): Rate limiting

Error Handling:
---------------
Service failures are returned as {"success": false, "error", "code"}:
- 400: Invalid input (malformed or empty patch)
- 401: Unauthorized (missing or wrong admin key)
- 404: Unknown route
- 429: Too many requests (rate limited)
- 500: Store rejected the write
- 503: Store unavailable, or admin key not configured
"""

from .admin import admin_router
from .availability import availability_router
from .orders import orders_router

__all__ = [
    "admin_router",
    "availability_router",
    "orders_router",
]
