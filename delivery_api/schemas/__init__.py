"""
Schemas Package for the BebCom Delivery API
===========================================

Pydantic models (schemas) used for API request validation and response
serialization.

Schema Organization:
--------------------
- **availability.py**: Availability reads and admin bulk updates
- **orders.py**: Simulated PIX checkout and order status
- **health.py**: Health check and admin status

Naming Conventions:
-------------------
- *Out: Response models (e.g., ProductAvailabilityOut) - what API returns
- *Create: Request models for POST (e.g., OrderCreate) - what client sends to create
- *Update: Request models for bulk updates (e.g., ProductAvailabilityUpdate)

The storefront uses camelCase JSON; models declare camelCase aliases and
allow population by the snake_case field name.
"""

from .availability import (
    AvailabilityCounts,
    BulkUpdateOut,
    FlavorAvailabilityOut,
    FlavorAvailabilityUpdate,
    ProductAvailabilityOut,
    ProductAvailabilityUpdate,
    ResetRequest,
    SyncAllOut,
)
from .health import AdminStatusOut, ConnectionOut, HealthOut
from .orders import CustomerIn, OrderCreate, OrderItemIn, OrderStatusOut, PaymentOut

__all__ = [
    "AvailabilityCounts",
    "BulkUpdateOut",
    "FlavorAvailabilityOut",
    "FlavorAvailabilityUpdate",
    "ProductAvailabilityOut",
    "ProductAvailabilityUpdate",
    "ResetRequest",
    "SyncAllOut",
    "AdminStatusOut",
    "ConnectionOut",
    "HealthOut",
    "CustomerIn",
    "OrderCreate",
    "OrderItemIn",
    "OrderStatusOut",
    "PaymentOut",
]
