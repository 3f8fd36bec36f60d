"""
Services Package for the BebCom Delivery API
============================================

This package contains the service objects that hold the business logic behind
the routes. Services receive their collaborators (cache, connection
supervisor, audit log) through their constructors; create_app() wires them
together and stores them on app.state.

Available Services:
-------------------
- **availability**: Read/bulk-update/reset of the availability maps with the
  degraded-mode policy
- **payment**: Simulated PIX checkout and order status
- **audit**: Append-only log of admin writes

Usage:
------
    from delivery_api.services.availability import AvailabilityService
    from delivery_api.services.payment import PaymentService
"""

from . import audit
from . import availability
from . import payment

__all__ = ["audit", "availability", "payment"]
