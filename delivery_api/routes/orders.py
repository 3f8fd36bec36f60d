"""
Order Routes for the BebCom Delivery API
========================================

Checkout endpoints for the storefront. Payment is simulated: the response
carries a PIX QR code URL and copy-paste key for display, and the status
endpoint confirms the payment.

Endpoints:
----------
- POST /api/create-payment: Register an order and get PIX payment details
- GET /api/order-status/{order_id}: Payment status of an order

Rate Limiting:
--------------
create-payment is public, so it is rate limited per client IP
(RATE_LIMIT_PAYMENT, default "30 per minute").

Usage:
------
    POST /api/create-payment
    {"customer": {"name": "Ana"}, "items": [...], "totalAmount": 29.0}

    -> {"success": true, "paymentType": "pix", "orderId": "BEB71234567", ...}
"""

import logging

from fastapi import APIRouter, Depends, Path, Request

from ..config import get_rate_limit_payment
from ..dependencies import get_payment_service
from ..rate_limit import limiter
from ..schemas.orders import OrderCreate, OrderStatusOut, PaymentOut
from ..services.payment import PaymentService


logger = logging.getLogger(__name__)

# Router definition
orders_router = APIRouter(prefix="/api", tags=["Orders"])


# =============================================================================
# Payment Endpoints
# =============================================================================

@orders_router.post("/create-payment", response_model=PaymentOut)
@limiter.limit(get_rate_limit_payment)
async def create_payment(
    request: Request,
    payload: OrderCreate,
    payments: PaymentService = Depends(get_payment_service),
) -> PaymentOut:
    """Create a simulated PIX payment for an order."""
    payment = await payments.create_payment(payload.to_order())
    return PaymentOut(
        payment_type=payment["paymentType"],
        order_id=payment["orderId"],
        qr_code=payment["qrCode"],
        copy_paste_key=payment["copyPasteKey"],
        instructions=payment["instructions"],
        amount=payment["amount"],
        persisted=payment["persisted"],
        timestamp=payment["timestamp"],
    )


@orders_router.get("/order-status/{order_id}", response_model=OrderStatusOut)
async def order_status(
    order_id: str = Path(..., min_length=1, max_length=64),
    payments: PaymentService = Depends(get_payment_service),
) -> OrderStatusOut:
    """Return the (simulated) payment status of an order."""
    status = await payments.get_order_status(order_id)
    return OrderStatusOut(
        order_id=status["orderId"],
        status=status["status"],
        paid=status["paid"],
        order=status["order"],
        message=status["message"],
        timestamp=status["timestamp"],
    )
