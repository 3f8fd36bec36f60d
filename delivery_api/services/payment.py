"""
Payment Service for the BebCom Delivery API
===========================================

Simulated PIX checkout. No payment provider is contacted: the service hands
back a QR code URL and a copy-paste key derived from the order id, and the
first status check confirms the payment.

Order Lifecycle:
----------------
1. POST /api/create-payment -> create_payment (status: pending_payment)
2. GET /api/order-status/{id} -> get_order_status (status: paid)

Persistence:
------------
When the availability store is connected the order is saved through it, so
file and database deployments keep a record of orders. Persistence is best
effort: a store failure is logged and reported in the ``persisted`` flag but
never fails the checkout itself.

Order Ids:
----------
If the storefront does not send an order id one is generated as
ORDER_ID_PREFIX + the last 8 digits of the current epoch milliseconds
(e.g. "BEB71234567"). Everything returned for an order id is a pure function
of that id, so retries of the same order get the same payment reference.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .. import config
from ..connection import ConnectionSupervisor

logger = logging.getLogger(__name__)


def generate_order_id(prefix: str = None, now_ms: int = None) -> str:
    """Build an order id from the epoch-millisecond clock."""
    prefix = config.ORDER_ID_PREFIX if prefix is None else prefix
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}{str(now_ms)[-8:]}"


def build_qr_code_url(order_id: str) -> str:
    query = urlencode({"size": "200x200", "data": f"BEBCOM-{order_id}"})
    return f"{config.QR_CODE_BASE_URL}?{query}"


def build_copy_paste_key(order_id: str) -> str:
    """Simulated PIX copy-and-paste string (not a valid BR Code payload)."""
    description = f"{config.MERCHANT_NAME} - Pedido {order_id}"
    return (
        "000201"
        "26360014BR.GOV.BCB.PIX"
        f"01{len(config.PIX_KEY):02d}{config.PIX_KEY}"
        f"02{len(description):02d}{description}"
        "52040000"
        "5303986"
        "5802BR"
        f"59{len(config.MERCHANT_NAME):02d}{config.MERCHANT_NAME}"
        f"60{len(config.MERCHANT_CITY):02d}{config.MERCHANT_CITY}"
        "62070503***"
        "6304"
    )


class PaymentService:
    def __init__(self, supervisor: ConnectionSupervisor):
        self.supervisor = supervisor
        self.store = supervisor.store

    async def create_payment(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register an order and return the simulated PIX payment details.

        Args:
            order: Validated order fields (orderId, customer, items,
                   totalAmount, deliveryFee).

        Returns:
            Dict with paymentType, orderId, qrCode, copyPasteKey,
            instructions, amount, persisted and timestamp.
        """
        order_id = order.get("orderId") or generate_order_id()
        now = datetime.now(timezone.utc).isoformat()

        record = {
            "orderId": order_id,
            "customer": order.get("customer"),
            "items": order.get("items") or [],
            "totalAmount": order.get("totalAmount") or 0.0,
            "deliveryFee": order.get("deliveryFee") or 0.0,
            "status": "pending_payment",
            "paid": False,
            "createdAt": now,
        }
        persisted = await self._save(record)

        logger.info("Created PIX payment for order %s (%d items)", order_id, len(record["items"]))

        return {
            "paymentType": "pix",
            "orderId": order_id,
            "qrCode": build_qr_code_url(order_id),
            "copyPasteKey": build_copy_paste_key(order_id),
            "instructions": "Pague via PIX usando o QR Code acima",
            "amount": record["totalAmount"],
            "persisted": persisted,
            "timestamp": now,
        }

    async def get_order_status(self, order_id: str) -> Dict[str, Any]:
        """
        Report the payment status of an order.

        The simulation confirms payment on the first check. A stored order is
        marked paid and saved back; an order the store does not know (or an
        unreachable store) gets the same simulated confirmation.
        """
        order = await self._load(order_id)

        if order is not None and not order.get("paid"):
            order["status"] = "paid"
            order["paid"] = True
            order["paidAt"] = datetime.now(timezone.utc).isoformat()
            await self._save(order)
            logger.info("Order %s confirmed as paid", order_id)

        return {
            "orderId": order_id,
            "status": "paid",
            "paid": True,
            "order": order,
            "message": "Pedido confirmado e pago",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _save(self, record: Dict[str, Any]) -> bool:
        if not self.supervisor.connection_state().connected:
            logger.warning("Store unavailable; order %s not persisted", record["orderId"])
            return False
        try:
            await self.supervisor.execute(self.store.save_order, record)
        except Exception as e:
            logger.warning("Failed to persist order %s: %s", record["orderId"], e)
            return False
        return True

    async def _load(self, order_id: str) -> Optional[Dict[str, Any]]:
        if not self.supervisor.connection_state().connected:
            return None
        try:
            return await self.supervisor.execute(self.store.get_order, order_id)
        except Exception as e:
            logger.warning("Failed to load order %s: %s", order_id, e)
            return None
