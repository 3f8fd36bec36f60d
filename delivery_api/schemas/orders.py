"""
Order Schemas for the BebCom Delivery API
=========================================

Pydantic models for the simulated PIX checkout.

Endpoint Coverage:
------------------
- POST /api/create-payment <- OrderCreate, -> PaymentOut
- GET /api/order-status/{order_id} -> OrderStatusOut

Usage:
------
    POST /api/create-payment
    {
        "customer": {"name": "Ana", "phone": "14999999999", "address": "Rua A, 10"},
        "items": [{"id": "p1", "name": "Coca-Cola 2L", "quantity": 2, "price": 12.0}],
        "totalAmount": 29.0,
        "deliveryFee": 5.0
    }
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomerIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=40)
    address: Optional[str] = Field(None, max_length=500)


class OrderItemIn(BaseModel):
    """
    One line of the cart.

    Extra keys sent by the storefront (flavor, notes, ...) are kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    quantity: int = Field(1, ge=1)
    price: float = Field(0.0, ge=0)


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(None, alias="orderId", max_length=64)
    customer: Optional[CustomerIn] = None
    items: List[OrderItemIn] = Field(default_factory=list)
    total_amount: float = Field(0.0, alias="totalAmount", ge=0)
    delivery_fee: float = Field(0.0, alias="deliveryFee", ge=0)

    def to_order(self) -> Dict[str, Any]:
        """Order fields in the camelCase shape used by the stores."""
        return {
            "orderId": self.order_id,
            "customer": self.customer.model_dump() if self.customer else None,
            "items": [item.model_dump() for item in self.items],
            "totalAmount": self.total_amount,
            "deliveryFee": self.delivery_fee,
        }


class PaymentOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    payment_type: str = Field("pix", alias="paymentType")
    order_id: str = Field(..., alias="orderId")
    qr_code: str = Field(..., alias="qrCode")
    copy_paste_key: str = Field(..., alias="copyPasteKey")
    instructions: str
    amount: float
    persisted: bool
    timestamp: str


class OrderStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    order_id: str = Field(..., alias="orderId")
    status: str
    paid: bool
    order: Optional[Dict[str, Any]] = None
    message: str
    timestamp: str
