# storefront/schemas/order.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.domain.enums import OrderStatus, PaymentMethod, PaymentStatus


class ShippingAddress(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=3, max_length=40)
    address: str = Field(..., min_length=1, max_length=300)
    city: str = Field(..., min_length=1, max_length=120)
    state: Optional[str] = Field(default=None, max_length=120)
    postal_code: Optional[str] = Field(default=None, max_length=30)
    country: str = Field(..., min_length=2, max_length=80)


class CheckoutRequest(BaseModel):
    payment_method: PaymentMethod
    shipping_address: ShippingAddress
    note: Optional[str] = Field(default=None, max_length=1000)


class OrderLineRead(BaseModel):
    id: UUID
    product_id: Optional[UUID]
    product_name: str
    color: Optional[str] = None
    size: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float

    model_config = ConfigDict(from_attributes=True)

    @field_validator("color", "size", mode="before")
    @classmethod
    def blank_as_none(cls, value: str | None) -> str | None:
        return value or None


class OrderRead(BaseModel):
    id: UUID
    customer_id: UUID
    order_code: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    currency: str
    subtotal: float
    shipping_fee: float
    total_amount: float
    shipping_address: dict
    note: Optional[str]
    paid_at: Optional[datetime]
    processed_at: Optional[datetime]
    shipped_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime] = None
    lines: List[OrderLineRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class OrderListRead(BaseModel):
    count: int
    total: int
    items: List[OrderRead]


class OrderAdvance(BaseModel):
    # Sin target se avanza al siguiente estado del flujo.
    target_status: Optional[OrderStatus] = None


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus
