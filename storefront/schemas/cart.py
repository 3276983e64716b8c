# storefront/schemas/cart.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.domain.enums import CartStatus
from storefront.domain.variant import VariantKey


class CartItemCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0, le=10_000)
    color: Optional[str] = Field(default=None, max_length=32)
    size: Optional[str] = Field(default=None, max_length=24)

    @property
    def variant(self) -> VariantKey:
        return VariantKey(color=self.color, size=self.size)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0, le=10_000)


class CartItemRead(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    quantity: int
    price_at_time: float
    line_total: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("color", "size", mode="before")
    @classmethod
    def blank_as_none(cls, value: str | None) -> str | None:
        return value or None


class CartRead(BaseModel):
    id: UUID
    customer_id: UUID
    status: CartStatus
    total_amount: float
    item_count: int
    created_at: datetime
    updated_at: datetime | None

    items: List[CartItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
