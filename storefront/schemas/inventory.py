from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.inventory import MovementKind


class StockReceive(BaseModel):
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = Field(default=None, max_length=255)


class ProductStockRead(BaseModel):
    id: UUID
    name: str
    price: float
    stock_quantity: Optional[int]
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class MovementRead(BaseModel):
    id: UUID
    type: MovementKind
    quantity: int
    reason: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MovementListRead(BaseModel):
    count: int
    total: int
    items: List[MovementRead]
