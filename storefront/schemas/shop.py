# storefront/schemas/shop.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ShopAddress(BaseModel):
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=120)
    state: Optional[str] = Field(default=None, max_length=120)
    country: str = Field(..., min_length=2, max_length=80)
    zip: Optional[str] = Field(default=None, max_length=30)


class ShopCreate(BaseModel):
    shop_name: str = Field(..., min_length=1, max_length=200)
    shop_code: str = Field(..., min_length=2, max_length=40)
    email: EmailStr
    phone: str = Field(..., min_length=3, max_length=40)
    address: ShopAddress
    description: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, max_length=512)
    currency_code: str = Field(default="USD", min_length=3, max_length=3)
    timezone: str = Field(default="UTC", max_length=64)
    language: str = Field(default="en", max_length=8)


class ShopUpdate(BaseModel):
    shop_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    shop_code: Optional[str] = Field(default=None, min_length=2, max_length=40)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=3, max_length=40)
    address: Optional[ShopAddress] = None
    description: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, max_length=512)
    currency_code: Optional[str] = Field(default=None, min_length=3, max_length=3)
    timezone: Optional[str] = Field(default=None, max_length=64)
    language: Optional[str] = Field(default=None, max_length=8)
    is_active: Optional[bool] = None


class ShopRead(BaseModel):
    id: UUID
    shop_name: str
    shop_code: str
    email: str
    phone: str
    address: dict
    description: Optional[str]
    logo_url: Optional[str]
    currency_code: str
    timezone: str
    language: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ShopListRead(BaseModel):
    count: int
    total: int
    items: List[ShopRead]
