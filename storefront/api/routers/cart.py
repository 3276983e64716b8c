from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_customer
from storefront.db.session_async import get_async_db, transactional
from storefront.models.customer import Customer
from storefront.schemas.cart import CartItemCreate, CartItemUpdate, CartRead
from storefront.services import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartRead)
async def get_cart(
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        cart = await cart_service.get_cart_view(db, current.id)
    return cart


@router.post("/items", response_model=CartRead, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    payload: CartItemCreate,
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        await cart_service.add_item(
            db,
            current.id,
            payload.product_id,
            payload.quantity,
            variant=payload.variant,
        )
        cart = await cart_service.get_cart_view(db, current.id)
    return cart


@router.put("/items/{item_id}", response_model=CartRead)
async def update_cart_item(
    item_id: UUID,
    payload: CartItemUpdate,
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        await cart_service.update_item_quantity(db, current.id, item_id, payload.quantity)
        cart = await cart_service.get_cart_view(db, current.id)
    return cart


@router.delete("/items/{item_id}", response_model=CartRead)
async def remove_cart_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        cart = await cart_service.remove_item(db, current.id, item_id)
    return cart


@router.delete("", response_model=CartRead)
async def clear_cart(
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        cart = await cart_service.clear_cart(db, current.id)
    return cart
