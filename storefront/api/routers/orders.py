from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_customer
from storefront.db.session_async import get_async_db, transactional
from storefront.models.customer import Customer
from storefront.schemas.order import CheckoutRequest, OrderListRead, OrderRead
from storefront.services import checkout_service, order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: CheckoutRequest,
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        order = await checkout_service.checkout(db, current.id, payload)
    return order


@router.get("", response_model=OrderListRead)
async def list_my_orders(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    orders, total = await order_service.list_customer_orders(db, current.id, limit=limit, offset=offset)
    return {"count": len(orders), "total": total, "items": orders}


@router.get("/{order_id}", response_model=OrderRead)
async def get_my_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    return await order_service.get_order(db, order_id, customer_id=current.id)


@router.post("/{order_id}/cancel", response_model=OrderRead)
async def cancel_my_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current: Customer = Depends(get_current_customer),
):
    async with transactional(db):
        order = await order_service.cancel_order(db, order_id, customer_id=current.id)
    return order
