from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Security
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_admin
from storefront.db.session_async import get_async_db, transactional
from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.models.customer import Customer
from storefront.schemas.inventory import MovementListRead, ProductStockRead, StockReceive
from storefront.schemas.order import OrderAdvance, OrderListRead, OrderRead, PaymentStatusUpdate
from storefront.services import inventory_service, order_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=OrderListRead)
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    customer_id: Optional[UUID] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    orders, total = await order_service.list_orders(
        db,
        status_filter=status_filter,
        payment_status=payment_status,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return {"count": len(orders), "total": total, "items": orders}


@router.get("/orders/code/{order_code}", response_model=OrderRead)
async def get_order_by_code(
    order_code: str,
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    return await order_service.get_order_by_code(db, order_code)


@router.post("/orders/{order_id}/advance", response_model=OrderRead)
async def advance_order(
    order_id: UUID,
    payload: OrderAdvance | None = None,
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    target = payload.target_status if payload else None
    async with transactional(db):
        order = await order_service.advance_order_status(db, order_id, target)
    return order


@router.patch("/orders/{order_id}/payment-status", response_model=OrderRead)
async def update_payment_status(
    order_id: UUID,
    payload: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    async with transactional(db):
        order = await order_service.update_payment_status(db, order_id, payload.payment_status)
    return order


@router.post("/orders/{order_id}/cancel", response_model=OrderRead)
async def cancel_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    async with transactional(db):
        order = await order_service.cancel_order(db, order_id)
    return order


# --- Inventario ---
@router.post("/inventory/{product_id}/receive", response_model=ProductStockRead)
async def receive_stock(
    product_id: UUID,
    payload: StockReceive,
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    async with transactional(db):
        product = await inventory_service.receive_stock(db, product_id, payload.quantity, reason=payload.reason)
    return product


@router.get("/inventory/{product_id}/movements", response_model=MovementListRead)
async def list_movements(
    product_id: UUID,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    movements, total = await inventory_service.list_movements(db, product_id, limit=limit, offset=offset)
    return {"count": len(movements), "total": total, "items": movements}
