from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.core.metrics import record_order_transition
from storefront.db.session_async import after_commit
from storefront.domain.enums import (
    CANCELLABLE_STATUSES,
    ORDER_FLOW,
    OrderStatus,
    PaymentStatus,
)
from storefront.models.order import Order
from storefront.services import inventory_service
from storefront.services.exceptions import (
    InvalidStatusTransitionError,
    OrderNotCancellableError,
    OrderNotFoundError,
)

logger = get_logger("storefront.orders")

# Timestamp stamped when an order enters each status.
_STATUS_TIMESTAMPS = {
    OrderStatus.processing: "processed_at",
    OrderStatus.shipped: "shipped_at",
    OrderStatus.completed: "completed_at",
    OrderStatus.cancelled: "cancelled_at",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _load_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    customer_id: uuid.UUID | None = None,
    for_update: bool = False,
) -> Order:
    stmt = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    if customer_id is not None:
        stmt = stmt.where(Order.customer_id == customer_id)
    if for_update:
        stmt = stmt.with_for_update()
    order = (await db.execute(stmt)).scalars().first()
    if order is None:
        raise OrderNotFoundError("Order not found")
    return order


async def get_order(db: AsyncSession, order_id: uuid.UUID, *, customer_id: uuid.UUID | None = None) -> Order:
    """Fetch an order; scoped to ``customer_id`` when given."""
    return await _load_order(db, order_id, customer_id=customer_id)


async def get_order_by_code(db: AsyncSession, order_code: str) -> Order:
    stmt = select(Order).where(Order.order_code == order_code.strip().upper())
    order = (await db.execute(stmt)).scalars().first()
    if order is None:
        raise OrderNotFoundError("Order not found")
    return order


async def _paginate(db: AsyncSession, stmt, *, limit: int, offset: int) -> tuple[List[Order], int]:
    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    page = stmt.order_by(Order.created_at.desc()).offset(offset).limit(limit)
    orders = (await db.execute(page)).scalars().all()
    return list(orders), int(total or 0)


async def list_customer_orders(
    db: AsyncSession,
    customer_id: uuid.UUID,
    *,
    limit: int = 50,
    offset: int = 0,
) -> tuple[List[Order], int]:
    stmt = select(Order).where(Order.customer_id == customer_id)
    return await _paginate(db, stmt, limit=limit, offset=offset)


async def list_orders(
    db: AsyncSession,
    *,
    status_filter: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
    customer_id: uuid.UUID | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[List[Order], int]:
    stmt = select(Order)
    if status_filter:
        stmt = stmt.where(Order.status == status_filter)
    if payment_status:
        stmt = stmt.where(Order.payment_status == payment_status)
    if customer_id:
        stmt = stmt.where(Order.customer_id == customer_id)
    if start_date:
        stmt = stmt.where(Order.created_at >= start_date)
    if end_date:
        stmt = stmt.where(Order.created_at <= end_date)
    return await _paginate(db, stmt, limit=limit, offset=offset)


def _enter_status(db: AsyncSession, order: Order, status: OrderStatus) -> None:
    previous = order.status
    order.status = status
    field = _STATUS_TIMESTAMPS.get(status)
    if field:
        setattr(order, field, _utcnow())

    context = {"order_id": str(order.id), "from": previous.value, "to": status.value}

    def _committed() -> None:
        record_order_transition(status.value)
        logger.info("Order status changed", extra=context)

    after_commit(db, _committed)


async def cancel_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    customer_id: uuid.UUID | None = None,
) -> Order:
    """Cancel a pending/processing order and put its stock back.

    Quantities come from the order lines, never from the cart.
    """
    order = await _load_order(db, order_id, customer_id=customer_id, for_update=True)
    if order.status not in CANCELLABLE_STATUSES:
        logger.warning(
            "Cancellation rejected",
            extra={"order_id": str(order.id), "status": order.status.value},
        )
        raise OrderNotCancellableError("Order cannot be cancelled")

    await db.refresh(order, attribute_names=["lines"])
    for line in order.lines:
        await inventory_service.release(db, line.product_id, line.quantity, reason=f"cancel:{order.order_code}")

    _enter_status(db, order, OrderStatus.cancelled)
    await db.flush()
    await db.refresh(order)
    return order


async def advance_order_status(
    db: AsyncSession,
    order_id: uuid.UUID,
    target: OrderStatus | None = None,
) -> Order:
    """Move an order one step forward (pending → processing → shipped → completed).

    Inventory is not touched; stock was committed when the order was placed.
    """
    order = await _load_order(db, order_id, for_update=True)
    next_status = ORDER_FLOW.get(order.status)
    if next_status is None:
        raise InvalidStatusTransitionError(f"Order in status {order.status.value} cannot advance")
    if target is not None and target != next_status:
        raise InvalidStatusTransitionError(
            f"Cannot move order from {order.status.value} to {target.value}"
        )

    _enter_status(db, order, next_status)
    await db.flush()
    await db.refresh(order)
    return order


async def update_payment_status(
    db: AsyncSession,
    order_id: uuid.UUID,
    payment_status: PaymentStatus,
) -> Order:
    """Record the payment status; a payment confirmation moves a pending order to processing."""
    order = await _load_order(db, order_id, for_update=True)
    order.payment_status = payment_status
    if payment_status == PaymentStatus.paid:
        order.paid_at = order.paid_at or _utcnow()
        if order.status == OrderStatus.pending:
            _enter_status(db, order, OrderStatus.processing)

    logger.info(
        "Payment status updated",
        extra={"order_id": str(order.id), "payment_status": payment_status.value},
    )
    await db.flush()
    await db.refresh(order)
    return order
