"""Cart-to-order conversion.

``checkout`` performs every write of the conversion (order, order lines,
stock decrements, cart conversion, replacement cart) on the caller's
session without committing. Callers run it inside ``transactional()`` so the
whole conversion lands or none of it does; the success metric and log line
are emitted only once that commit succeeds.
"""

from __future__ import annotations

import secrets
import string
import time
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.logging import get_logger
from storefront.core.metrics import record_checkout
from storefront.db.session_async import after_commit
from storefront.domain.enums import CartStatus, OrderStatus, PaymentStatus
from storefront.models.cart import Cart, CartItem
from storefront.models.order import Order, OrderLine
from storefront.models.product import Product
from storefront.schemas.order import CheckoutRequest
from storefront.services import cart_service, inventory_service
from storefront.services.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    ProductUnavailableError,
    ServiceError,
)

logger = get_logger("storefront.checkout")

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_order_code(prefix: str | None = None) -> str:
    """Human-readable order code: ``ORD-<base36 millis>-<6 random chars>``."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
    return f"{prefix or settings.ORDER_CODE_PREFIX}-{stamp}-{suffix}"


async def _load_active_cart(db: AsyncSession, customer_id: uuid.UUID) -> Cart:
    stmt = (
        select(Cart)
        .where(Cart.customer_id == customer_id, Cart.status == CartStatus.active)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    cart = (await db.execute(stmt)).scalars().first()
    if cart is None:
        raise EmptyCartError("Cart is empty")
    await db.refresh(cart, attribute_names=["items"])
    if not cart.items:
        raise EmptyCartError("Cart is empty")
    return cart


async def _lock_products(db: AsyncSession, items: list[CartItem]) -> dict[uuid.UUID, Product]:
    product_ids = sorted({item.product_id for item in items}, key=str)
    stmt = (
        select(Product)
        .where(Product.id.in_(product_ids))
        .order_by(Product.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    products = (await db.execute(stmt)).scalars().all()
    return {product.id: product for product in products}


def _validate_lines(items: list[CartItem], products: dict[uuid.UUID, Product]) -> None:
    # La misma variante puede repetirse por producto; el stock se valida por total.
    requested: dict[uuid.UUID, int] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            name = product.name if product else str(item.product_id)
            raise ProductUnavailableError(f"Product {name} is no longer available")
        if product.stock_quantity is not None and product.stock_quantity < requested[item.product_id]:
            raise InsufficientStockError(f"Insufficient stock for {product.name}")


def _compute_subtotal(items: list[CartItem]) -> Decimal:
    return sum((Decimal(item.price_at_time) * item.quantity for item in items), Decimal("0"))


def _order_placed(context: dict[str, str]) -> None:
    record_checkout("success")
    logger.info("Order placed", extra=context)


async def checkout(
    db: AsyncSession,
    customer_id: uuid.UUID,
    payload: CheckoutRequest,
    *,
    shipping_fee: Decimal | None = None,
) -> Order:
    """Convert the customer's active cart into a pending order."""
    fee = settings.SHIPPING_FEE if shipping_fee is None else Decimal(shipping_fee)
    try:
        cart = await _load_active_cart(db, customer_id)
        items = list(cart.items)
        products = await _lock_products(db, items)
        _validate_lines(items, products)

        subtotal = _compute_subtotal(items)
        order = Order(
            customer_id=customer_id,
            order_code=generate_order_code(),
            status=OrderStatus.pending,
            payment_status=PaymentStatus.pending,
            payment_method=payload.payment_method,
            subtotal=subtotal,
            shipping_fee=fee,
            total_amount=subtotal + fee,
            currency=settings.DEFAULT_CURRENCY,
            shipping_address=payload.shipping_address.model_dump(),
            note=payload.note,
        )
        for item in items:
            product = products[item.product_id]
            order.lines.append(
                OrderLine(
                    product_id=product.id,
                    product_name=product.name,
                    unit_price=Decimal(item.price_at_time),
                    quantity=item.quantity,
                    line_total=Decimal(item.price_at_time) * item.quantity,
                    **item.variant.as_columns(),
                )
            )
        db.add(order)
        await db.flush()

        for item in items:
            await inventory_service.reserve(db, item.product_id, item.quantity, reason=f"order:{order.order_code}")

        cart.status = CartStatus.converted
        await db.flush([cart])
        await cart_service.open_cart(db, customer_id)
    except ServiceError as exc:
        record_checkout("rejected")
        logger.warning(
            "Checkout rejected",
            extra={"customer_id": str(customer_id), "reason": exc.code, "detail": exc.detail},
        )
        raise

    await db.refresh(order, attribute_names=["lines"])
    placed = {
        "customer_id": str(customer_id),
        "order_id": str(order.id),
        "order_code": order.order_code,
        "total_amount": str(order.total_amount),
    }
    after_commit(db, lambda: _order_placed(placed))
    return order
