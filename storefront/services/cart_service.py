from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.logging import get_logger
from storefront.domain.enums import CartStatus
from storefront.domain.variant import VariantKey
from storefront.models.cart import Cart, CartItem
from storefront.services import inventory_service
from storefront.services.exceptions import (
    CartItemNotFoundError,
    DuplicateActiveCartError,
    InsufficientStockError,
    InvalidQuantityError,
)

logger = get_logger("storefront.cart")


def _recompute_totals(cart: Cart) -> None:
    cart.total_amount = sum((item.line_total for item in cart.items), Decimal("0"))
    cart.item_count = sum(item.quantity for item in cart.items)


async def _refresh_cart(db: AsyncSession, cart: Cart) -> None:
    stmt = (
        select(Cart)
        .where(Cart.id == cart.id)
        .options(selectinload(Cart.items).joinedload(CartItem.product))
        .execution_options(populate_existing=True)
    )
    await db.execute(stmt)


async def _find_active_cart(db: AsyncSession, customer_id: uuid.UUID, *, lock: bool = False) -> Cart | None:
    stmt = (
        select(Cart)
        .where(Cart.customer_id == customer_id, Cart.status == CartStatus.active)
        .execution_options(populate_existing=True)
    )
    if lock:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalars().first()


async def open_cart(db: AsyncSession, customer_id: uuid.UUID) -> Cart:
    """Insert a new active cart for the customer.

    Runs in a SAVEPOINT so a unique-index violation (someone else opened it
    first) leaves the surrounding transaction usable.
    """
    cart = Cart(customer_id=customer_id, status=CartStatus.active, total_amount=Decimal("0"), item_count=0)
    async with db.begin_nested():
        db.add(cart)
        await db.flush([cart])
    return cart


async def get_or_create_active_cart(db: AsyncSession, customer_id: uuid.UUID, *, lock: bool = False) -> Cart:
    cart = await _find_active_cart(db, customer_id, lock=lock)
    if cart:
        return cart

    try:
        cart = await open_cart(db, customer_id)
    except IntegrityError:
        # Carrera con otra request del mismo cliente: usar el carrito que ganó.
        cart = await _find_active_cart(db, customer_id, lock=lock)
        if cart is None:
            raise DuplicateActiveCartError("Could not resolve the active cart for this customer")
        return cart

    logger.info("Active cart created", extra={"customer_id": str(customer_id), "cart_id": str(cart.id)})
    await _refresh_cart(db, cart)
    return cart


async def get_cart_view(db: AsyncSession, customer_id: uuid.UUID) -> Cart:
    cart = await get_or_create_active_cart(db, customer_id)
    await _refresh_cart(db, cart)
    return cart


def _find_line(cart: Cart, product_id: uuid.UUID, variant: VariantKey) -> CartItem | None:
    for item in cart.items:
        if item.product_id == product_id and item.variant == variant:
            return item
    return None


async def _get_owned_line(db: AsyncSession, customer_id: uuid.UUID, line_id: uuid.UUID) -> tuple[Cart, CartItem]:
    cart = await _find_active_cart(db, customer_id, lock=True)
    if cart is None:
        raise CartItemNotFoundError("Cart item not found")
    await _refresh_cart(db, cart)
    item = next((i for i in cart.items if i.id == line_id), None)
    if item is None:
        raise CartItemNotFoundError("Cart item not found")
    return cart, item


async def add_item(
    db: AsyncSession,
    customer_id: uuid.UUID,
    product_id: uuid.UUID,
    quantity: int,
    variant: VariantKey | None = None,
) -> CartItem:
    """Add ``quantity`` of a product/variant to the customer's active cart.

    A line with the same product and variant absorbs the quantity and keeps
    the price it captured when it was created.
    """
    if quantity <= 0:
        raise InvalidQuantityError("Quantity must be greater than 0.")
    variant = variant or VariantKey()

    product = await inventory_service.get_product(db, product_id)
    inventory_service.ensure_available(product, quantity)

    cart = await get_or_create_active_cart(db, customer_id, lock=True)
    await _refresh_cart(db, cart)

    existing = _find_line(cart, product_id, variant)
    if existing:
        inventory_service.ensure_available(product, existing.quantity + quantity)
        existing.quantity += quantity
        line = existing
    else:
        line = CartItem(
            product_id=product.id,
            quantity=quantity,
            price_at_time=Decimal(product.price),
            **variant.as_columns(),
        )
        cart.items.append(line)

    await db.flush()
    await _refresh_cart(db, cart)
    _recompute_totals(cart)
    await db.flush()
    await db.refresh(line)
    return line


async def update_item_quantity(
    db: AsyncSession,
    customer_id: uuid.UUID,
    line_id: uuid.UUID,
    quantity: int,
) -> CartItem:
    if quantity <= 0:
        raise InvalidQuantityError("Quantity must be greater than 0.")

    cart, item = await _get_owned_line(db, customer_id, line_id)
    product = await inventory_service.get_product(db, item.product_id)
    if product.stock_quantity is not None and product.stock_quantity < quantity:
        raise InsufficientStockError(f"Insufficient stock for {product.name}")

    item.quantity = quantity
    _recompute_totals(cart)
    await db.flush()
    await db.refresh(item)
    return item


async def remove_item(db: AsyncSession, customer_id: uuid.UUID, line_id: uuid.UUID) -> Cart:
    cart, item = await _get_owned_line(db, customer_id, line_id)

    cart.items.remove(item)
    await db.flush()
    _recompute_totals(cart)
    await db.flush()
    await _refresh_cart(db, cart)
    return cart


async def clear_cart(db: AsyncSession, customer_id: uuid.UUID) -> Cart:
    cart = await get_or_create_active_cart(db, customer_id, lock=True)
    await _refresh_cart(db, cart)

    cart.items.clear()
    cart.total_amount = Decimal("0")
    cart.item_count = 0
    await db.flush()
    await _refresh_cart(db, cart)
    return cart
