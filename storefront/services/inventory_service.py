from __future__ import annotations

import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.models.inventory import InventoryMovement, MovementKind
from storefront.models.product import Product
from storefront.services.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
    ProductUnavailableError,
)

logger = get_logger("storefront.inventory")


def _ensure_positive(quantity: int) -> None:
    if quantity <= 0:
        raise InvalidQuantityError("Quantity must be greater than 0.")


async def _log_movement(
    db: AsyncSession,
    product_id: uuid.UUID,
    mtype: MovementKind,
    qty: int,
    reason: str | None,
) -> None:
    movement = InventoryMovement(
        product_id=product_id,
        type=mtype,
        quantity=int(qty),
        reason=reason,
    )
    db.add(movement)
    await db.flush([movement])


async def get_product(db: AsyncSession, product_id: uuid.UUID, *, for_update: bool = False) -> Product:
    """Load the current product row, optionally locking it for the rest of the transaction."""
    stmt = select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update()
    product = (await db.execute(stmt)).scalar_one_or_none()
    if product is None:
        raise ProductNotFoundError("Product not found")
    return product


def ensure_available(product: Product, quantity: int) -> None:
    """Non-mutating check: active product and enough tracked stock for ``quantity``."""
    if not product.is_active:
        raise ProductUnavailableError(f"Product {product.name} is not available")
    if product.stock_quantity is not None and product.stock_quantity < quantity:
        raise InsufficientStockError(f"Insufficient stock for {product.name}")


async def reserve(
    db: AsyncSession,
    product_id: uuid.UUID,
    quantity: int,
    reason: str | None = None,
) -> Product:
    """Take ``quantity`` units out of available stock.

    Check and decrement run as one conditional UPDATE, so two concurrent
    reservations can never both consume the last unit. Untracked products
    (NULL stock) always succeed and are left untouched.
    """
    _ensure_positive(quantity)
    stmt = (
        update(Product)
        .where(
            Product.id == product_id,
            Product.stock_quantity.is_not(None),
            Product.stock_quantity >= quantity,
        )
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)

    if result.rowcount == 0:
        product = await get_product(db, product_id)
        if product.stock_quantity is None:
            return product
        logger.warning(
            "Stock reservation rejected",
            extra={"product_id": str(product_id), "requested": quantity, "available": product.stock_quantity},
        )
        raise InsufficientStockError(f"Insufficient stock for {product.name}")

    await _log_movement(db, product_id, MovementKind.RESERVE, quantity, reason)
    return await get_product(db, product_id)


async def release(
    db: AsyncSession,
    product_id: uuid.UUID | None,
    quantity: int,
    reason: str | None = None,
) -> Product | None:
    """Return ``quantity`` units to available stock.

    No upper bound: it only ever reverses an earlier successful ``reserve``.
    Untracked or deleted products are a no-op.
    """
    _ensure_positive(quantity)
    if product_id is None:
        return None

    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity.is_not(None))
        .values(stock_quantity=Product.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount == 0:
        return None

    await _log_movement(db, product_id, MovementKind.RELEASE, quantity, reason)
    return await get_product(db, product_id)


async def receive_stock(
    db: AsyncSession,
    product_id: uuid.UUID,
    quantity: int,
    reason: str | None = None,
) -> Product:
    """Restock a tracked product."""
    _ensure_positive(quantity)
    product = await get_product(db, product_id, for_update=True)
    if product.stock_quantity is None:
        raise ConflictError(f"Stock for {product.name} is not tracked")

    await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    await _log_movement(db, product_id, MovementKind.RECEIVE, quantity, reason)
    logger.info("Stock received", extra={"product_id": str(product_id), "quantity": quantity})
    return await get_product(db, product_id)


async def list_movements(
    db: AsyncSession,
    product_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[InventoryMovement], int]:
    await get_product(db, product_id)
    total = await db.scalar(
        select(func.count(InventoryMovement.id)).where(InventoryMovement.product_id == product_id)
    )
    stmt = (
        select(InventoryMovement)
        .where(InventoryMovement.product_id == product_id)
        .order_by(InventoryMovement.created_at.desc())
        .offset(int(offset))
        .limit(int(limit))
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), int(total or 0)
