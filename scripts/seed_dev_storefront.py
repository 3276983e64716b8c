"""Seed a local database with a demo shop, catalog and customers.

Prints ready-to-use bearer tokens for the seeded customer and admin.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy import select

from storefront.core.security import create_access_token
from storefront.db.session_async import AsyncSessionLocal, transactional
from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.shop import Shop


@dataclass(frozen=True, slots=True)
class ProductSeed:
    name: str
    price: Decimal
    stock: int | None


PRODUCTS: tuple[ProductSeed, ...] = (
    ProductSeed("Classic Tee", Decimal("19.90"), 40),
    ProductSeed("Denim Jacket", Decimal("89.00"), 5),
    ProductSeed("Canvas Tote", Decimal("12.50"), None),
    ProductSeed("Wool Beanie", Decimal("15.00"), 0),
)

CUSTOMERS = (
    ("demo@storefront.dev", "Demo Customer", []),
    ("admin@storefront.dev", "Store Admin", ["admin"]),
)

logger = logging.getLogger("storefront.seed")


async def _ensure_customer(db, email: str, full_name: str) -> Customer:
    customer = (await db.execute(select(Customer).where(Customer.email == email))).scalars().first()
    if customer is None:
        customer = Customer(email=email, full_name=full_name, is_active=True)
        db.add(customer)
        await db.flush()
        logger.info("Created customer %s", email)
    return customer


async def seed() -> dict[str, str]:
    tokens: dict[str, str] = {}
    async with AsyncSessionLocal() as db:
        async with transactional(db):
            existing = set((await db.execute(select(Product.name))).scalars().all())
            for item in PRODUCTS:
                if item.name in existing:
                    continue
                db.add(Product(name=item.name, price=item.price, stock_quantity=item.stock, is_active=True))
                logger.info("Created product %s", item.name)

            has_active = (await db.execute(select(Shop.id).where(Shop.is_active.is_(True)))).first() is not None
            if (await db.execute(select(Shop.id).where(Shop.shop_code == "DEV"))).first() is None:
                db.add(
                    Shop(
                        shop_name="Storefront Dev",
                        shop_code="DEV",
                        email="hello@storefront.dev",
                        phone="555-0100",
                        address={"street": "1 Main St", "city": "Springfield", "country": "US"},
                        is_active=not has_active,
                    )
                )

            for email, full_name, scopes in CUSTOMERS:
                customer = await _ensure_customer(db, email, full_name)
                tokens[email] = create_access_token(customer.id, expires_minutes=60 * 24, scopes=scopes)
    return tokens


async def main() -> None:
    tokens = await seed()
    for email, token in tokens.items():
        print(f"{email}\n  Bearer {token}\n")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
