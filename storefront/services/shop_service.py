from __future__ import annotations

import uuid
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger
from storefront.core.shop_cache import ShopConfigCache
from storefront.db.session_async import after_commit
from storefront.models.shop import Shop
from storefront.schemas.shop import ShopCreate, ShopRead, ShopUpdate
from storefront.services.exceptions import ConflictError, ShopNotFoundError

logger = get_logger("storefront.shop")


async def get_active_shop(db: AsyncSession, cache: ShopConfigCache[ShopRead]) -> ShopRead | None:
    """Active shop configuration, served from ``cache`` while fresh."""
    cached = cache.get()
    if cached is not None:
        return cached

    shop = (await db.execute(select(Shop).where(Shop.is_active.is_(True)))).scalars().first()
    if shop is None:
        return None
    snapshot = ShopRead.model_validate(shop)
    cache.set(snapshot)
    return snapshot


async def list_shops(db: AsyncSession) -> List[Shop]:
    result = await db.execute(select(Shop).order_by(Shop.created_at.desc()))
    return list(result.scalars().all())


async def _get_shop(db: AsyncSession, shop_id: uuid.UUID) -> Shop:
    shop = await db.get(Shop, shop_id)
    if shop is None:
        raise ShopNotFoundError("Shop not found")
    return shop


async def _ensure_code_free(db: AsyncSession, shop_code: str, *, exclude: uuid.UUID | None = None) -> None:
    stmt = select(Shop.id).where(Shop.shop_code == shop_code)
    if exclude is not None:
        stmt = stmt.where(Shop.id != exclude)
    if (await db.execute(stmt)).first() is not None:
        raise ConflictError("Shop code already exists")


async def _deactivate_others(db: AsyncSession, keep: uuid.UUID | None = None) -> None:
    stmt = update(Shop).where(Shop.is_active.is_(True))
    if keep is not None:
        stmt = stmt.where(Shop.id != keep)
    await db.execute(stmt.values(is_active=False).execution_options(synchronize_session=False))


async def create_shop(db: AsyncSession, payload: ShopCreate, cache: ShopConfigCache[ShopRead]) -> Shop:
    """Create a shop and make it the active one.

    The cached configuration is dropped once the transaction commits, so a
    concurrent read cannot re-cache the previous row.
    """
    code = payload.shop_code.strip().upper()
    await _ensure_code_free(db, code)
    await _deactivate_others(db)

    data = payload.model_dump()
    data["shop_code"] = code
    shop = Shop(**data, is_active=True)
    db.add(shop)
    await db.flush()
    await db.refresh(shop)

    after_commit(db, cache.invalidate)
    logger.info("Shop created", extra={"shop_id": str(shop.id), "shop_code": code})
    return shop


async def update_shop(
    db: AsyncSession,
    shop_id: uuid.UUID,
    payload: ShopUpdate,
    cache: ShopConfigCache[ShopRead],
) -> Shop:
    shop = await _get_shop(db, shop_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("shop_code"):
        changes["shop_code"] = changes["shop_code"].strip().upper()
        await _ensure_code_free(db, changes["shop_code"], exclude=shop.id)
    if changes.get("is_active") is True and not shop.is_active:
        await _deactivate_others(db, keep=shop.id)

    for field, value in changes.items():
        setattr(shop, field, value)
    await db.flush()
    await db.refresh(shop)

    after_commit(db, cache.invalidate)
    return shop


async def activate_shop(db: AsyncSession, shop_id: uuid.UUID, cache: ShopConfigCache[ShopRead]) -> Shop:
    shop = await _get_shop(db, shop_id)
    await _deactivate_others(db, keep=shop.id)
    shop.is_active = True
    await db.flush()
    await db.refresh(shop)

    after_commit(db, cache.invalidate)
    logger.info("Shop activated", extra={"shop_id": str(shop.id)})
    return shop
