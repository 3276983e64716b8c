from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Security, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_admin, get_shop_cache
from storefront.core.shop_cache import ShopConfigCache
from storefront.db.session_async import get_async_db, transactional
from storefront.models.customer import Customer
from storefront.schemas.shop import ShopCreate, ShopListRead, ShopRead, ShopUpdate
from storefront.services import shop_service

router = APIRouter(tags=["shop"])


@router.get("/shop", response_model=ShopRead)
async def get_active_shop(
    db: AsyncSession = Depends(get_async_db),
    cache: ShopConfigCache = Depends(get_shop_cache),
):
    shop = await shop_service.get_active_shop(db, cache)
    if shop is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "No active shop configured")
    return shop


@router.get("/admin/shops", response_model=ShopListRead)
async def list_shops(
    db: AsyncSession = Depends(get_async_db),
    _: Customer = Security(get_current_admin),
):
    shops = await shop_service.list_shops(db)
    return {"count": len(shops), "total": len(shops), "items": shops}


@router.post("/admin/shops", response_model=ShopRead, status_code=status.HTTP_201_CREATED)
async def create_shop(
    payload: ShopCreate,
    db: AsyncSession = Depends(get_async_db),
    cache: ShopConfigCache = Depends(get_shop_cache),
    _: Customer = Security(get_current_admin),
):
    async with transactional(db):
        shop = await shop_service.create_shop(db, payload, cache)
    return shop


@router.patch("/admin/shops/{shop_id}", response_model=ShopRead)
async def update_shop(
    shop_id: UUID,
    payload: ShopUpdate,
    db: AsyncSession = Depends(get_async_db),
    cache: ShopConfigCache = Depends(get_shop_cache),
    _: Customer = Security(get_current_admin),
):
    async with transactional(db):
        shop = await shop_service.update_shop(db, shop_id, payload, cache)
    return shop


@router.post("/admin/shops/{shop_id}/activate", response_model=ShopRead)
async def activate_shop(
    shop_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    cache: ShopConfigCache = Depends(get_shop_cache),
    _: Customer = Security(get_current_admin),
):
    async with transactional(db):
        shop = await shop_service.activate_shop(db, shop_id, cache)
    return shop
