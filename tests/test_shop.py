# tests/test_shop.py
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.session_async import transactional
from storefront.schemas.shop import ShopCreate, ShopUpdate
from storefront.services import shop_service


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _shop_body(code: str, name: str = "Main Store") -> dict:
    return {
        "shop_name": name,
        "shop_code": code,
        "email": "hello@storefront.io",
        "phone": "555-0199",
        "address": {"street": "1 Market St", "city": "Springfield", "country": "US"},
    }


@pytest.mark.asyncio
async def test_no_active_shop(client: AsyncClient):
    resp = await client.get("/api/v1/shop")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_shop_crud_invalidates_cache(client: AsyncClient, admin_token, shop_cache):
    created = await client.post("/api/v1/admin/shops", json=_shop_body("main"), headers=_auth(admin_token))
    assert created.status_code == 201, created.text
    shop = created.json()
    assert shop["shop_code"] == "MAIN"
    assert shop["is_active"] is True

    public = await client.get("/api/v1/shop")
    assert public.status_code == 200
    assert public.json()["shop_name"] == "Main Store"
    assert shop_cache.get() is not None

    renamed = await client.patch(
        f"/api/v1/admin/shops/{shop['id']}",
        json={"shop_name": "Renamed Store"},
        headers=_auth(admin_token),
    )
    assert renamed.status_code == 200
    assert shop_cache.get() is None
    assert (await client.get("/api/v1/shop")).json()["shop_name"] == "Renamed Store"

    duplicate = await client.post("/api/v1/admin/shops", json=_shop_body("MAIN"), headers=_auth(admin_token))
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_single_active_shop(client: AsyncClient, admin_token):
    first = (await client.post("/api/v1/admin/shops", json=_shop_body("one", "One"), headers=_auth(admin_token))).json()
    second = (await client.post("/api/v1/admin/shops", json=_shop_body("two", "Two"), headers=_auth(admin_token))).json()

    shops = (await client.get("/api/v1/admin/shops", headers=_auth(admin_token))).json()
    assert shops["count"] == 2
    assert [s["shop_code"] for s in shops["items"] if s["is_active"]] == ["TWO"]
    assert (await client.get("/api/v1/shop")).json()["id"] == second["id"]

    activated = await client.post(f"/api/v1/admin/shops/{first['id']}/activate", headers=_auth(admin_token))
    assert activated.status_code == 200
    assert (await client.get("/api/v1/shop")).json()["id"] == first["id"]

    shops = (await client.get("/api/v1/admin/shops", headers=_auth(admin_token))).json()
    assert [s["shop_code"] for s in shops["items"] if s["is_active"]] == ["ONE"]


@pytest.mark.asyncio
async def test_shop_admin_requires_scope(client: AsyncClient, customer_token):
    resp = await client.post("/api/v1/admin/shops", json=_shop_body("x1"), headers=_auth(customer_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_cache_is_dropped_when_the_write_commits(async_db_session: AsyncSession, shop_cache):
    async with transactional(async_db_session):
        shop = await shop_service.create_shop(async_db_session, ShopCreate(**_shop_body("main")), shop_cache)
    shop_id = shop.id

    async with transactional(async_db_session):
        cached = await shop_service.get_active_shop(async_db_session, shop_cache)
    assert cached.shop_name == "Main Store"

    with pytest.raises(RuntimeError):
        async with transactional(async_db_session):
            await shop_service.update_shop(async_db_session, shop_id, ShopUpdate(shop_name="Draft"), shop_cache)
            raise RuntimeError("abort before commit")
    assert shop_cache.get() is cached

    async with transactional(async_db_session):
        await shop_service.update_shop(async_db_session, shop_id, ShopUpdate(shop_name="Renamed"), shop_cache)
        # Mientras la transacción sigue abierta el snapshot anterior sigue vigente.
        assert shop_cache.get() is cached
    assert shop_cache.get() is None

    async with transactional(async_db_session):
        fresh = await shop_service.get_active_shop(async_db_session, shop_cache)
    assert fresh.shop_name == "Renamed"
