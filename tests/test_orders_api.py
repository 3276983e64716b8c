# tests/test_orders_api.py
import pytest
from httpx import AsyncClient

CHECKOUT_BODY = {
    "payment_method": "cod",
    "shipping_address": {
        "full_name": "Ada Lovelace",
        "phone": "555-0101",
        "address": "12 St James's Square",
        "city": "London",
        "country": "UK",
    },
}


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _fill_cart(client: AsyncClient, token: str, product, quantity: int = 1) -> None:
    resp = await client.post(
        "/api/v1/cart/items",
        json={"product_id": str(product.id), "quantity": quantity},
        headers=_auth(token),
    )
    assert resp.status_code == 201, resp.text


@pytest.mark.asyncio
async def test_checkout_and_read_orders(client: AsyncClient, customer_token, other_token, make_product, stock_of):
    product = make_product(price="25.00", stock=3)
    await _fill_cart(client, customer_token, product)

    ro = await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY, headers=_auth(customer_token))
    assert ro.status_code == 201, ro.text
    order = ro.json()
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["subtotal"] == 25.0
    assert order["total_amount"] == 35.0
    assert order["order_code"].startswith("ORD-")
    assert order["lines"][0]["quantity"] == 1
    assert stock_of(product.id) == 2

    cart = await client.get("/api/v1/cart", headers=_auth(customer_token))
    assert cart.json()["items"] == []

    listing = await client.get("/api/v1/orders", headers=_auth(customer_token))
    assert listing.status_code == 200
    assert listing.json()["count"] == 1
    assert listing.json()["total"] == 1

    single = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth(customer_token))
    assert single.status_code == 200
    assert single.json()["order_code"] == order["order_code"]

    foreign = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth(other_token))
    assert foreign.status_code == 404
    assert (await client.get("/api/v1/orders", headers=_auth(other_token))).json()["total"] == 0


@pytest.mark.asyncio
async def test_checkout_empty_cart(client: AsyncClient, customer_token):
    resp = await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY, headers=_auth(customer_token))
    assert resp.status_code == 400
    assert resp.json()["code"] == "empty_cart"


@pytest.mark.asyncio
async def test_checkout_validates_payload(client: AsyncClient, customer_token, make_product):
    await _fill_cart(client, customer_token, make_product())
    resp = await client.post(
        "/api/v1/orders/checkout",
        json={"payment_method": "barter", "shipping_address": CHECKOUT_BODY["shipping_address"]},
        headers=_auth(customer_token),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_customer_cancel(client: AsyncClient, customer_token, make_product, stock_of):
    product = make_product(stock=4)
    await _fill_cart(client, customer_token, product, quantity=3)
    order = (await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY, headers=_auth(customer_token))).json()
    assert stock_of(product.id) == 1

    rc = await client.post(f"/api/v1/orders/{order['id']}/cancel", headers=_auth(customer_token))
    assert rc.status_code == 200, rc.text
    assert rc.json()["status"] == "cancelled"
    assert rc.json()["cancelled_at"] is not None
    assert stock_of(product.id) == 4

    again = await client.post(f"/api/v1/orders/{order['id']}/cancel", headers=_auth(customer_token))
    assert again.status_code == 409
    assert again.json()["code"] == "order_not_cancellable"
    assert stock_of(product.id) == 4
