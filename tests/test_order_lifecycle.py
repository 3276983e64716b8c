# tests/test_order_lifecycle.py
import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.session_async import transactional
from storefront.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from storefront.schemas.order import CheckoutRequest, ShippingAddress
from storefront.services import cart_service, checkout_service, order_service
from storefront.services.exceptions import (
    InvalidStatusTransitionError,
    OrderNotCancellableError,
    OrderNotFoundError,
)


def _payload() -> CheckoutRequest:
    return CheckoutRequest(
        payment_method=PaymentMethod.bank_transfer,
        shipping_address=ShippingAddress(
            full_name="Grace Hopper",
            phone="555-0100",
            address="1 Navy Yard",
            city="Arlington",
            country="US",
        ),
    )


async def _place_order(db: AsyncSession, customer_id, items):
    async with transactional(db):
        for product_id, quantity in items:
            await cart_service.add_item(db, customer_id, product_id, quantity)
    async with transactional(db):
        return await checkout_service.checkout(db, customer_id, _payload())


@pytest.mark.asyncio
async def test_cancel_restores_stock(async_db_session: AsyncSession, customer, make_product, stock_of):
    p = make_product(stock=5)
    q = make_product(stock=2)
    order = await _place_order(async_db_session, customer.id, [(p.id, 3), (q.id, 2)])
    assert (stock_of(p.id), stock_of(q.id)) == (2, 0)

    async with transactional(async_db_session):
        cancelled = await order_service.cancel_order(async_db_session, order.id, customer_id=customer.id)

    assert cancelled.status == OrderStatus.cancelled
    assert cancelled.cancelled_at is not None
    assert (stock_of(p.id), stock_of(q.id)) == (5, 2)

    with pytest.raises(OrderNotCancellableError):
        async with transactional(async_db_session):
            await order_service.cancel_order(async_db_session, order.id, customer_id=customer.id)
    assert (stock_of(p.id), stock_of(q.id)) == (5, 2)


@pytest.mark.asyncio
async def test_cancel_processing_order(async_db_session: AsyncSession, customer, make_product, stock_of):
    p = make_product(stock=4)
    order = await _place_order(async_db_session, customer.id, [(p.id, 1)])

    async with transactional(async_db_session):
        processing = await order_service.advance_order_status(async_db_session, order.id)
    assert processing.status == OrderStatus.processing
    assert processing.processed_at is not None

    async with transactional(async_db_session):
        cancelled = await order_service.cancel_order(async_db_session, order.id)
    assert cancelled.status == OrderStatus.cancelled
    assert stock_of(p.id) == 4


@pytest.mark.asyncio
async def test_forward_flow_and_terminal_states(async_db_session: AsyncSession, customer, make_product, stock_of):
    p = make_product(stock=2)
    order = await _place_order(async_db_session, customer.id, [(p.id, 1)])
    order_id = order.id

    seen = []
    for _ in range(3):
        async with transactional(async_db_session):
            current = await order_service.advance_order_status(async_db_session, order_id)
        seen.append(current.status)
    assert seen == [OrderStatus.processing, OrderStatus.shipped, OrderStatus.completed]
    assert current.shipped_at is not None
    assert current.completed_at is not None
    assert stock_of(p.id) == 1

    with pytest.raises(InvalidStatusTransitionError):
        async with transactional(async_db_session):
            await order_service.advance_order_status(async_db_session, order_id)

    with pytest.raises(OrderNotCancellableError):
        async with transactional(async_db_session):
            await order_service.cancel_order(async_db_session, order_id)


@pytest.mark.asyncio
async def test_shipped_order_cannot_be_cancelled(async_db_session: AsyncSession, customer, make_product, stock_of):
    p = make_product(stock=3)
    order = await _place_order(async_db_session, customer.id, [(p.id, 2)])
    async with transactional(async_db_session):
        await order_service.advance_order_status(async_db_session, order.id, OrderStatus.processing)
        await order_service.advance_order_status(async_db_session, order.id, OrderStatus.shipped)

    with pytest.raises(OrderNotCancellableError):
        async with transactional(async_db_session):
            await order_service.cancel_order(async_db_session, order.id)
    assert stock_of(p.id) == 1


@pytest.mark.asyncio
async def test_advance_rejects_skipping_states(async_db_session: AsyncSession, customer, make_product):
    p = make_product(stock=3)
    order = await _place_order(async_db_session, customer.id, [(p.id, 1)])

    with pytest.raises(InvalidStatusTransitionError):
        async with transactional(async_db_session):
            await order_service.advance_order_status(async_db_session, order.id, OrderStatus.completed)


@pytest.mark.asyncio
async def test_payment_confirmation_starts_processing(async_db_session: AsyncSession, customer, make_product):
    p = make_product(stock=3)
    first = await _place_order(async_db_session, customer.id, [(p.id, 1)])
    second = await _place_order(async_db_session, customer.id, [(p.id, 1)])

    async with transactional(async_db_session):
        paid = await order_service.update_payment_status(async_db_session, first.id, PaymentStatus.paid)
    assert paid.payment_status == PaymentStatus.paid
    assert paid.paid_at is not None
    assert paid.status == OrderStatus.processing

    async with transactional(async_db_session):
        failed = await order_service.update_payment_status(async_db_session, second.id, PaymentStatus.failed)
    assert failed.payment_status == PaymentStatus.failed
    assert failed.status == OrderStatus.pending


@pytest.mark.asyncio
async def test_orders_are_scoped_to_customer(
    async_db_session: AsyncSession, customer, other_customer, make_product, stock_of
):
    p = make_product(stock=3)
    order = await _place_order(async_db_session, customer.id, [(p.id, 1)])
    order_id = order.id

    with pytest.raises(OrderNotFoundError):
        async with transactional(async_db_session):
            await order_service.get_order(async_db_session, order_id, customer_id=other_customer.id)

    with pytest.raises(OrderNotFoundError):
        async with transactional(async_db_session):
            await order_service.cancel_order(async_db_session, order_id, customer_id=other_customer.id)
    assert stock_of(p.id) == 2

    with pytest.raises(OrderNotFoundError):
        async with transactional(async_db_session):
            await order_service.get_order(async_db_session, uuid.uuid4())


@pytest.mark.asyncio
async def test_lookup_and_listing(async_db_session: AsyncSession, customer, other_customer, make_product):
    p = make_product(stock=None)
    mine = await _place_order(async_db_session, customer.id, [(p.id, 1)])
    await _place_order(async_db_session, customer.id, [(p.id, 2)])
    await _place_order(async_db_session, other_customer.id, [(p.id, 1)])

    async with transactional(async_db_session):
        by_code = await order_service.get_order_by_code(async_db_session, mine.order_code.lower())
        my_orders, my_total = await order_service.list_customer_orders(async_db_session, customer.id, limit=1)
        await order_service.advance_order_status(async_db_session, mine.id)

    assert by_code.id == mine.id
    assert my_total == 2
    assert len(my_orders) == 1

    async with transactional(async_db_session):
        processing, total = await order_service.list_orders(async_db_session, status_filter=OrderStatus.processing)
        everything, grand_total = await order_service.list_orders(async_db_session)
        others, others_total = await order_service.list_orders(async_db_session, customer_id=other_customer.id)

    assert total == 1 and processing[0].id == mine.id
    assert grand_total == 3 and len(everything) == 3
    assert others_total == 1 and others[0].customer_id == other_customer.id


@pytest.mark.asyncio
async def test_transitions_are_counted_once_committed(
    async_db_session: AsyncSession, customer, make_product, monkeypatch
):
    p = make_product(stock=3)
    order = await _place_order(async_db_session, customer.id, [(p.id, 1)])
    order_id = order.id
    transitions = []
    monkeypatch.setattr(order_service, "record_order_transition", transitions.append)

    with pytest.raises(RuntimeError):
        async with transactional(async_db_session):
            await order_service.advance_order_status(async_db_session, order_id)
            raise RuntimeError("abort before commit")
    assert transitions == []

    async with transactional(async_db_session):
        current = await order_service.advance_order_status(async_db_session, order_id)
        assert transitions == []
    assert current.status == OrderStatus.processing
    assert transitions == ["processing"]
