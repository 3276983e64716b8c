# tests/conftest.py
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import os
import uuid
from decimal import Decimal
from typing import Callable, Generator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-storefront")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from storefront.main import app
from storefront.core.config import settings
from storefront.core.security import create_access_token
from storefront.core.shop_cache import ShopConfigCache
from storefront.db.session import Base
from storefront.db.session_async import AsyncSessionLocal
from storefront.models.customer import Customer
from storefront.models.product import Product

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

sync_engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sync_engine)


# ---------- Fixtures ----------
@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Crea las tablas en SQLite solo una vez por sesión de tests."""
    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with sync_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(autouse=True)
def shop_cache() -> ShopConfigCache:
    """Cache nuevo por test; ASGITransport no ejecuta el lifespan."""
    cache = ShopConfigCache(ttl_seconds=settings.SHOP_CACHE_TTL_SECONDS)
    app.state.shop_cache = cache
    return cache


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Sesión sync para sembrar datos y verificar resultados."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest_asyncio.fixture(scope="function")
async def client():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_db_session() -> AsyncSession:
    """Provee una AsyncSession para pruebas directas de servicios."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()


# --- Clientes y productos ---

def _make_customer(db_session: Session, **overrides) -> Customer:
    data = {
        "email": f"customer-{uuid.uuid4()}@example.com",
        "full_name": "Test Customer",
        "is_active": True,
    }
    data.update(overrides)
    customer = Customer(**data)
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture(scope="function")
def customer(db_session: Session) -> Customer:
    return _make_customer(db_session)


@pytest.fixture(scope="function")
def other_customer(db_session: Session) -> Customer:
    return _make_customer(db_session, full_name="Other Customer")


@pytest.fixture(scope="function")
def admin_customer(db_session: Session) -> Customer:
    return _make_customer(db_session, full_name="Store Admin")


@pytest.fixture(scope="function")
def make_customer(db_session: Session) -> Callable[..., Customer]:
    return lambda **overrides: _make_customer(db_session, **overrides)


@pytest.fixture(scope="function")
def make_product(db_session: Session) -> Callable[..., Product]:
    """Factory: ``make_product(price="10.00", stock=5)``; ``stock=None`` = no controlado."""

    def _factory(name: str | None = None, price: str = "10.00", stock: int | None = 10, is_active: bool = True) -> Product:
        product = Product(
            name=name or f"Prod-{uuid.uuid4().hex[:8]}",
            price=Decimal(price),
            stock_quantity=stock,
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _factory


@pytest.fixture(scope="function")
def stock_of(db_session: Session) -> Callable[[uuid.UUID], int | None]:
    """Lee el stock actual desde la base, ignorando el identity map."""

    def _read(product_id: uuid.UUID) -> int | None:
        db_session.expire_all()
        return db_session.get(Product, product_id).stock_quantity

    return _read


# --- Tokens ---

@pytest.fixture(scope="function")
def customer_token(customer: Customer) -> str:
    return create_access_token(customer.id)


@pytest.fixture(scope="function")
def other_token(other_customer: Customer) -> str:
    return create_access_token(other_customer.id)


@pytest.fixture(scope="function")
def admin_token(admin_customer: Customer) -> str:
    return create_access_token(admin_customer.id, scopes=["admin"])
