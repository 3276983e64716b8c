# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.error_handlers import register_exception_handlers
from storefront.api.routers import admin, cart, orders, shop
from storefront.core.config import settings
from storefront.core.logging import get_logger, setup_logging
from storefront.core.metrics import export_metrics
from storefront.core.shop_cache import ShopConfigCache
from storefront.middleware import ObservabilityMiddleware

# --- Models registration (necesario para que Alembic los detecte) ---
import storefront.models.customer   # noqa: F401
import storefront.models.product    # noqa: F401
import storefront.models.inventory  # noqa: F401
import storefront.models.cart       # noqa: F401
import storefront.models.order      # noqa: F401
import storefront.models.shop       # noqa: F401

logger = get_logger("storefront")

TAGS_METADATA = [
    {"name": "cart", "description": "Carrito activo del cliente."},
    {"name": "orders", "description": "Checkout y ordenes del cliente."},
    {"name": "admin", "description": "Gestion de ordenes e inventario (administracion)."},
    {"name": "shop", "description": "Configuracion de la tienda."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    app.state.shop_cache = ShopConfigCache(ttl_seconds=settings.SHOP_CACHE_TTL_SECONDS)
    logger.info("Application startup", extra={"project": settings.PROJECT_NAME})
    yield
    logger.info("Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    description=(
        "Storefront API: carrito, checkout y ciclo de vida de ordenes.\n\n"
        "Usa el botón **Authorize** para probar los endpoints protegidos."
    ),
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
    swagger_ui_parameters={"persistAuthorization": True},
)

# --- Middlewares ---
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Ajustar en producción
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# --- Routers ---
app.include_router(cart.router, prefix=settings.API_V1_STR)
app.include_router(orders.router, prefix=settings.API_V1_STR)
app.include_router(admin.router, prefix=settings.API_V1_STR)
app.include_router(shop.router, prefix=settings.API_V1_STR)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    payload, content_type = export_metrics()
    return Response(content=payload, media_type=content_type)


@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "docs_url": "/docs", "redoc_url": "/redoc"}
