# storefront/api/deps.py
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import OAuth2PasswordBearer, SecurityScopes
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.security import decode_access_token
from storefront.core.shop_cache import ShopConfigCache
from storefront.db.session_async import get_async_db
from storefront.models.customer import Customer

OAUTH_SCOPES = {
    "admin": "Gestion de ordenes, inventario y tienda.",
}

# El login vive en el servicio de identidad; tokenUrl solo documenta el flujo.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    scopes=OAUTH_SCOPES,
)


async def get_current_customer(
    security_scopes: SecurityScopes,
    db: AsyncSession = Depends(get_async_db),
    token: str = Depends(oauth2_scheme),
) -> Customer:
    authenticate = {"WWW-Authenticate": f'Bearer scope="{security_scopes.scope_str}"'}
    try:
        claims = decode_access_token(token)
    except JWTError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Could not validate credentials", headers=authenticate)

    customer = await db.get(Customer, claims.customer_id)
    if customer is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Could not validate credentials", headers=authenticate)
    if not customer.is_active:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Inactive customer")
    if not claims.has_scopes(security_scopes.scopes):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not enough permissions", headers=authenticate)
    return customer


def get_current_admin(
    current: Customer = Security(get_current_customer, scopes=["admin"]),
) -> Customer:
    return current


def get_shop_cache(request: Request) -> ShopConfigCache:
    """Cache created by the application lifespan and kept on ``app.state``."""
    return request.app.state.shop_cache
