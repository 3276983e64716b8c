# storefront/services/exceptions.py

class ServiceError(Exception):
    """Clase base para errores de la capa de servicio."""

    code = "service_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


# --- NotFound ---

class ResourceNotFoundError(ServiceError):
    """Recurso no encontrado o no perteneciente al cliente."""
    code = "not_found"


class ProductNotFoundError(ResourceNotFoundError):
    code = "product_not_found"


class CartItemNotFoundError(ResourceNotFoundError):
    code = "cart_item_not_found"


class OrderNotFoundError(ResourceNotFoundError):
    code = "order_not_found"


class ShopNotFoundError(ResourceNotFoundError):
    code = "shop_not_found"


# --- Conflict ---

class ConflictError(ServiceError):
    """Conflicto de estado en la operación."""
    code = "conflict"


class InsufficientStockError(ConflictError):
    """Lanzada cuando no hay suficiente stock para una operación."""
    code = "insufficient_stock"


class ProductUnavailableError(ConflictError):
    """El producto existe pero está inactivo."""
    code = "product_unavailable"


class OrderNotCancellableError(ConflictError):
    code = "order_not_cancellable"


class InvalidStatusTransitionError(ConflictError):
    code = "invalid_status_transition"


class DuplicateActiveCartError(ConflictError):
    """El cliente ya tiene un carrito activo que no pudo recuperarse."""
    code = "duplicate_active_cart"


# --- EmptyCart ---

class EmptyCartError(ServiceError):
    """Checkout sin carrito activo o sin líneas."""
    code = "empty_cart"


# --- ValidationFailure ---

class DomainValidationError(ServiceError):
    """Entrada de dominio inválida."""
    code = "validation_failed"


class InvalidQuantityError(DomainValidationError):
    """Lanzada cuando una cantidad es inválida (e.g., <= 0)."""
    code = "invalid_quantity"


# --- InternalFailure ---

class PersistenceError(ServiceError):
    """Fallo de almacenamiento/transacción; nada quedó aplicado, se puede reintentar."""
    code = "internal_failure"
    retryable = True
