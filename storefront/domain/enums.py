# storefront/domain/enums.py
import enum

class CartStatus(str, enum.Enum):
    active = "active"
    converted = "converted"

class OrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    completed = "completed"
    cancelled = "cancelled"

class PaymentStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"

class PaymentMethod(str, enum.Enum):
    cod = "cod"
    bank_transfer = "bank_transfer"
    credit_card = "credit_card"
    e_wallet = "e_wallet"


# Forward path of an order; cancellation is handled separately.
ORDER_FLOW: dict[OrderStatus, OrderStatus] = {
    OrderStatus.pending: OrderStatus.processing,
    OrderStatus.processing: OrderStatus.shipped,
    OrderStatus.shipped: OrderStatus.completed,
}

CANCELLABLE_STATUSES = frozenset({OrderStatus.pending, OrderStatus.processing})

TERMINAL_STATUSES = frozenset({OrderStatus.completed, OrderStatus.cancelled})
