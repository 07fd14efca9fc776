"""
Procurement Domain Models.

The nouns the procurement service hands back to callers: suppliers,
products, inventory, quote requests and purchase orders.  Requests and
supplier quotes themselves live in ``procurechef_kernel.domain.entities``
because the engines compute over them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from procurechef_engines.order_planning import UnresolvedSelection
from procurechef_engines.stock import StockLevel
from procurechef_kernel.domain.entities import RequestStatus


# Statuses a purchase request may move to from each status.
REQUEST_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.DRAFT: frozenset({RequestStatus.SUBMITTED}),
    RequestStatus.SUBMITTED: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset({RequestStatus.COMPLETED}),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.COMPLETED: frozenset(),
}


class OrderStatus(str, Enum):
    """Purchase order lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Statuses an order may move to from each status.  Receiving a delivery is
# the move to DELIVERED, so only sent or confirmed orders can be received.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.SENT, OrderStatus.CANCELLED}),
    OrderStatus.SENT: frozenset({
        OrderStatus.CONFIRMED, OrderStatus.DELIVERED, OrderStatus.CANCELLED,
    }),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class QuoteRequestStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    default_unit: str
    sku: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class InventoryItem:
    product_id: str
    product_name: str
    category: str
    current_stock: Decimal
    stock_level: StockLevel
    last_updated: datetime | None = None
    last_counted_at: datetime | None = None


@dataclass(frozen=True)
class QuoteRequest:
    """An outstanding ask to one supplier to price one request."""
    id: str
    request_id: str
    supplier_id: str
    supplier_name: str
    sent_at: datetime
    response_deadline: date
    status: QuoteRequestStatus = QuoteRequestStatus.PENDING
    quote_id: str | None = None


@dataclass(frozen=True)
class OrderItem:
    id: str
    order_id: str
    product_id: str
    product_name: str
    quantity: Decimal
    unit: str
    price: Decimal
    total: Decimal
    supplier_product_code: str | None = None
    packages: int | None = None
    received_quantity: Decimal | None = None


@dataclass(frozen=True)
class Order:
    """A purchase order to one supplier."""
    id: str
    order_number: str
    supplier_id: str
    supplier_name: str
    status: OrderStatus = OrderStatus.DRAFT
    total: Decimal = Decimal("0")
    created_by: str | None = None
    items: tuple[OrderItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OrderGenerationResult:
    """Orders written for one comparison session plus selections left out."""
    orders: tuple[Order, ...]
    unresolved: tuple[UnresolvedSelection, ...] = ()

    @property
    def order_numbers(self) -> tuple[str, ...]:
        return tuple(order.order_number for order in self.orders)
