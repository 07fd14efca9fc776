"""
Procurement domain entities.

The nouns the engines compute over: requests and their line items, supplier
quotes and their priced line items.  All entities are frozen snapshots of
what the data layer fetched; engines never mutate them.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class RequestStatus(str, Enum):
    """Request lifecycle states."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class RequestPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class QuoteStatus(str, Enum):
    """Supplier quote lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    RECEIVED = "received"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class RequestItem:
    """A product line on a procurement request."""
    id: str
    product_id: str
    product_name: str
    quantity: Decimal
    unit: str
    price_per_unit: Decimal = Decimal("0")  # placeholder until quoted
    category: str = ""


@dataclass(frozen=True)
class Request:
    """A set of ingredient lines submitted for approval and quoting."""
    id: str
    title: str
    items: tuple[RequestItem, ...] = field(default_factory=tuple)
    status: RequestStatus = RequestStatus.SUBMITTED
    priority: RequestPriority = RequestPriority.MEDIUM
    needed_by: date | None = None
    created_by: str | None = None
    notes: str | None = None

    @property
    def total_amount(self) -> Decimal:
        return sum(
            (item.quantity * item.price_per_unit for item in self.items),
            Decimal("0"),
        )


@dataclass(frozen=True)
class PackageConversion:
    """
    Supplier packaging unit expressed in the requested unit.

    A 25 kg sack priced at 40.00 is
    ``PackageConversion("sack", Decimal("25"), Decimal("40.00"))``.
    """
    supplier_unit: str
    supplier_unit_size: Decimal
    supplier_unit_price: Decimal

    def __post_init__(self) -> None:
        if self.supplier_unit_size <= 0:
            raise ValueError(
                f"supplier_unit_size must be positive, got {self.supplier_unit_size}"
            )


@dataclass(frozen=True)
class QuoteItem:
    """A priced, stocked line within a supplier quote."""
    id: str
    product_id: str
    price_per_unit: Decimal
    in_stock: bool = True
    product_name: str = ""
    quantity: Decimal = Decimal("0")
    unit: str = ""
    supplier_product_code: str | None = None
    minimum_order_quantity: Decimal | None = None
    package_conversion: PackageConversion | None = None
    request_item_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class SupplierQuote:
    """A supplier's priced response to one request."""
    id: str
    supplier_id: str
    supplier_name: str
    request_id: str
    items: tuple[QuoteItem, ...] = field(default_factory=tuple)
    status: QuoteStatus = QuoteStatus.RECEIVED
    expiry_date: date | None = None
    is_blanket: bool = False
    delivery_date: date | None = None

    @property
    def total_amount(self) -> Decimal:
        return sum(
            (item.quantity * item.price_per_unit for item in self.items),
            Decimal("0"),
        )

    def item_for(self, product_id: str) -> QuoteItem | None:
        """First quote item pricing ``product_id``, if any."""
        return next(
            (item for item in self.items if item.product_id == product_id),
            None,
        )
