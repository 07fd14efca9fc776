"""
SQLAlchemy ORM persistence models for the Procurement module.

Responsibility
--------------
Mirror the tables the ProcureChef client reads and writes: catalogue
(products, suppliers, supplier_products and their volume price tiers),
requests and their items, supplier quotes and their items, quote requests,
inventory, and purchase orders with their items.

Invariants enforced
-------------------
* All price and quantity fields use ``Decimal`` (Numeric) -- NEVER float.
* Enum fields stored as String(50) for readability and portability.
* ``supplier_products`` holds at most one row per (supplier, product).
* ``supplier_price_tiers`` bands are read in ascending ``min_quantity``.
* ``inventory`` holds at most one row per product.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurechef_engines.pricing import VolumePriceTier
from procurechef_kernel.db.base import TrackedBase
from procurechef_kernel.domain.entities import (
    PackageConversion,
    QuoteItem,
    QuoteStatus,
    Request,
    RequestItem,
    RequestPriority,
    RequestStatus,
    SupplierQuote,
)

# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


class ProductModel(TrackedBase):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    default_unit: Mapped[str] = mapped_column(String(20), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def to_dto(self):
        from procurechef_modules.procurement.models import Product

        return Product(
            id=self.id,
            name=self.name,
            category=self.category,
            default_unit=self.default_unit,
            sku=self.sku,
            description=self.description,
        )


class SupplierModel(TrackedBase):
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def to_dto(self):
        from procurechef_modules.procurement.models import Supplier

        return Supplier(id=self.id, name=self.name, email=self.email, phone=self.phone)


class SupplierProductModel(TrackedBase):
    """
    A supplier's standing catalogue entry for a product.

    Fills in supplier product codes, minimum order quantities and package
    conversions that individual quote lines leave out.  The base ``price``
    and its volume tiers price quote lines recorded without a price.
    """

    __tablename__ = "supplier_products"

    __table_args__ = (
        UniqueConstraint("supplier_id", "product_id", name="uq_supplier_product"),
    )

    supplier_id: Mapped[str] = mapped_column(ForeignKey("suppliers.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    supplier_product_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    price: Mapped[Decimal | None]
    minimum_order_quantity: Mapped[Decimal | None]
    package_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    package_unit_size: Mapped[Decimal | None]
    package_unit_price: Mapped[Decimal | None]

    price_tiers: Mapped[list["SupplierPriceTierModel"]] = relationship(
        "SupplierPriceTierModel",
        back_populates="supplier_product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SupplierPriceTierModel.min_quantity",
    )

    @property
    def volume_tiers(self) -> tuple[VolumePriceTier, ...]:
        return tuple(tier.to_tier() for tier in self.price_tiers)

    @property
    def package_conversion(self) -> PackageConversion | None:
        if self.package_unit is None or not self.package_unit_size:
            return None
        return PackageConversion(
            supplier_unit=self.package_unit,
            supplier_unit_size=self.package_unit_size,
            supplier_unit_price=self.package_unit_price or Decimal("0"),
        )


class SupplierPriceTierModel(TrackedBase):
    """Volume price band on a supplier catalogue entry."""

    __tablename__ = "supplier_price_tiers"

    supplier_product_id: Mapped[str] = mapped_column(
        ForeignKey("supplier_products.id"), nullable=False,
    )
    min_quantity: Mapped[Decimal] = mapped_column(nullable=False)
    max_quantity: Mapped[Decimal | None]
    price: Mapped[Decimal] = mapped_column(nullable=False)

    supplier_product: Mapped["SupplierProductModel"] = relationship(
        "SupplierProductModel", back_populates="price_tiers",
    )

    def to_tier(self) -> VolumePriceTier:
        return VolumePriceTier(
            min_quantity=self.min_quantity,
            max_quantity=self.max_quantity,
            price=self.price,
        )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RequestModel(TrackedBase):
    __tablename__ = "requests"

    __table_args__ = (
        Index("idx_request_status", "status"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="submitted")
    priority: Mapped[str] = mapped_column(String(50), nullable=False, default="medium")
    needed_by: Mapped[date | None]
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    items: Mapped[list["RequestItemModel"]] = relationship(
        "RequestItemModel",
        back_populates="request",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self) -> Request:
        return Request(
            id=self.id,
            title=self.title,
            items=tuple(item.to_dto() for item in self.items),
            status=RequestStatus(self.status),
            priority=RequestPriority(self.priority),
            needed_by=self.needed_by,
            created_by=self.created_by,
            notes=self.notes,
        )


class RequestItemModel(TrackedBase):
    __tablename__ = "request_items"

    request_id: Mapped[str] = mapped_column(ForeignKey("requests.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    request: Mapped["RequestModel"] = relationship("RequestModel", back_populates="items")
    product: Mapped["ProductModel"] = relationship("ProductModel", lazy="selectin")

    def to_dto(self) -> RequestItem:
        return RequestItem(
            id=self.id,
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit=self.unit,
            price_per_unit=self.price_per_unit,
            category=self.product.category if self.product is not None else "",
        )


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


class QuoteModel(TrackedBase):
    __tablename__ = "quotes"

    __table_args__ = (
        Index("idx_quote_request", "request_id"),
        Index("idx_quote_supplier", "supplier_id"),
    )

    supplier_id: Mapped[str] = mapped_column(ForeignKey("suppliers.id"), nullable=False)
    supplier_name: Mapped[str] = mapped_column(String(200), nullable=False)
    request_id: Mapped[str] = mapped_column(ForeignKey("requests.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="received")
    expiry_date: Mapped[date | None]
    is_blanket: Mapped[bool] = mapped_column(default=False)
    delivery_date: Mapped[date | None]

    items: Mapped[list["QuoteItemModel"]] = relationship(
        "QuoteItemModel",
        back_populates="quote",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(
        self,
        catalogue: dict[tuple[str, str], SupplierProductModel] | None = None,
    ) -> SupplierQuote:
        """
        Convert to a domain quote.

        ``catalogue`` maps (supplier_id, product_id) to the supplier's
        catalogue entry; it fills in item details the quote line omits.
        """
        catalogue = catalogue or {}
        return SupplierQuote(
            id=self.id,
            supplier_id=self.supplier_id,
            supplier_name=self.supplier_name,
            request_id=self.request_id,
            items=tuple(
                item.to_dto(catalogue.get((self.supplier_id, item.product_id)))
                for item in self.items
            ),
            status=QuoteStatus(self.status),
            expiry_date=self.expiry_date,
            is_blanket=self.is_blanket,
            delivery_date=self.delivery_date,
        )


class QuoteItemModel(TrackedBase):
    __tablename__ = "quote_items"

    quote_id: Mapped[str] = mapped_column(ForeignKey("quotes.id"), nullable=False)
    request_item_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    price_per_unit: Mapped[Decimal] = mapped_column(nullable=False)
    in_stock: Mapped[bool] = mapped_column(default=True)
    supplier_product_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    quote: Mapped["QuoteModel"] = relationship("QuoteModel", back_populates="items")

    def to_dto(self, catalogue_entry: SupplierProductModel | None = None) -> QuoteItem:
        code = self.supplier_product_code
        minimum = None
        conversion = None
        if catalogue_entry is not None:
            code = code or catalogue_entry.supplier_product_code
            minimum = catalogue_entry.minimum_order_quantity
            conversion = catalogue_entry.package_conversion
        return QuoteItem(
            id=self.id,
            product_id=self.product_id,
            price_per_unit=self.price_per_unit,
            in_stock=self.in_stock,
            product_name=self.product_name,
            quantity=self.quantity,
            unit=self.unit,
            supplier_product_code=code,
            minimum_order_quantity=minimum,
            package_conversion=conversion,
            request_item_id=self.request_item_id,
            notes=self.notes,
        )


class QuoteRequestModel(TrackedBase):
    __tablename__ = "quote_requests"

    request_id: Mapped[str] = mapped_column(ForeignKey("requests.id"), nullable=False)
    supplier_id: Mapped[str] = mapped_column(ForeignKey("suppliers.id"), nullable=False)
    supplier_name: Mapped[str] = mapped_column(String(200), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(nullable=False)
    response_deadline: Mapped[date] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    quote_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def to_dto(self):
        from procurechef_modules.procurement.models import (
            QuoteRequest,
            QuoteRequestStatus,
        )

        return QuoteRequest(
            id=self.id,
            request_id=self.request_id,
            supplier_id=self.supplier_id,
            supplier_name=self.supplier_name,
            sent_at=self.sent_at,
            response_deadline=self.response_deadline,
            status=QuoteRequestStatus(self.status),
            quote_id=self.quote_id,
        )


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class InventoryModel(TrackedBase):
    __tablename__ = "inventory"

    __table_args__ = (
        UniqueConstraint("product_id", name="uq_inventory_product"),
    )

    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    current_stock: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    stock_level: Mapped[str] = mapped_column(String(20), nullable=False, default="low")
    last_updated: Mapped[datetime | None]
    last_counted_at: Mapped[datetime | None]

    product: Mapped["ProductModel"] = relationship("ProductModel", lazy="selectin")

    def to_dto(self):
        from procurechef_engines.stock import StockLevel
        from procurechef_modules.procurement.models import InventoryItem

        return InventoryItem(
            product_id=self.product_id,
            product_name=self.product.name,
            category=self.product.category,
            current_stock=self.current_stock,
            stock_level=StockLevel(self.stock_level),
            last_updated=self.last_updated,
            last_counted_at=self.last_counted_at,
        )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderModel(TrackedBase):
    __tablename__ = "orders"

    __table_args__ = (
        UniqueConstraint("order_number", name="uq_order_number"),
        Index("idx_order_supplier", "supplier_id"),
    )

    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    supplier_id: Mapped[str] = mapped_column(ForeignKey("suppliers.id"), nullable=False)
    supplier_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    items: Mapped[list["OrderItemModel"]] = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self):
        from procurechef_modules.procurement.models import Order, OrderStatus

        return Order(
            id=self.id,
            order_number=self.order_number,
            supplier_id=self.supplier_id,
            supplier_name=self.supplier_name,
            status=OrderStatus(self.status),
            total=self.total,
            created_by=self.created_by,
            items=tuple(item.to_dto() for item in self.items),
        )


class OrderItemModel(TrackedBase):
    __tablename__ = "order_items"

    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False)
    total: Mapped[Decimal] = mapped_column(nullable=False)
    supplier_product_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    packages: Mapped[int | None]
    received_quantity: Mapped[Decimal | None]
    receiving_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    order: Mapped["OrderModel"] = relationship("OrderModel", back_populates="items")

    def to_dto(self):
        from procurechef_modules.procurement.models import OrderItem

        return OrderItem(
            id=self.id,
            order_id=self.order_id,
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit=self.unit,
            price=self.price,
            total=self.total,
            supplier_product_code=self.supplier_product_code,
            packages=self.packages,
            received_quantity=self.received_quantity,
        )
