"""
Procurement Module Service (``procurechef_modules.procurement.service``).

Responsibility
--------------
Loads request and quote snapshots from the database, hands them to the pure
engines (quote aggregation, validity, order planning, stock), and writes
the results back: purchase requests, purchase orders, quote status
changes, quote requests and inventory adjustments.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``ProcurementService`` is the sole public
entry point for procurement operations.  It composes stateless engines and
owns the SQLAlchemy session's transaction boundary.

Invariants enforced
-------------------
* Each public write method commits on success and rolls back then re-raises
  on any exception.
* Order lines are only written for selections that resolve to a priced
  supplier offer; dangling selections are returned, or raised in strict
  mode, and never priced at zero.
* Engines receive explicit ``as_of`` dates taken from the injected clock.

Failure modes
-------------
* ``RequestNotFoundError`` / ``QuoteNotFoundError`` / ``OrderNotFoundError``
  / ``OrderItemNotFoundError`` / ``QuoteRequestNotFoundError`` for unknown
  identifiers.
* ``UnresolvedSelectionError`` from ``generate_orders`` in strict mode.
* ``InvalidOrderStatusError`` for disallowed order status transitions,
  including receiving an order that was never sent.
* ``InvalidRequestStatusError`` for disallowed request status transitions.
* ``InvalidQuoteRequestStatusError`` when reminding a quote request that
  is no longer pending.
* ``UnpricedQuoteItemError`` for a quote line with no price of its own and
  none in the supplier catalogue.
* ``ProductNotFoundError`` for unknown products in requests and counts.
* ``InvalidStockQuantityError`` for negative counts or receipts.
* ``SupplierNotFoundError`` when recording a quote for an unknown supplier.

Usage::

    service = ProcurementService(session, config=ProcurementConfig(), clock=clock)
    comparisons = service.get_product_quote_comparison()
    comparisons = select_supplier(comparisons, "p1", "s2")
    result = service.generate_orders(comparisons, actor_id="buyer-1")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from procurechef_engines.order_planning import plan_orders
from procurechef_engines.pricing import price_for_quantity
from procurechef_engines.quote_aggregation import (
    ProductQuoteComparison,
    QuoteAggregator,
    SupplierProductQuote,
    best_price,
)
from procurechef_engines.quote_validity import (
    QuoteValidity,
    filter_valid_quotes,
    quote_validity,
)
from procurechef_engines.stock import StockAdjustment, apply_count, apply_receipt
from procurechef_kernel.domain.clock import Clock, SystemClock
from procurechef_kernel.domain.entities import (
    QuoteStatus,
    Request,
    RequestPriority,
    RequestStatus,
    SupplierQuote,
)
from procurechef_kernel.exceptions import (
    InvalidOrderStatusError,
    InvalidQuoteRequestStatusError,
    InvalidRequestStatusError,
    OrderItemNotFoundError,
    OrderNotFoundError,
    ProductNotFoundError,
    QuoteNotFoundError,
    QuoteRequestNotFoundError,
    RequestNotFoundError,
    SupplierNotFoundError,
    UnpricedQuoteItemError,
    UnresolvedSelectionError,
)
from procurechef_kernel.logging_config import get_logger
from procurechef_modules.procurement.config import ProcurementConfig
from procurechef_modules.procurement.models import (
    ORDER_TRANSITIONS,
    REQUEST_TRANSITIONS,
    InventoryItem,
    Order,
    OrderGenerationResult,
    OrderStatus,
    QuoteRequest,
    QuoteRequestStatus,
)
from procurechef_modules.procurement.orm import (
    InventoryModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
    QuoteItemModel,
    QuoteModel,
    QuoteRequestModel,
    RequestItemModel,
    RequestModel,
    SupplierModel,
    SupplierProductModel,
)

logger = get_logger("modules.procurement.service")


class ProcurementService:
    """
    Orchestrates procurement operations through engines and the database.

    Contract
    --------
    * Read methods return domain objects and never commit.
    * Write methods own the transaction: commit on success, rollback on
      failure.

    Engine composition:
    - QuoteAggregator: product-centred quote comparison
    - quote_validity: expiry filtering and classification
    - plan_orders: per-supplier order drafts from selections
    - stock: count / receipt adjustments and stock levels
    - pricing: volume tiers for catalogue-priced quote lines
    """

    def __init__(
        self,
        session: Session,
        config: ProcurementConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._config = config or ProcurementConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._aggregator = QuoteAggregator()

    # =========================================================================
    # Loading
    # =========================================================================

    def load_requests(self, request_ids: Sequence[str]) -> list[Request]:
        """Requests with their items, in the order the ids were given."""
        if not request_ids:
            return []
        rows = self._session.scalars(
            select(RequestModel).where(RequestModel.id.in_(request_ids))
        ).all()
        position = {rid: i for i, rid in enumerate(request_ids)}
        rows = sorted(rows, key=lambda r: position[r.id])
        return [row.to_dto() for row in rows]

    def load_quotes(self, request_ids: Sequence[str]) -> list[SupplierQuote]:
        """Supplier quotes answering the given requests, catalogue-enriched."""
        if not request_ids:
            return []
        quote_rows = self._session.scalars(
            select(QuoteModel)
            .where(QuoteModel.request_id.in_(request_ids))
            .order_by(QuoteModel.created_at, QuoteModel.id)
        ).all()

        supplier_ids = {q.supplier_id for q in quote_rows}
        catalogue: dict[tuple[str, str], SupplierProductModel] = {}
        if supplier_ids:
            for entry in self._session.scalars(
                select(SupplierProductModel).where(
                    SupplierProductModel.supplier_id.in_(supplier_ids)
                )
            ):
                catalogue[(entry.supplier_id, entry.product_id)] = entry

        return [row.to_dto(catalogue) for row in quote_rows]

    def _requests_with_quotes(self) -> list[str]:
        rows = self._session.execute(
            select(RequestModel.id)
            .where(RequestModel.id.in_(select(QuoteModel.request_id)))
            .order_by(RequestModel.created_at, RequestModel.id)
        ).all()
        return [row[0] for row in rows]

    # =========================================================================
    # Purchase requests
    # =========================================================================

    def _get_request_row(self, request_id: str) -> RequestModel:
        row = self._session.get(RequestModel, request_id)
        if row is None:
            raise RequestNotFoundError(request_id)
        return row

    def _get_product_row(self, product_id: str) -> ProductModel:
        row = self._session.get(ProductModel, product_id)
        if row is None:
            raise ProductNotFoundError(product_id)
        return row

    def create_request(
        self,
        title: str,
        items: Sequence[Mapping[str, Any]],
        priority: RequestPriority = RequestPriority.MEDIUM,
        needed_by: date | None = None,
        created_by: str | None = None,
        notes: str | None = None,
        submit: bool = True,
    ) -> Request:
        """
        Store a purchase request, submitted unless ``submit`` is False.

        Each item mapping needs ``product_id`` and ``quantity`` and may carry
        ``product_name``, ``unit`` and ``price_per_unit``; name and unit
        default to the catalogue product's.
        """
        try:
            status = RequestStatus.SUBMITTED if submit else RequestStatus.DRAFT
            request = RequestModel(
                title=title,
                status=status.value,
                priority=priority.value,
                needed_by=needed_by,
                created_by=created_by,
                notes=notes,
            )
            for item in items:
                product = self._get_product_row(item["product_id"])
                request.items.append(RequestItemModel(
                    product_id=product.id,
                    product=product,
                    product_name=item.get("product_name") or product.name,
                    quantity=Decimal(str(item["quantity"])),
                    unit=item.get("unit") or product.default_unit,
                    price_per_unit=Decimal(str(item.get("price_per_unit", "0"))),
                ))
            self._session.add(request)
            self._session.flush()

            logger.info("procurement_request_created", extra={
                "request_id": request.id,
                "status": status.value,
                "item_count": len(request.items),
                "created_by": created_by,
            })
            self._session.commit()
            return request.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def get_request(self, request_id: str) -> Request:
        return self._get_request_row(request_id).to_dto()

    def get_requests(self) -> list[Request]:
        rows = self._session.scalars(
            select(RequestModel).order_by(RequestModel.created_at.desc(), RequestModel.id)
        ).all()
        return [row.to_dto() for row in rows]

    def update_request(
        self,
        request_id: str,
        title: str | None = None,
        priority: RequestPriority | None = None,
        needed_by: date | None = None,
        notes: str | None = None,
    ) -> Request:
        """Edit header fields; arguments left as None are unchanged."""
        try:
            row = self._get_request_row(request_id)
            changes: dict[str, Any] = {
                "title": title,
                "priority": priority.value if priority is not None else None,
                "needed_by": needed_by,
                "notes": notes,
            }
            changed = []
            for name, value in changes.items():
                if value is not None:
                    setattr(row, name, value)
                    changed.append(name)
            self._session.commit()
            logger.info("procurement_request_updated", extra={
                "request_id": request_id,
                "changed_fields": changed,
            })
            return row.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def update_request_status(self, request_id: str, status: RequestStatus) -> Request:
        try:
            row = self._get_request_row(request_id)
            current = RequestStatus(row.status)
            if status not in REQUEST_TRANSITIONS[current]:
                raise InvalidRequestStatusError(request_id, current.value, status.value)
            row.status = status.value
            self._session.commit()
            logger.info("procurement_request_status_changed", extra={
                "request_id": request_id,
                "from_status": current.value,
                "to_status": status.value,
            })
            return row.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def submit_request(self, request_id: str) -> Request:
        return self.update_request_status(request_id, RequestStatus.SUBMITTED)

    def approve_request(self, request_id: str) -> Request:
        return self.update_request_status(request_id, RequestStatus.APPROVED)

    def reject_request(self, request_id: str) -> Request:
        return self.update_request_status(request_id, RequestStatus.REJECTED)

    def delete_request(self, request_id: str) -> None:
        """Delete a request, its items, and the quotes and quote requests answering it."""
        try:
            row = self._get_request_row(request_id)
            quotes = self._session.scalars(
                select(QuoteModel).where(QuoteModel.request_id == request_id)
            ).all()
            quote_requests = self._session.scalars(
                select(QuoteRequestModel).where(QuoteRequestModel.request_id == request_id)
            ).all()
            for dependent in [*quotes, *quote_requests]:
                self._session.delete(dependent)
            self._session.flush()
            self._session.delete(row)
            self._session.commit()
            logger.info("procurement_request_deleted", extra={
                "request_id": request_id,
                "quote_count": len(quotes),
                "quote_request_count": len(quote_requests),
            })
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Quote comparison
    # =========================================================================

    def get_product_quote_comparison(
        self,
        request_ids: Sequence[str] | None = None,
        as_of: date | None = None,
    ) -> list[ProductQuoteComparison]:
        """
        Build the product-centred comparison for a set of requests.

        With no ``request_ids`` every request that has at least one quote
        is included.  Quote statuses outside
        ``config.comparable_quote_statuses`` are left out, as are expired
        quotes when ``config.exclude_expired_quotes`` is set.
        """
        ids = list(request_ids) if request_ids else self._requests_with_quotes()
        requests = self.load_requests(ids)
        quotes = self.load_quotes(ids)

        if self._config.exclude_expired_quotes:
            as_of = as_of or self._clock.today()
            before = len(quotes)
            quotes = filter_valid_quotes(quotes, as_of)
            logger.info("procurement_expired_quotes_excluded", extra={
                "as_of": as_of.isoformat(),
                "excluded_count": before - len(quotes),
            })

        comparisons = self._aggregator.aggregate(
            requests,
            quotes,
            include_statuses=self._config.comparable_quote_statuses,
        )
        logger.info("procurement_comparison_built", extra={
            "request_count": len(requests),
            "quote_count": len(quotes),
            "product_count": len(comparisons),
        })
        return comparisons

    def best_quotes_for_products(
        self,
        product_ids: Sequence[str],
        request_ids: Sequence[str] | None = None,
    ) -> dict[str, tuple[SupplierProductQuote | None, tuple[SupplierProductQuote, ...]]]:
        """Map each product id to (cheapest offer, all offers)."""
        by_product = {
            c.product_id: c
            for c in self.get_product_quote_comparison(request_ids)
        }
        result = {}
        for product_id in product_ids:
            comparison = by_product.get(product_id)
            if comparison is None:
                result[product_id] = (None, ())
            else:
                result[product_id] = (best_price(comparison), comparison.supplier_quotes)
        return result

    # =========================================================================
    # Quotes
    # =========================================================================

    def _get_quote_row(self, quote_id: str) -> QuoteModel:
        row = self._session.get(QuoteModel, quote_id)
        if row is None:
            raise QuoteNotFoundError(quote_id)
        return row

    def get_quote(self, quote_id: str) -> SupplierQuote:
        return self._get_quote_row(quote_id).to_dto()

    def get_quote_validity(self, quote_id: str, as_of: date | None = None) -> QuoteValidity:
        return quote_validity(
            self.get_quote(quote_id),
            as_of or self._clock.today(),
            expiring_soon_days=self._config.expiring_soon_days,
        )

    def _supplier_catalogue(self, supplier_id: str) -> dict[str, SupplierProductModel]:
        return {
            entry.product_id: entry
            for entry in self._session.scalars(
                select(SupplierProductModel).where(
                    SupplierProductModel.supplier_id == supplier_id
                )
            )
        }

    @staticmethod
    def _catalogue_price(
        entry: SupplierProductModel | None,
        quantity: Decimal,
    ) -> Decimal | None:
        """Volume-tier price for ``quantity``, else the entry's base price."""
        if entry is None:
            return None
        tiers = entry.volume_tiers
        if entry.price is None and not any(tier.contains(quantity) for tier in tiers):
            return None
        return price_for_quantity(entry.price, tiers, quantity)

    def record_supplier_quote(
        self,
        request_id: str,
        supplier_id: str,
        items: Sequence[Mapping[str, Any]],
        expiry_date: date | None = None,
        is_blanket: bool = False,
        delivery_date: date | None = None,
        status: QuoteStatus = QuoteStatus.RECEIVED,
    ) -> SupplierQuote:
        """
        Store a supplier's priced response to a request.

        Each item mapping needs ``product_id`` and may carry
        ``price_per_unit``, ``product_name``, ``quantity``, ``unit``,
        ``in_stock``, ``supplier_product_code``, ``request_item_id`` and
        ``notes``.  Items without ``price_per_unit`` are priced from the
        supplier's catalogue at the line quantity, or the largest requested
        quantity when the line has none.  Non-blanket quotes without an
        expiry date get ``config.default_quote_validity_days``.  A pending
        quote request for the same supplier and request is marked received.
        """
        try:
            request = self._get_request_row(request_id)
            supplier = self._session.get(SupplierModel, supplier_id)
            if supplier is None:
                raise SupplierNotFoundError(supplier_id)

            if expiry_date is None and not is_blanket:
                expiry_date = self._clock.today() + timedelta(
                    days=self._config.default_quote_validity_days
                )

            quote = QuoteModel(
                supplier_id=supplier_id,
                supplier_name=supplier.name,
                request_id=request_id,
                status=status.value,
                expiry_date=expiry_date,
                is_blanket=is_blanket,
                delivery_date=delivery_date,
            )
            catalogue: dict[str, SupplierProductModel] | None = None
            catalogue_priced = 0
            for item in items:
                product_id = item["product_id"]
                quantity = Decimal(str(item.get("quantity", "0")))
                price = item.get("price_per_unit")
                if price is None:
                    if catalogue is None:
                        catalogue = self._supplier_catalogue(supplier_id)
                    if not quantity:
                        quantity = max(
                            (ri.quantity for ri in request.items if ri.product_id == product_id),
                            default=Decimal("0"),
                        )
                    price = self._catalogue_price(catalogue.get(product_id), quantity)
                    if price is None:
                        raise UnpricedQuoteItemError(supplier_id, product_id)
                    catalogue_priced += 1
                quote.items.append(QuoteItemModel(
                    product_id=product_id,
                    price_per_unit=Decimal(str(price)),
                    product_name=item.get("product_name", ""),
                    quantity=quantity,
                    unit=item.get("unit", ""),
                    in_stock=bool(item.get("in_stock", True)),
                    supplier_product_code=item.get("supplier_product_code"),
                    request_item_id=item.get("request_item_id"),
                    notes=item.get("notes"),
                ))
            self._session.add(quote)
            self._session.flush()

            pending = self._session.scalars(
                select(QuoteRequestModel).where(
                    QuoteRequestModel.request_id == request_id,
                    QuoteRequestModel.supplier_id == supplier_id,
                    QuoteRequestModel.status == QuoteRequestStatus.PENDING.value,
                )
            ).all()
            for quote_request in pending:
                quote_request.status = QuoteRequestStatus.RECEIVED.value
                quote_request.quote_id = quote.id

            logger.info("procurement_quote_recorded", extra={
                "quote_id": quote.id,
                "request_id": request_id,
                "supplier_id": supplier_id,
                "item_count": len(items),
                "catalogue_priced_count": catalogue_priced,
                "expiry_date": expiry_date.isoformat() if expiry_date else None,
                "is_blanket": is_blanket,
            })
            self._session.commit()
            return quote.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def quote_from_catalogue(
        self,
        request_id: str,
        supplier_id: str,
        expiry_date: date | None = None,
        is_blanket: bool = False,
    ) -> SupplierQuote | None:
        """
        Record a quote priced from the supplier's standing catalogue.

        One line per request item the supplier lists with a price at that
        quantity.  Returns None, writing nothing, when no line can be priced.
        """
        request = self._get_request_row(request_id)
        if self._session.get(SupplierModel, supplier_id) is None:
            raise SupplierNotFoundError(supplier_id)

        catalogue = self._supplier_catalogue(supplier_id)
        lines = []
        for request_item in request.items:
            entry = catalogue.get(request_item.product_id)
            price = self._catalogue_price(entry, request_item.quantity)
            if price is None:
                continue
            lines.append({
                "product_id": request_item.product_id,
                "product_name": request_item.product_name,
                "quantity": request_item.quantity,
                "unit": request_item.unit,
                "price_per_unit": price,
                "supplier_product_code": entry.supplier_product_code,
                "request_item_id": request_item.id,
            })

        if not lines:
            logger.info("procurement_catalogue_quote_empty", extra={
                "request_id": request_id,
                "supplier_id": supplier_id,
            })
            return None
        return self.record_supplier_quote(
            request_id,
            supplier_id,
            lines,
            expiry_date=expiry_date,
            is_blanket=is_blanket,
        )

    def _set_quote_status(self, quote_id: str, status: QuoteStatus) -> SupplierQuote:
        try:
            row = self._get_quote_row(quote_id)
            previous = row.status
            row.status = status.value
            self._session.commit()
            logger.info("procurement_quote_status_changed", extra={
                "quote_id": quote_id,
                "from_status": previous,
                "to_status": status.value,
            })
            return row.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def accept_quote(self, quote_id: str) -> SupplierQuote:
        return self._set_quote_status(quote_id, QuoteStatus.APPROVED)

    def reject_quote(self, quote_id: str) -> SupplierQuote:
        return self._set_quote_status(quote_id, QuoteStatus.REJECTED)

    # =========================================================================
    # Quote requests
    # =========================================================================

    def create_quote_requests(
        self,
        request_id: str,
        supplier_ids: Sequence[str],
    ) -> list[QuoteRequest]:
        """
        Ask each supplier to price a request.

        Unknown supplier ids are skipped.  The response deadline is
        ``config.quote_response_days`` after today.
        """
        try:
            if self._session.get(RequestModel, request_id) is None:
                raise RequestNotFoundError(request_id)

            now = self._clock.now()
            deadline = now.date() + timedelta(days=self._config.quote_response_days)
            created: list[QuoteRequestModel] = []
            skipped: list[str] = []
            for supplier_id in supplier_ids:
                supplier = self._session.get(SupplierModel, supplier_id)
                if supplier is None:
                    skipped.append(supplier_id)
                    continue
                row = QuoteRequestModel(
                    request_id=request_id,
                    supplier_id=supplier_id,
                    supplier_name=supplier.name,
                    sent_at=now,
                    response_deadline=deadline,
                    status=QuoteRequestStatus.PENDING.value,
                )
                self._session.add(row)
                created.append(row)

            self._session.flush()
            logger.info("procurement_quote_requests_created", extra={
                "request_id": request_id,
                "created_count": len(created),
                "skipped_suppliers": skipped,
                "response_deadline": deadline.isoformat(),
            })
            self._session.commit()
            return [row.to_dto() for row in created]
        except Exception:
            self._session.rollback()
            raise

    def get_quote_requests(self, request_id: str) -> list[QuoteRequest]:
        rows = self._session.scalars(
            select(QuoteRequestModel)
            .where(QuoteRequestModel.request_id == request_id)
            .order_by(QuoteRequestModel.sent_at, QuoteRequestModel.supplier_name)
        ).all()
        return [row.to_dto() for row in rows]

    def send_quote_request_reminder(self, quote_request_id: str) -> QuoteRequest:
        """Re-send a pending quote request; resets ``sent_at``."""
        try:
            row = self._session.get(QuoteRequestModel, quote_request_id)
            if row is None:
                raise QuoteRequestNotFoundError(quote_request_id)
            if row.status != QuoteRequestStatus.PENDING.value:
                raise InvalidQuoteRequestStatusError(quote_request_id, row.status)
            row.sent_at = self._clock.now()
            self._session.commit()
            logger.info("procurement_quote_request_reminded", extra={
                "quote_request_id": quote_request_id,
            })
            return row.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def cancel_quote_request(self, quote_request_id: str) -> QuoteRequest:
        try:
            row = self._session.get(QuoteRequestModel, quote_request_id)
            if row is None:
                raise QuoteRequestNotFoundError(quote_request_id)
            row.status = QuoteRequestStatus.EXPIRED.value
            self._session.commit()
            logger.info("procurement_quote_request_cancelled", extra={
                "quote_request_id": quote_request_id,
            })
            return row.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def expire_overdue_quote_requests(self, as_of: date | None = None) -> list[QuoteRequest]:
        """Mark pending quote requests past their response deadline expired."""
        as_of = as_of or self._clock.today()
        try:
            rows = self._session.scalars(
                select(QuoteRequestModel)
                .where(
                    QuoteRequestModel.status == QuoteRequestStatus.PENDING.value,
                    QuoteRequestModel.response_deadline < as_of,
                )
                .order_by(QuoteRequestModel.response_deadline, QuoteRequestModel.supplier_name)
            ).all()
            for row in rows:
                row.status = QuoteRequestStatus.EXPIRED.value
            self._session.commit()
            logger.info("procurement_quote_requests_expired", extra={
                "as_of": as_of.isoformat(),
                "expired_count": len(rows),
            })
            return [row.to_dto() for row in rows]
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Orders
    # =========================================================================

    def _next_order_sequence(self) -> int:
        count = self._session.scalar(select(func.count()).select_from(OrderModel))
        return (count or 0) + 1

    def generate_orders(
        self,
        comparisons: Sequence[ProductQuoteComparison],
        actor_id: str | None = None,
    ) -> OrderGenerationResult:
        """
        Write one draft purchase order per selected supplier.

        Selections that do not resolve to a priced offer are returned in
        ``unresolved``.  With ``config.strict_order_generation`` they raise
        ``UnresolvedSelectionError`` and nothing is written.
        """
        try:
            plan = plan_orders(comparisons)

            if plan.unresolved and self._config.strict_order_generation:
                raise UnresolvedSelectionError(
                    [(u.product_id, u.supplier_id) for u in plan.unresolved]
                )

            logger.info("procurement_orders_started", extra={
                "order_count": len(plan.orders),
                "unresolved_count": len(plan.unresolved),
                "plan_total": str(plan.total),
            })

            sequence = self._next_order_sequence()
            written: list[OrderModel] = []
            for offset, draft in enumerate(plan.orders):
                order = OrderModel(
                    order_number=f"{self._config.order_number_prefix}-{sequence + offset:05d}",
                    supplier_id=draft.supplier_id,
                    supplier_name=draft.supplier_name,
                    status=OrderStatus.DRAFT.value,
                    total=draft.total,
                    created_by=actor_id,
                )
                for line in draft.lines:
                    order.items.append(OrderItemModel(
                        product_id=line.product_id,
                        product_name=line.product_name,
                        quantity=line.quantity,
                        unit=line.unit,
                        price=line.unit_price,
                        total=line.line_total,
                        supplier_product_code=line.supplier_product_code,
                        packages=line.packages,
                    ))
                self._session.add(order)
                written.append(order)

            self._session.flush()
            self._session.commit()

            logger.info("procurement_orders_committed", extra={
                "order_numbers": [o.order_number for o in written],
            })
            return OrderGenerationResult(
                orders=tuple(o.to_dto() for o in written),
                unresolved=plan.unresolved,
            )
        except Exception:
            self._session.rollback()
            raise

    def _get_order_row(self, order_id: str) -> OrderModel:
        row = self._session.get(OrderModel, order_id)
        if row is None:
            raise OrderNotFoundError(order_id)
        return row

    def get_order(self, order_id: str) -> Order:
        return self._get_order_row(order_id).to_dto()

    def get_orders(self) -> list[Order]:
        rows = self._session.scalars(
            select(OrderModel).order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())
        ).all()
        return [row.to_dto() for row in rows]

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        try:
            row = self._get_order_row(order_id)
            current = OrderStatus(row.status)
            if status not in ORDER_TRANSITIONS[current]:
                raise InvalidOrderStatusError(order_id, current.value, status.value)
            row.status = status.value
            self._session.commit()
            logger.info("procurement_order_status_changed", extra={
                "order_id": order_id,
                "from_status": current.value,
                "to_status": status.value,
            })
            return row.to_dto()
        except Exception:
            self._session.rollback()
            raise

    def receive_order(
        self,
        order_id: str,
        received: Mapping[str, Decimal],
        notes: Mapping[str, str] | None = None,
    ) -> list[StockAdjustment]:
        """
        Mark an order delivered and add received quantities to inventory.

        Only orders whose status may move to DELIVERED (sent or confirmed)
        can be received.

        Args:
            order_id: The order being received.
            received: order item id -> quantity actually delivered.
            notes: Optional order item id -> receiving note.
        """
        notes = notes or {}
        try:
            order = self._get_order_row(order_id)
            current = OrderStatus(order.status)
            if OrderStatus.DELIVERED not in ORDER_TRANSITIONS[current]:
                raise InvalidOrderStatusError(
                    order_id, current.value, OrderStatus.DELIVERED.value
                )

            items = {item.id: item for item in order.items}
            now = self._clock.now()
            adjustments: list[StockAdjustment] = []
            for item_id, quantity in received.items():
                item = items.get(item_id)
                if item is None:
                    raise OrderItemNotFoundError(order_id, item_id)
                quantity = Decimal(str(quantity))

                inventory = self._inventory_row(item.product_id)
                adjustment = apply_receipt(
                    item.product_id,
                    inventory.current_stock or Decimal("0"),
                    quantity,
                    self._config.stock_thresholds,
                )
                inventory.current_stock = adjustment.new_stock
                inventory.stock_level = adjustment.level.value
                inventory.last_updated = now

                item.received_quantity = quantity
                if item_id in notes:
                    item.receiving_notes = notes[item_id]
                adjustments.append(adjustment)

            order.status = OrderStatus.DELIVERED.value
            self._session.commit()

            logger.info("procurement_order_received", extra={
                "order_id": order_id,
                "order_number": order.order_number,
                "received_item_count": len(adjustments),
            })
            return adjustments
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Inventory
    # =========================================================================

    def _find_inventory_row(self, product_id: str) -> InventoryModel | None:
        return self._session.scalars(
            select(InventoryModel).where(InventoryModel.product_id == product_id)
        ).first()

    def _inventory_row(self, product_id: str) -> InventoryModel:
        row = self._find_inventory_row(product_id)
        if row is None:
            row = InventoryModel(product_id=product_id, current_stock=Decimal("0"))
            self._session.add(row)
        return row

    def update_inventory_count(self, counts: Mapping[str, Decimal]) -> list[StockAdjustment]:
        """
        Overwrite on-hand stock with physical counts (product id -> count).

        Products counted for the first time get an inventory row; their
        adjustment has no previous stock.  An unknown product raises
        ``ProductNotFoundError`` and nothing in the batch is written.
        """
        try:
            now = self._clock.now()
            adjustments: list[StockAdjustment] = []
            for product_id, count in counts.items():
                self._get_product_row(product_id)
                existing = self._find_inventory_row(product_id)
                adjustment = apply_count(
                    product_id,
                    Decimal(str(count)),
                    self._config.stock_thresholds,
                    previous_stock=existing.current_stock if existing is not None else None,
                )
                row = existing if existing is not None else self._inventory_row(product_id)
                row.current_stock = adjustment.new_stock
                row.stock_level = adjustment.level.value
                row.last_updated = now
                row.last_counted_at = now
                adjustments.append(adjustment)

            self._session.commit()
            logger.info("procurement_inventory_counted", extra={
                "product_count": len(adjustments),
            })
            return adjustments
        except Exception:
            self._session.rollback()
            raise

    def get_inventory(self) -> list[InventoryItem]:
        rows = self._session.scalars(select(InventoryModel)).all()
        return sorted((row.to_dto() for row in rows), key=lambda i: (i.category, i.product_name))
