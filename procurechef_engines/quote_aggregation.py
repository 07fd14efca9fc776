"""
procurechef_engines.quote_aggregation -- Product-centred quote comparison.

Responsibility:
    Fold a snapshot of procurement requests and supplier quotes into one
    comparison row per requested product, listing every supplier's price
    and availability for it ranked cheapest first, and carry the buyer's
    supplier selection and order quantity for that product.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import procurechef_kernel.domain and sibling engine modules.

Invariants enforced:
    - At most one ``SupplierProductQuote`` per supplier per product; a later
      quote from the same supplier replaces the kept one only when cheaper.
    - ``supplier_quotes`` is sorted ascending by price after aggregation.
      The sort is stable, so equal prices keep first-encountered order.
    - ``quantity`` is the largest single requested quantity for the product
      across contributing requests, NOT the sum (restock to cover the
      largest single need).
    - Output order is the order in which products were first seen while
      scanning request items.
    - ``selected_supplier_id`` is a plain identifier.  It is never trusted:
      ``resolve_selection`` re-checks it against ``supplier_quotes``.

Failure modes:
    - None for well-typed input.  Quote items for products no request asked
      for are skipped silently; dangling selections are accepted and
      surface as ``None`` from ``resolve_selection``.

Usage:
    from procurechef_engines.quote_aggregation import (
        QuoteAggregator, best_price, select_supplier,
    )

    comparisons = QuoteAggregator().aggregate(requests, quotes)
    comparisons = select_supplier(comparisons, "p1", "s2")
    cheapest = best_price(comparisons[0])
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal

from procurechef_engines.tracer import traced_engine
from procurechef_kernel.domain.entities import (
    PackageConversion,
    QuoteItem,
    QuoteStatus,
    Request,
    SupplierQuote,
)
from procurechef_kernel.logging_config import get_logger

logger = get_logger("engines.quote_aggregation")

# Quotes a supplier has actually priced.  Drafts are still being filled in
# and rejected quotes are out of the running.
DEFAULT_COMPARABLE_STATUSES: frozenset[QuoteStatus] = frozenset({
    QuoteStatus.SENT,
    QuoteStatus.RECEIVED,
    QuoteStatus.APPROVED,
})


@dataclass(frozen=True)
class SupplierProductQuote:
    """One supplier's offer for one product."""

    supplier_id: str
    supplier_name: str
    price: Decimal
    in_stock: bool
    supplier_product_code: str | None = None
    minimum_order_quantity: Decimal | None = None
    package_conversion: PackageConversion | None = None

    @classmethod
    def from_quote_item(
        cls, quote: SupplierQuote, item: QuoteItem
    ) -> SupplierProductQuote:
        return cls(
            supplier_id=quote.supplier_id,
            supplier_name=quote.supplier_name,
            price=item.price_per_unit,
            in_stock=item.in_stock,
            supplier_product_code=item.supplier_product_code,
            minimum_order_quantity=item.minimum_order_quantity,
            package_conversion=item.package_conversion,
        )


@dataclass(frozen=True)
class ProductQuoteComparison:
    """
    Per-product rollup of supplier offers across one or more requests.

    Frozen; ``select_supplier`` and ``change_quantity`` return updated
    copies rather than mutating in place.
    """

    product_id: str
    product_name: str
    category: str
    unit: str
    request_ids: tuple[str, ...]
    quantity: Decimal
    supplier_quotes: tuple[SupplierProductQuote, ...] = ()
    selected_supplier_id: str | None = None

    @property
    def supplier_ids(self) -> tuple[str, ...]:
        return tuple(sq.supplier_id for sq in self.supplier_quotes)

    def quote_for(self, supplier_id: str) -> SupplierProductQuote | None:
        """The offer from ``supplier_id`` for this product, if one exists."""
        return next(
            (sq for sq in self.supplier_quotes if sq.supplier_id == supplier_id),
            None,
        )


@dataclass
class _ProductAccumulator:
    """Mutable per-product record used while a single aggregation runs."""

    product_id: str
    product_name: str
    category: str
    unit: str
    quantity: Decimal
    request_ids: list[str] = field(default_factory=list)
    supplier_quotes: list[SupplierProductQuote] = field(default_factory=list)
    # supplier_id -> index into supplier_quotes
    supplier_index: dict[str, int] = field(default_factory=dict)

    def add_request(self, request_id: str, quantity: Decimal) -> None:
        if request_id not in self.request_ids:
            self.request_ids.append(request_id)
        if quantity > self.quantity:
            self.quantity = quantity

    def offer(self, candidate: SupplierProductQuote) -> None:
        idx = self.supplier_index.get(candidate.supplier_id)
        if idx is None:
            self.supplier_index[candidate.supplier_id] = len(self.supplier_quotes)
            self.supplier_quotes.append(candidate)
        elif candidate.price < self.supplier_quotes[idx].price:
            # Keep the slot so tie-breaking stays first-encountered.
            self.supplier_quotes[idx] = candidate

    def freeze(self) -> ProductQuoteComparison:
        return ProductQuoteComparison(
            product_id=self.product_id,
            product_name=self.product_name,
            category=self.category,
            unit=self.unit,
            request_ids=tuple(self.request_ids),
            quantity=self.quantity,
            supplier_quotes=tuple(
                sorted(self.supplier_quotes, key=lambda sq: sq.price)
            ),
        )


class QuoteAggregator:
    """
    Builds product-centred quote comparisons.

    Contract:
        Pure -- no I/O, no clock access, inputs are never mutated.
    Guarantees:
        - Identical inputs produce structurally identical output.
        - See module docstring for per-product invariants.
    Non-goals:
        - Does not check quote expiry; callers filter with
          ``procurechef_engines.quote_validity.filter_valid_quotes`` first.
        - Does not enforce supplier minimum order quantities.
    """

    @traced_engine(
        "quote_aggregation", "1.0",
        fingerprint_fields=("requests", "quotes", "include_statuses"),
    )
    def aggregate(
        self,
        requests: Sequence[Request],
        quotes: Sequence[SupplierQuote],
        include_statuses: Collection[QuoteStatus] | None = DEFAULT_COMPARABLE_STATUSES,
    ) -> list[ProductQuoteComparison]:
        """
        Aggregate requests and supplier quotes into per-product comparisons.

        Args:
            requests: Requests with their items populated.
            quotes: Supplier quotes with their items populated.
            include_statuses: Quote statuses folded into the comparison.
                ``None`` folds every quote regardless of status.

        Returns:
            One ProductQuoteComparison per requested product, in first-seen
            order, each with supplier offers sorted cheapest first.
        """
        products: dict[str, _ProductAccumulator] = {}

        for request in requests:
            for item in request.items:
                entry = products.get(item.product_id)
                if entry is None:
                    products[item.product_id] = _ProductAccumulator(
                        product_id=item.product_id,
                        product_name=item.product_name,
                        category=item.category,
                        unit=item.unit,
                        quantity=item.quantity,
                        request_ids=[request.id],
                    )
                else:
                    entry.add_request(request.id, item.quantity)

        skipped_status = 0
        skipped_orphans = 0
        for quote in quotes:
            if include_statuses is not None and quote.status not in include_statuses:
                skipped_status += 1
                continue
            for quote_item in quote.items:
                entry = products.get(quote_item.product_id)
                if entry is None:
                    skipped_orphans += 1
                    continue
                entry.offer(SupplierProductQuote.from_quote_item(quote, quote_item))

        logger.debug("quote_aggregation_completed", extra={
            "request_count": len(requests),
            "quote_count": len(quotes),
            "product_count": len(products),
            "skipped_status_quotes": skipped_status,
            "skipped_orphan_items": skipped_orphans,
        })

        return [entry.freeze() for entry in products.values()]


def aggregate_quotes(
    requests: Sequence[Request],
    quotes: Sequence[SupplierQuote],
    include_statuses: Collection[QuoteStatus] | None = DEFAULT_COMPARABLE_STATUSES,
) -> list[ProductQuoteComparison]:
    """Convenience function for one-off aggregation."""
    return QuoteAggregator().aggregate(requests, quotes, include_statuses)


def _update_product(
    comparisons: Iterable[ProductQuoteComparison],
    product_id: str,
    **changes,
) -> list[ProductQuoteComparison]:
    return [
        replace(c, **changes) if c.product_id == product_id else c
        for c in comparisons
    ]


def select_supplier(
    comparisons: Iterable[ProductQuoteComparison],
    product_id: str,
    supplier_id: str | None,
) -> list[ProductQuoteComparison]:
    """
    Record ``supplier_id`` as the chosen supplier for ``product_id``.

    The write is not validated against the product's offers; consumers
    re-check it with ``resolve_selection``.  Passing ``None`` clears the
    selection.  Unknown product ids leave every entry unchanged.
    """
    return _update_product(comparisons, product_id, selected_supplier_id=supplier_id)


def change_quantity(
    comparisons: Iterable[ProductQuoteComparison],
    product_id: str,
    quantity: Decimal,
) -> list[ProductQuoteComparison]:
    """
    Overwrite the order quantity for ``product_id`` (what-if sizing).

    Does not re-aggregate and does not check supplier minimum orders.
    """
    return _update_product(comparisons, product_id, quantity=quantity)


def best_price(comparison: ProductQuoteComparison) -> SupplierProductQuote | None:
    """Cheapest offer for the product, or None when nobody quoted it."""
    return comparison.supplier_quotes[0] if comparison.supplier_quotes else None


def resolve_selection(comparison: ProductQuoteComparison) -> SupplierProductQuote | None:
    """
    The offer behind ``selected_supplier_id``.

    None when nothing is selected or when the selection no longer points at
    one of the product's current offers.
    """
    if comparison.selected_supplier_id is None:
        return None
    return comparison.quote_for(comparison.selected_supplier_id)


def selected_comparisons(
    comparisons: Iterable[ProductQuoteComparison],
) -> list[ProductQuoteComparison]:
    """Entries that carry a supplier selection, valid or not."""
    return [c for c in comparisons if c.selected_supplier_id is not None]


def find_comparison(
    comparisons: Iterable[ProductQuoteComparison],
    product_id: str,
) -> ProductQuoteComparison | None:
    return next((c for c in comparisons if c.product_id == product_id), None)
