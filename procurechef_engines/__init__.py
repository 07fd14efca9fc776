"""
Module: procurechef_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``procurechef_modules``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import procurechef_kernel (domain, exceptions, logging) and
    sibling engine modules.  MUST NOT import procurechef_modules.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``;
      dates arrive as explicit ``as_of`` parameters.
    - Decimal-only arithmetic for prices and quantities.
    - Determinism: identical inputs always produce identical outputs.
"""

from procurechef_engines.order_planning import (
    OrderLineDraft,
    OrderPlan,
    SupplierOrderDraft,
    UnresolvedReason,
    UnresolvedSelection,
    plan_orders,
)
from procurechef_engines.pricing import (
    VolumePriceTier,
    package_cost,
    packages_required,
    price_for_quantity,
    unit_price_from_package,
)
from procurechef_engines.quote_aggregation import (
    DEFAULT_COMPARABLE_STATUSES,
    ProductQuoteComparison,
    QuoteAggregator,
    SupplierProductQuote,
    aggregate_quotes,
    best_price,
    change_quantity,
    find_comparison,
    resolve_selection,
    select_supplier,
    selected_comparisons,
)
from procurechef_engines.quote_validity import (
    QuoteItemsStatus,
    QuoteValidity,
    ValidityStatus,
    days_until_expiry,
    filter_valid_quotes,
    find_best_valid_quote,
    is_quote_valid,
    quote_items_status,
    quote_validity,
)
from procurechef_engines.stock import (
    StockAdjustment,
    StockLevel,
    StockThresholds,
    apply_count,
    apply_receipt,
    determine_stock_level,
)
from procurechef_engines.tracer import traced_engine

__all__ = [
    # Order planning
    "OrderLineDraft",
    "OrderPlan",
    "SupplierOrderDraft",
    "UnresolvedReason",
    "UnresolvedSelection",
    "plan_orders",
    # Pricing
    "VolumePriceTier",
    "package_cost",
    "packages_required",
    "price_for_quantity",
    "unit_price_from_package",
    # Quote aggregation
    "DEFAULT_COMPARABLE_STATUSES",
    "ProductQuoteComparison",
    "QuoteAggregator",
    "SupplierProductQuote",
    "aggregate_quotes",
    "best_price",
    "change_quantity",
    "find_comparison",
    "resolve_selection",
    "select_supplier",
    "selected_comparisons",
    # Quote validity
    "QuoteItemsStatus",
    "QuoteValidity",
    "ValidityStatus",
    "days_until_expiry",
    "filter_valid_quotes",
    "find_best_valid_quote",
    "is_quote_valid",
    "quote_items_status",
    "quote_validity",
    # Stock
    "StockAdjustment",
    "StockLevel",
    "StockThresholds",
    "apply_count",
    "apply_receipt",
    "determine_stock_level",
    # Tracing
    "traced_engine",
]
