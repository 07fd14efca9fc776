"""
procurechef_engines.order_planning -- Turn supplier selections into order drafts.

Responsibility:
    Read every comparison that carries a supplier selection, re-resolve the
    selection against the product's current offers, and group the priced
    lines into one draft purchase order per supplier.

Architecture position:
    Engines -- pure calculation layer.  Persistence and order numbering
    belong to ``procurechef_modules.procurement.service``.

Invariants enforced:
    - A selection that does not resolve to a priced offer never becomes an
      order line.  It is reported in ``OrderPlan.unresolved`` instead of
      being priced at zero.
    - Orders appear in the order their supplier was first selected; lines
      within an order follow comparison order.
    - Supplier minimum order quantities are flagged, not enforced.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from procurechef_engines.pricing import package_cost, packages_required
from procurechef_engines.quote_aggregation import (
    ProductQuoteComparison,
    resolve_selection,
    selected_comparisons,
)
from procurechef_engines.tracer import traced_engine
from procurechef_kernel.logging_config import get_logger

logger = get_logger("engines.order_planning")


class UnresolvedReason(str, Enum):
    SUPPLIER_NOT_QUOTED = "supplier_not_quoted"
    NON_POSITIVE_QUANTITY = "non_positive_quantity"


@dataclass(frozen=True)
class OrderLineDraft:
    product_id: str
    product_name: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    line_total: Decimal
    supplier_product_code: str | None = None
    packages: int | None = None  # set when the supplier sells in packages
    below_minimum_order: bool = False


@dataclass(frozen=True)
class SupplierOrderDraft:
    supplier_id: str
    supplier_name: str
    lines: tuple[OrderLineDraft, ...]

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class UnresolvedSelection:
    product_id: str
    supplier_id: str
    reason: UnresolvedReason


@dataclass(frozen=True)
class OrderPlan:
    orders: tuple[SupplierOrderDraft, ...]
    unresolved: tuple[UnresolvedSelection, ...] = ()

    @property
    def is_complete(self) -> bool:
        """True when every selection produced an order line."""
        return not self.unresolved

    @property
    def total(self) -> Decimal:
        return sum((order.total for order in self.orders), Decimal("0"))


def _draft_line(comparison: ProductQuoteComparison) -> OrderLineDraft | None:
    offer = resolve_selection(comparison)
    if offer is None:
        return None

    quantity = comparison.quantity
    packages = None
    if offer.package_conversion is not None:
        packages = packages_required(quantity, offer.package_conversion)
        line_total = package_cost(quantity, offer.package_conversion)
    else:
        line_total = offer.price * quantity

    below_minimum = (
        offer.minimum_order_quantity is not None
        and quantity < offer.minimum_order_quantity
    )
    return OrderLineDraft(
        product_id=comparison.product_id,
        product_name=comparison.product_name,
        quantity=quantity,
        unit=comparison.unit,
        unit_price=offer.price,
        line_total=line_total,
        supplier_product_code=offer.supplier_product_code,
        packages=packages,
        below_minimum_order=below_minimum,
    )


@traced_engine("order_planning", "1.0", fingerprint_fields=("comparisons",))
def plan_orders(comparisons: Iterable[ProductQuoteComparison]) -> OrderPlan:
    """
    Group selected, priced products into one draft order per supplier.

    Args:
        comparisons: Aggregated comparisons, typically after the buyer has
            called ``select_supplier`` / ``change_quantity``.

    Returns:
        OrderPlan with per-supplier drafts and any selections that could
        not be priced.
    """
    t0 = time.monotonic()
    lines_by_supplier: dict[str, list[OrderLineDraft]] = {}
    supplier_names: dict[str, str] = {}
    unresolved: list[UnresolvedSelection] = []

    for comparison in selected_comparisons(comparisons):
        supplier_id = comparison.selected_supplier_id
        if comparison.quantity <= 0:
            unresolved.append(UnresolvedSelection(
                comparison.product_id, supplier_id,
                UnresolvedReason.NON_POSITIVE_QUANTITY,
            ))
            continue

        line = _draft_line(comparison)
        if line is None:
            logger.warning("order_selection_unresolved", extra={
                "product_id": comparison.product_id,
                "supplier_id": supplier_id,
                "quoted_suppliers": list(comparison.supplier_ids),
            })
            unresolved.append(UnresolvedSelection(
                comparison.product_id, supplier_id,
                UnresolvedReason.SUPPLIER_NOT_QUOTED,
            ))
            continue

        lines_by_supplier.setdefault(supplier_id, []).append(line)
        supplier_names.setdefault(
            supplier_id, comparison.quote_for(supplier_id).supplier_name
        )

    orders = tuple(
        SupplierOrderDraft(
            supplier_id=supplier_id,
            supplier_name=supplier_names[supplier_id],
            lines=tuple(lines),
        )
        for supplier_id, lines in lines_by_supplier.items()
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("order_plan_completed", extra={
        "order_count": len(orders),
        "line_count": sum(len(o.lines) for o in orders),
        "unresolved_count": len(unresolved),
        "duration_ms": duration_ms,
    })

    return OrderPlan(orders=orders, unresolved=tuple(unresolved))
