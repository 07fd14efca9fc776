"""
Tests for the Order Planning Engine.

Covers:
- Grouping selected products into one draft per supplier
- Dangling selections reported, never priced at zero
- Package conversions and minimum order flags
- Plan totals
"""

from decimal import Decimal

from procurechef_engines.order_planning import (
    UnresolvedReason,
    UnresolvedSelection,
    plan_orders,
)
from procurechef_engines.quote_aggregation import (
    ProductQuoteComparison,
    SupplierProductQuote,
    change_quantity,
    select_supplier,
)
from procurechef_kernel.domain.entities import PackageConversion


def _offer(supplier_id, price, **kwargs):
    return SupplierProductQuote(
        supplier_id=supplier_id,
        supplier_name=supplier_id.title(),
        price=Decimal(price),
        in_stock=True,
        **kwargs,
    )


def _comparison(product_id, quantity, *offers, selected=None, unit="kg"):
    return ProductQuoteComparison(
        product_id=product_id,
        product_name=product_id.title(),
        category="",
        unit=unit,
        request_ids=("r1",),
        quantity=Decimal(quantity),
        supplier_quotes=tuple(sorted(offers, key=lambda o: o.price)),
        selected_supplier_id=selected,
    )


class TestGrouping:

    def test_one_order_per_supplier(self):
        comparisons = [
            _comparison("tomato", "5", _offer("farm", "2.50"), _offer("fresh", "3.00"), selected="farm"),
            _comparison("basil", "2", _offer("fresh", "1.20"), selected="fresh"),
            _comparison("garlic", "1", _offer("farm", "4.00"), selected="farm"),
        ]

        plan = plan_orders(comparisons)

        assert [o.supplier_id for o in plan.orders] == ["farm", "fresh"]
        farm = plan.orders[0]
        assert farm.supplier_name == "Farm"
        assert [line.product_id for line in farm.lines] == ["tomato", "garlic"]
        assert farm.total == Decimal("16.50")
        assert plan.total == Decimal("18.90")
        assert plan.is_complete

    def test_unselected_products_ignored(self):
        comparisons = [_comparison("tomato", "5", _offer("farm", "2.50"))]

        plan = plan_orders(comparisons)

        assert plan.orders == ()
        assert plan.unresolved == ()

    def test_line_carries_selected_price_not_best(self):
        comparisons = [
            _comparison("tomato", "5", _offer("farm", "2.50"), _offer("fresh", "3.00"), selected="fresh"),
        ]

        line = plan_orders(comparisons).orders[0].lines[0]

        assert line.unit_price == Decimal("3.00")
        assert line.line_total == Decimal("15.00")
        assert line.unit == "kg"

    def test_uses_edited_quantity(self):
        comparisons = [_comparison("tomato", "5", _offer("farm", "2.00"))]
        comparisons = select_supplier(comparisons, "tomato", "farm")
        comparisons = change_quantity(comparisons, "tomato", Decimal("8"))

        line = plan_orders(comparisons).orders[0].lines[0]

        assert line.quantity == Decimal("8")
        assert line.line_total == Decimal("16.00")


class TestUnresolvedSelections:

    def test_dangling_selection_reported(self, captured_logs):
        comparisons = [
            _comparison("tomato", "5", _offer("farm", "2.50"), selected="ghost"),
            _comparison("basil", "2", _offer("fresh", "1.20"), selected="fresh"),
        ]

        plan = plan_orders(comparisons)

        assert [o.supplier_id for o in plan.orders] == ["fresh"]
        assert plan.unresolved == (
            UnresolvedSelection("tomato", "ghost", UnresolvedReason.SUPPLIER_NOT_QUOTED),
        )
        assert not plan.is_complete
        logs = captured_logs()
        assert any(
            r["message"] == "order_selection_unresolved" and r["supplier_id"] == "ghost"
            for r in logs
        )

    def test_no_zero_priced_lines(self):
        comparisons = [_comparison("tomato", "5", selected="farm")]

        plan = plan_orders(comparisons)

        assert plan.orders == ()
        assert plan.total == Decimal("0")

    def test_non_positive_quantity_reported(self):
        comparisons = [_comparison("tomato", "0", _offer("farm", "2.50"), selected="farm")]

        plan = plan_orders(comparisons)

        assert plan.orders == ()
        assert plan.unresolved[0].reason == UnresolvedReason.NON_POSITIVE_QUANTITY


class TestPackagesAndMinimums:

    def test_package_conversion_prices_whole_packages(self):
        sack = PackageConversion("sack", Decimal("25"), Decimal("40.00"))
        comparisons = [
            _comparison("flour", "30", _offer("mill", "1.60", package_conversion=sack,
                                              supplier_product_code="MW-FL25"),
                        selected="mill"),
        ]

        line = plan_orders(comparisons).orders[0].lines[0]

        assert line.packages == 2
        assert line.line_total == Decimal("80.00")
        assert line.supplier_product_code == "MW-FL25"

    def test_below_minimum_flagged_not_blocked(self):
        comparisons = [
            _comparison("flour", "10", _offer("mill", "1.60", minimum_order_quantity=Decimal("25")),
                        selected="mill"),
        ]

        line = plan_orders(comparisons).orders[0].lines[0]

        assert line.below_minimum_order
        assert line.quantity == Decimal("10")

    def test_at_minimum_not_flagged(self):
        comparisons = [
            _comparison("flour", "25", _offer("mill", "1.60", minimum_order_quantity=Decimal("25")),
                        selected="mill"),
        ]

        assert not plan_orders(comparisons).orders[0].lines[0].below_minimum_order
