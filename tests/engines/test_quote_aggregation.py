"""
Tests for the Quote Aggregation Engine.

Covers:
- Seeding products from requests (first-seen order, max quantity)
- Folding supplier quotes (dedup by supplier, lower price wins)
- Price ordering and stable tie-breaking
- Status filtering
- Orphan quote items
- Selection and quantity edits
- best_price / resolve_selection accessors
"""

from decimal import Decimal

import pytest

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
from procurechef_kernel.domain.entities import (
    PackageConversion,
    QuoteItem,
    QuoteStatus,
    Request,
    RequestItem,
    SupplierQuote,
)


def _request(request_id, *lines):
    """lines: (product_id, product_name, quantity[, unit[, category]])"""
    items = []
    for i, line in enumerate(lines):
        product_id, name, quantity = line[:3]
        unit = line[3] if len(line) > 3 else "kg"
        category = line[4] if len(line) > 4 else ""
        items.append(RequestItem(
            id=f"{request_id}-i{i}",
            product_id=product_id,
            product_name=name,
            quantity=Decimal(str(quantity)),
            unit=unit,
            category=category,
        ))
    return Request(id=request_id, title=f"Request {request_id}", items=tuple(items))


def _quote(quote_id, supplier_id, request_id, *prices, status=QuoteStatus.RECEIVED, name=None):
    """prices: (product_id, price[, in_stock])"""
    items = []
    for i, entry in enumerate(prices):
        product_id, price = entry[:2]
        in_stock = entry[2] if len(entry) > 2 else True
        items.append(QuoteItem(
            id=f"{quote_id}-i{i}",
            product_id=product_id,
            price_per_unit=Decimal(str(price)),
            in_stock=in_stock,
        ))
    return SupplierQuote(
        id=quote_id,
        supplier_id=supplier_id,
        supplier_name=name or supplier_id.upper(),
        request_id=request_id,
        items=tuple(items),
        status=status,
    )


class TestTomatoesScenario:
    """Two farms quote one product; the cheaper farm ranks first."""

    def setup_method(self):
        self.requests = [_request("r1", ("p1", "Tomatoes", 5, "kg"))]
        self.quotes = [
            _quote("q1", "s1", "r1", ("p1", "3.0"), name="Farm A"),
            _quote("q2", "s2", "r1", ("p1", "2.5"), name="Farm B"),
        ]

    def test_single_comparison_for_product(self):
        result = aggregate_quotes(self.requests, self.quotes)

        assert len(result) == 1
        comparison = result[0]
        assert comparison.product_id == "p1"
        assert comparison.product_name == "Tomatoes"
        assert comparison.unit == "kg"
        assert comparison.quantity == Decimal("5")
        assert comparison.request_ids == ("r1",)

    def test_suppliers_sorted_by_price(self):
        comparison = aggregate_quotes(self.requests, self.quotes)[0]

        assert comparison.supplier_ids == ("s2", "s1")
        assert [sq.price for sq in comparison.supplier_quotes] == [
            Decimal("2.5"), Decimal("3.0"),
        ]

    def test_best_price_is_farm_b(self):
        comparison = aggregate_quotes(self.requests, self.quotes)[0]

        best = best_price(comparison)
        assert best.supplier_name == "Farm B"
        assert best.price == Decimal("2.5")


class TestSeeding:
    """Tests for building product entries from request items."""

    def test_max_quantity_across_requests(self):
        requests = [
            _request("A", ("P", "Onions", 5)),
            _request("B", ("P", "Onions", 12)),
        ]

        comparison = aggregate_quotes(requests, [])[0]

        assert comparison.quantity == Decimal("12")
        assert comparison.request_ids == ("A", "B")

    def test_quantity_is_not_summed(self):
        requests = [
            _request("A", ("P", "Onions", 12)),
            _request("B", ("P", "Onions", 5)),
        ]

        assert aggregate_quotes(requests, [])[0].quantity == Decimal("12")

    def test_request_id_recorded_once(self):
        """The same request naming a product twice lists the request once."""
        requests = [_request("A", ("P", "Onions", 2), ("P", "Onions", 7))]

        comparison = aggregate_quotes(requests, [])[0]

        assert comparison.request_ids == ("A",)
        assert comparison.quantity == Decimal("7")

    def test_first_seen_product_order(self):
        requests = [
            _request("A", ("p3", "Leeks", 1), ("p1", "Basil", 1)),
            _request("B", ("p2", "Garlic", 1), ("p3", "Leeks", 1)),
        ]

        result = aggregate_quotes(requests, [])

        assert [c.product_id for c in result] == ["p3", "p1", "p2"]

    def test_metadata_taken_from_first_sighting(self):
        requests = [
            _request("A", ("p1", "Tomatoes", 1, "kg", "Produce")),
            _request("B", ("p1", "Roma tomatoes", 1, "case", "Other")),
        ]

        comparison = aggregate_quotes(requests, [])[0]

        assert comparison.product_name == "Tomatoes"
        assert comparison.unit == "kg"
        assert comparison.category == "Produce"

    def test_empty_inputs(self):
        assert aggregate_quotes([], []) == []

    def test_requests_without_quotes_have_no_suppliers(self):
        comparison = aggregate_quotes([_request("A", ("p1", "Salt", 1))], [])[0]

        assert comparison.supplier_quotes == ()
        assert best_price(comparison) is None


class TestQuoteFolding:
    """Tests for merging supplier quote items into products."""

    def test_lower_price_wins_on_duplicate(self):
        requests = [_request("A", ("p1", "Butter", 10))]
        quotes = [
            _quote("q1", "s1", "A", ("p1", "10")),
            _quote("q2", "s1", "A", ("p1", "8")),
        ]

        comparison = aggregate_quotes(requests, quotes)[0]

        assert comparison.supplier_ids == ("s1",)
        assert comparison.supplier_quotes[0].price == Decimal("8")

    def test_higher_duplicate_ignored(self):
        requests = [_request("A", ("p1", "Butter", 10))]
        quotes = [
            _quote("q1", "s1", "A", ("p1", "8")),
            _quote("q2", "s1", "A", ("p1", "10", False)),
        ]

        offer = aggregate_quotes(requests, quotes)[0].supplier_quotes[0]

        assert offer.price == Decimal("8")
        assert offer.in_stock is True

    def test_cheaper_duplicate_replaces_whole_offer(self):
        requests = [_request("A", ("p1", "Butter", 10))]
        quotes = [
            _quote("q1", "s1", "A", ("p1", "10", True)),
            _quote("q2", "s1", "A", ("p1", "8", False)),
        ]

        offer = aggregate_quotes(requests, quotes)[0].supplier_quotes[0]

        assert offer.in_stock is False

    def test_equal_price_ties_keep_first_encountered_supplier(self):
        requests = [_request("A", ("p1", "Eggs", 60))]
        quotes = [
            _quote("q1", "s-late-alpha", "A", ("p1", "0.30")),
            _quote("q2", "s-early", "A", ("p1", "0.25")),
            _quote("q3", "s-another", "A", ("p1", "0.30")),
        ]

        comparison = aggregate_quotes(requests, quotes)[0]

        assert comparison.supplier_ids == ("s-early", "s-late-alpha", "s-another")

    def test_tie_order_survives_cheaper_duplicate(self):
        """A cheaper re-quote keeps the supplier's first-seen tie position."""
        requests = [_request("A", ("p1", "Eggs", 60))]
        quotes = [
            _quote("q1", "s1", "A", ("p1", "0.40")),
            _quote("q2", "s2", "A", ("p1", "0.30")),
            _quote("q3", "s1", "A", ("p1", "0.30")),
        ]

        comparison = aggregate_quotes(requests, quotes)[0]

        assert comparison.supplier_ids == ("s1", "s2")

    def test_orphan_items_skipped(self):
        requests = [_request("A", ("p1", "Milk", 4))]
        quotes = [_quote("q1", "s1", "A", ("p1", "1.10"), ("p-unrequested", "9.99"))]

        result = aggregate_quotes(requests, quotes)

        assert [c.product_id for c in result] == ["p1"]
        assert find_comparison(result, "p-unrequested") is None

    def test_quote_for_other_request_still_folds(self):
        """Quotes merge by product, across the requests in the snapshot."""
        requests = [
            _request("A", ("p1", "Milk", 4)),
            _request("B", ("p1", "Milk", 2)),
        ]
        quotes = [
            _quote("q1", "s1", "A", ("p1", "1.10")),
            _quote("q2", "s2", "B", ("p1", "1.05")),
        ]

        comparison = aggregate_quotes(requests, quotes)[0]

        assert comparison.supplier_ids == ("s2", "s1")

    def test_catalogue_details_carried_onto_offer(self):
        conversion = PackageConversion("sack", Decimal("25"), Decimal("40.00"))
        requests = [_request("A", ("p1", "Flour", 30))]
        quote = SupplierQuote(
            id="q1", supplier_id="s1", supplier_name="Mill", request_id="A",
            items=(QuoteItem(
                id="qi1",
                product_id="p1",
                price_per_unit=Decimal("1.60"),
                supplier_product_code="MW-FL25",
                minimum_order_quantity=Decimal("25"),
                package_conversion=conversion,
            ),),
        )

        offer = aggregate_quotes(requests, [quote])[0].supplier_quotes[0]

        assert offer == SupplierProductQuote(
            supplier_id="s1",
            supplier_name="Mill",
            price=Decimal("1.60"),
            in_stock=True,
            supplier_product_code="MW-FL25",
            minimum_order_quantity=Decimal("25"),
            package_conversion=conversion,
        )


class TestStatusFiltering:
    """Tests for the include_statuses parameter."""

    def setup_method(self):
        self.requests = [_request("A", ("p1", "Cream", 3))]
        self.quotes = [
            _quote("q1", "s-draft", "A", ("p1", "1.00"), status=QuoteStatus.DRAFT),
            _quote("q2", "s-rejected", "A", ("p1", "1.50"), status=QuoteStatus.REJECTED),
            _quote("q3", "s-sent", "A", ("p1", "2.00"), status=QuoteStatus.SENT),
            _quote("q4", "s-received", "A", ("p1", "2.50"), status=QuoteStatus.RECEIVED),
            _quote("q5", "s-approved", "A", ("p1", "3.00"), status=QuoteStatus.APPROVED),
        ]

    def test_default_excludes_draft_and_rejected(self):
        comparison = aggregate_quotes(self.requests, self.quotes)[0]

        assert comparison.supplier_ids == ("s-sent", "s-received", "s-approved")

    def test_default_statuses(self):
        assert DEFAULT_COMPARABLE_STATUSES == {
            QuoteStatus.SENT, QuoteStatus.RECEIVED, QuoteStatus.APPROVED,
        }

    def test_none_includes_everything(self):
        comparison = aggregate_quotes(self.requests, self.quotes, include_statuses=None)[0]

        assert len(comparison.supplier_quotes) == 5
        assert comparison.supplier_ids[0] == "s-draft"

    def test_explicit_status_set(self):
        comparison = QuoteAggregator().aggregate(
            self.requests, self.quotes, include_statuses={QuoteStatus.APPROVED},
        )[0]

        assert comparison.supplier_ids == ("s-approved",)

    def test_filtered_quotes_do_not_remove_products(self):
        comparison = aggregate_quotes(self.requests, self.quotes, include_statuses=set())[0]

        assert comparison.product_id == "p1"
        assert comparison.supplier_quotes == ()


class TestDeterminism:

    def test_same_inputs_same_output(self):
        requests = [
            _request("A", ("p1", "Tomatoes", 5), ("p2", "Basil", 1)),
            _request("B", ("p2", "Basil", 3)),
        ]
        quotes = [
            _quote("q1", "s1", "A", ("p1", "3.0"), ("p2", "1.2")),
            _quote("q2", "s2", "B", ("p2", "1.1"), ("p1", "3.0")),
        ]

        assert aggregate_quotes(requests, quotes) == aggregate_quotes(requests, quotes)

    def test_inputs_not_mutated(self):
        requests = [_request("A", ("p1", "Tomatoes", 5))]
        quotes = [_quote("q1", "s1", "A", ("p1", "3.0"))]
        before = (list(requests), list(quotes))

        aggregate_quotes(requests, quotes)

        assert (requests, quotes) == before


class TestSelection:
    """Tests for select_supplier / change_quantity / resolve_selection."""

    def setup_method(self):
        requests = [_request("A", ("prod1", "Tomatoes", 5), ("prod2", "Basil", 1))]
        quotes = [
            _quote("q1", "supA", "A", ("prod1", "3.0"), ("prod2", "2.0")),
            _quote("q2", "supB", "A", ("prod1", "2.5")),
        ]
        self.comparisons = aggregate_quotes(requests, quotes)

    def test_selection_persists(self):
        updated = select_supplier(self.comparisons, "prod1", "supA")

        assert find_comparison(updated, "prod1").selected_supplier_id == "supA"
        assert find_comparison(updated, "prod2") == find_comparison(self.comparisons, "prod2")

    def test_original_list_untouched(self):
        select_supplier(self.comparisons, "prod1", "supA")

        assert all(c.selected_supplier_id is None for c in self.comparisons)

    def test_unknown_product_is_noop(self):
        updated = select_supplier(self.comparisons, "nope", "supA")

        assert updated == self.comparisons

    def test_selection_not_validated(self):
        updated = select_supplier(self.comparisons, "prod2", "supB")
        comparison = find_comparison(updated, "prod2")

        assert comparison.selected_supplier_id == "supB"
        assert resolve_selection(comparison) is None

    def test_resolve_selection_returns_offer(self):
        updated = select_supplier(self.comparisons, "prod1", "supA")

        offer = resolve_selection(find_comparison(updated, "prod1"))
        assert offer.supplier_id == "supA"
        assert offer.price == Decimal("3.0")

    def test_clear_selection(self):
        updated = select_supplier(self.comparisons, "prod1", "supA")
        updated = select_supplier(updated, "prod1", None)

        assert resolve_selection(find_comparison(updated, "prod1")) is None

    def test_selected_comparisons(self):
        updated = select_supplier(self.comparisons, "prod2", "supA")

        assert [c.product_id for c in selected_comparisons(updated)] == ["prod2"]

    def test_change_quantity(self):
        updated = change_quantity(self.comparisons, "prod1", Decimal("40"))

        assert find_comparison(updated, "prod1").quantity == Decimal("40")
        assert find_comparison(updated, "prod2").quantity == Decimal("1")
        # offers untouched, no re-aggregation
        assert find_comparison(updated, "prod1").supplier_ids == ("supB", "supA")


class TestComparisonValueObject:

    def test_frozen(self):
        comparison = ProductQuoteComparison(
            product_id="p1", product_name="Salt", category="", unit="kg",
            request_ids=("A",), quantity=Decimal("1"),
        )
        with pytest.raises(AttributeError):
            comparison.quantity = Decimal("2")

    def test_quote_for_missing_supplier(self):
        comparison = ProductQuoteComparison(
            product_id="p1", product_name="Salt", category="", unit="kg",
            request_ids=("A",), quantity=Decimal("1"),
        )
        assert comparison.quote_for("s1") is None
