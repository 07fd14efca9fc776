"""
procurechef_engines.quote_validity -- Quote expiry and availability checks.

Responsibility:
    Classify supplier quotes by how long they remain valid, filter out
    lapsed quotes before comparison, pick the cheapest still-valid quote
    for a product, and summarise how much of a quote is in stock.

Architecture position:
    Engines -- pure calculation layer.  Every function takes an explicit
    ``as_of`` date; nothing here reads the clock.

Invariants enforced:
    - A dated quote is valid while at least one full day remains
      (``days_until_expiry > 0``).  A quote expiring today is no longer
      offered for new orders.
    - An undated quote is valid only if it is a blanket quote.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from procurechef_kernel.domain.entities import SupplierQuote

DEFAULT_EXPIRING_SOON_DAYS = 7


class ValidityStatus(str, Enum):
    EXPIRED = "expired"
    EXPIRING = "expiring"  # expires today
    EXPIRING_SOON = "expiring_soon"
    VALID = "valid"


@dataclass(frozen=True)
class QuoteValidity:
    """Validity classification of one quote on a given day."""

    status: ValidityStatus
    days_remaining: int | None
    label: str

    @property
    def is_usable(self) -> bool:
        return self.status in (ValidityStatus.VALID, ValidityStatus.EXPIRING_SOON)


@dataclass(frozen=True)
class QuoteItemsStatus:
    total: int
    available: int

    @property
    def unavailable(self) -> int:
        return self.total - self.available

    @property
    def all_available(self) -> bool:
        return self.total == self.available


def days_until_expiry(quote: SupplierQuote, as_of: date) -> int | None:
    """Whole days from ``as_of`` to the quote's expiry; None if undated."""
    if quote.expiry_date is None:
        return None
    return (quote.expiry_date - as_of).days


def is_quote_valid(quote: SupplierQuote, as_of: date) -> bool:
    days = days_until_expiry(quote, as_of)
    if days is None:
        return quote.is_blanket
    return days > 0


def quote_validity(
    quote: SupplierQuote,
    as_of: date,
    expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> QuoteValidity:
    """
    Classify a quote into expired / expiring / expiring_soon / valid.

    Undated blanket quotes are ``valid`` with no day count.  Undated
    non-blanket quotes are reported as ``expired``: there is nothing to
    hold the supplier to.
    """
    days = days_until_expiry(quote, as_of)
    if days is None:
        if quote.is_blanket:
            return QuoteValidity(ValidityStatus.VALID, None, "Blanket quote")
        return QuoteValidity(ValidityStatus.EXPIRED, None, "No expiry date")
    if days < 0:
        return QuoteValidity(
            ValidityStatus.EXPIRED, days, f"Expired {abs(days)} days ago"
        )
    if days == 0:
        return QuoteValidity(ValidityStatus.EXPIRING, 0, "Expires today")
    if days <= expiring_soon_days:
        return QuoteValidity(
            ValidityStatus.EXPIRING_SOON, days, f"Expires in {days} days"
        )
    return QuoteValidity(ValidityStatus.VALID, days, f"Valid for {days} days")


def filter_valid_quotes(
    quotes: Iterable[SupplierQuote], as_of: date
) -> list[SupplierQuote]:
    """Quotes still valid on ``as_of``, input order preserved."""
    return [q for q in quotes if is_quote_valid(q, as_of)]


def find_best_valid_quote(
    product_id: str,
    quotes: Sequence[SupplierQuote],
    as_of: date,
) -> SupplierQuote | None:
    """
    The valid quote offering ``product_id`` at the lowest unit price.

    Ties go to the quote that appears first in ``quotes``.
    """
    best: SupplierQuote | None = None
    best_price = None
    for quote in quotes:
        if not is_quote_valid(quote, as_of):
            continue
        item = quote.item_for(product_id)
        if item is None:
            continue
        if best_price is None or item.price_per_unit < best_price:
            best, best_price = quote, item.price_per_unit
    return best


def quote_items_status(quote: SupplierQuote) -> QuoteItemsStatus:
    return QuoteItemsStatus(
        total=len(quote.items),
        available=sum(1 for item in quote.items if item.in_stock),
    )
