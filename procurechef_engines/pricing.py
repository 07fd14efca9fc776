"""
procurechef_engines.pricing -- Volume tiers and package conversions.

Suppliers price some products by quantity band and sell others only in
their own packaging (a 25 kg sack, a case of 12).  These helpers translate
both into the requested unit so offers can be compared and ordered.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from procurechef_kernel.domain.entities import PackageConversion


@dataclass(frozen=True)
class VolumePriceTier:
    """Unit price applying to quantities in ``[min_quantity, max_quantity]``."""

    min_quantity: Decimal
    max_quantity: Decimal | None  # None = unbounded
    price: Decimal

    def __post_init__(self) -> None:
        if self.min_quantity < 0:
            raise ValueError("min_quantity cannot be negative")
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValueError("max_quantity cannot be less than min_quantity")

    def contains(self, quantity: Decimal) -> bool:
        if quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity <= self.max_quantity


def price_for_quantity(
    base_price: Decimal,
    tiers: Sequence[VolumePriceTier],
    quantity: Decimal,
) -> Decimal:
    """Price of the first tier containing ``quantity``, else ``base_price``."""
    for tier in tiers:
        if tier.contains(quantity):
            return tier.price
    return base_price


def packages_required(quantity: Decimal, conversion: PackageConversion) -> int:
    """Whole supplier packages needed to cover ``quantity`` requested units."""
    if quantity <= 0:
        return 0
    packages = (quantity / conversion.supplier_unit_size).to_integral_value(
        rounding=ROUND_CEILING
    )
    return int(packages)


def unit_price_from_package(conversion: PackageConversion) -> Decimal:
    """Effective price per requested unit when buying whole packages."""
    return conversion.supplier_unit_price / conversion.supplier_unit_size


def package_cost(quantity: Decimal, conversion: PackageConversion) -> Decimal:
    """Cost of the whole packages needed for ``quantity``."""
    return packages_required(quantity, conversion) * conversion.supplier_unit_price
