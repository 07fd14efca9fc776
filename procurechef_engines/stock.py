"""
procurechef_engines.stock -- Stock level bucketing for inventory counts.

Responsibility:
    Map an on-hand count to a low / medium / high stock level and compute
    the inventory adjustment produced by a physical count or a received
    delivery.

Invariants enforced:
    - Buckets are contiguous: ``count <= low_max`` is low,
      ``low_max < count <= medium_max`` is medium, anything above is high.
    - Counts and received quantities are never negative.

Failure modes:
    - InvalidStockQuantityError for negative counts or receipts.
    - ValueError from ``StockThresholds`` if medium_max < low_max.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from procurechef_engines.tracer import traced_engine
from procurechef_kernel.exceptions import InvalidStockQuantityError
from procurechef_kernel.logging_config import get_logger

logger = get_logger("engines.stock")


class StockLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class StockThresholds:
    """Upper bounds (inclusive) of the low and medium buckets."""

    low_max: Decimal = Decimal("5")
    medium_max: Decimal = Decimal("20")

    def __post_init__(self) -> None:
        if self.medium_max < self.low_max:
            raise ValueError("medium_max cannot be less than low_max")


DEFAULT_THRESHOLDS = StockThresholds()


@dataclass(frozen=True)
class StockAdjustment:
    """New on-hand figure for one product after a count or receipt."""

    product_id: str
    previous_stock: Decimal | None
    new_stock: Decimal
    level: StockLevel

    @property
    def delta(self) -> Decimal | None:
        if self.previous_stock is None:
            return None
        return self.new_stock - self.previous_stock


def determine_stock_level(
    count: Decimal,
    thresholds: StockThresholds = DEFAULT_THRESHOLDS,
) -> StockLevel:
    if count <= thresholds.low_max:
        return StockLevel.LOW
    if count <= thresholds.medium_max:
        return StockLevel.MEDIUM
    return StockLevel.HIGH


def apply_count(
    product_id: str,
    count: Decimal,
    thresholds: StockThresholds = DEFAULT_THRESHOLDS,
    previous_stock: Decimal | None = None,
) -> StockAdjustment:
    """Replace on-hand stock with a physical count."""
    if count < 0:
        logger.warning("stock_count_rejected", extra={
            "product_id": product_id,
            "count": str(count),
        })
        raise InvalidStockQuantityError(product_id, count)
    return StockAdjustment(
        product_id=product_id,
        previous_stock=previous_stock,
        new_stock=count,
        level=determine_stock_level(count, thresholds),
    )


@traced_engine("stock", "1.0", fingerprint_fields=("product_id", "current_stock", "received"))
def apply_receipt(
    product_id: str,
    current_stock: Decimal,
    received: Decimal,
    thresholds: StockThresholds = DEFAULT_THRESHOLDS,
) -> StockAdjustment:
    """Add a delivered quantity to on-hand stock."""
    if received < 0:
        logger.warning("stock_receipt_rejected", extra={
            "product_id": product_id,
            "received": str(received),
        })
        raise InvalidStockQuantityError(product_id, received)
    new_stock = current_stock + received
    return StockAdjustment(
        product_id=product_id,
        previous_stock=current_stock,
        new_stock=new_stock,
        level=determine_stock_level(new_stock, thresholds),
    )
