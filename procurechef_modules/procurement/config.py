"""
Procurement Configuration Schema.

Defines the structure and sensible defaults for procurement settings.
Actual values are loaded from a YAML file at runtime (see
``procurechef_config.loader``).
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from typing import Any, Self

from procurechef_engines.quote_aggregation import DEFAULT_COMPARABLE_STATUSES
from procurechef_engines.stock import StockThresholds
from procurechef_kernel.domain.entities import QuoteStatus
from procurechef_kernel.exceptions import ConfigurationError
from procurechef_kernel.logging_config import get_logger

logger = get_logger("modules.procurement.config")


@dataclass
class ProcurementConfig:
    """
    Configuration schema for the procurement module.

    Override at instantiation with site-specific values, or load from
    YAML with ``procurechef_config.load_procurement_config``:

        config = ProcurementConfig(
            exclude_expired_quotes=True,
            strict_order_generation=True,
        )
    """

    # Quote comparison
    comparable_quote_statuses: frozenset[QuoteStatus] = field(
        default_factory=lambda: DEFAULT_COMPARABLE_STATUSES
    )
    exclude_expired_quotes: bool = False
    expiring_soon_days: int = 7

    # Quote solicitation
    quote_response_days: int = 7
    default_quote_validity_days: int = 14

    # Inventory
    stock_low_max: Decimal = Decimal("5")
    stock_medium_max: Decimal = Decimal("20")

    # Orders
    order_number_prefix: str = "PO"
    strict_order_generation: bool = False

    def __post_init__(self):
        if self.quote_response_days < 0:
            raise ConfigurationError("quote_response_days", "must not be negative")
        if self.default_quote_validity_days < 0:
            raise ConfigurationError("default_quote_validity_days", "must not be negative")
        if self.stock_medium_max < self.stock_low_max:
            raise ConfigurationError(
                "stock_medium_max", "must be greater than or equal to stock_low_max"
            )
        logger.info(
            "procurement_config_initialized",
            extra={
                "comparable_quote_statuses": sorted(
                    s.value for s in self.comparable_quote_statuses
                ),
                "exclude_expired_quotes": self.exclude_expired_quotes,
                "quote_response_days": self.quote_response_days,
                "strict_order_generation": self.strict_order_generation,
            },
        )

    @property
    def stock_thresholds(self) -> StockThresholds:
        return StockThresholds(low_max=self.stock_low_max, medium_max=self.stock_medium_max)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with default settings."""
        logger.info("procurement_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary (e.g., parsed from YAML)."""
        logger.info(
            "procurement_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown setting")

        values = dict(data)
        if "comparable_quote_statuses" in values:
            try:
                values["comparable_quote_statuses"] = frozenset(
                    QuoteStatus(s) for s in values["comparable_quote_statuses"]
                )
            except ValueError as exc:
                raise ConfigurationError("comparable_quote_statuses", str(exc)) from exc
        for key in ("stock_low_max", "stock_medium_max"):
            if key in values:
                try:
                    values[key] = Decimal(str(values[key]))
                except InvalidOperation as exc:
                    raise ConfigurationError(key, "not a number") from exc
        return cls(**values)
