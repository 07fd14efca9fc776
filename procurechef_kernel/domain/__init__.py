from procurechef_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from procurechef_kernel.domain.entities import (
    PackageConversion,
    QuoteItem,
    QuoteStatus,
    Request,
    RequestItem,
    RequestPriority,
    RequestStatus,
    SupplierQuote,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "PackageConversion",
    "QuoteItem",
    "QuoteStatus",
    "Request",
    "RequestItem",
    "RequestPriority",
    "RequestStatus",
    "SupplierQuote",
]
