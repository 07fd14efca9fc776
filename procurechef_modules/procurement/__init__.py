"""
Procurement Module (``procurechef_modules.procurement``).

Responsibility
--------------
Thin glue for the request-to-order cycle: loading requests and supplier
quotes, building the product-centred comparison, soliciting and recording
quotes, generating one purchase order per selected supplier, receiving
deliveries into inventory and physical stock counts.

Architecture position
---------------------
**Modules layer** -- config schema, DTOs, ORM tables and a service facade
that delegates every calculation to ``procurechef_engines``.

Invariants enforced
-------------------
* Transaction boundary owned by ``ProcurementService``.
* Order lines are written only for selections backed by a priced offer.
* Prices and quantities are ``Decimal`` end to end.
"""

from procurechef_modules.procurement.config import ProcurementConfig
from procurechef_modules.procurement.models import (
    ORDER_TRANSITIONS,
    REQUEST_TRANSITIONS,
    InventoryItem,
    Order,
    OrderGenerationResult,
    OrderItem,
    OrderStatus,
    Product,
    QuoteRequest,
    QuoteRequestStatus,
    Supplier,
)
from procurechef_modules.procurement.service import ProcurementService

__all__ = [
    "ORDER_TRANSITIONS",
    "REQUEST_TRANSITIONS",
    "InventoryItem",
    "Order",
    "OrderGenerationResult",
    "OrderItem",
    "OrderStatus",
    "Product",
    "ProcurementConfig",
    "ProcurementService",
    "QuoteRequest",
    "QuoteRequestStatus",
    "Supplier",
]
