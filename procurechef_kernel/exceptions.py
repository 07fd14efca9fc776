"""
Typed exception hierarchy for ProcureChef.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable, API-safe) and carries its context as
structured attributes rather than only in the message string.

    ProcureChefError (base)
    |
    +-- ConfigurationError
    |
    +-- NotFoundError
    |   +-- RequestNotFoundError
    |   +-- SupplierNotFoundError
    |   +-- ProductNotFoundError
    |   +-- QuoteNotFoundError
    |   +-- QuoteRequestNotFoundError
    |   +-- OrderNotFoundError
    |   +-- OrderItemNotFoundError
    |
    +-- RequestError
    |   +-- InvalidRequestStatusError
    |
    +-- QuoteError
    |   +-- UnpricedQuoteItemError
    |   +-- InvalidQuoteRequestStatusError
    |
    +-- OrderError
    |   +-- UnresolvedSelectionError
    |   +-- InvalidOrderStatusError
    |
    +-- InventoryError
        +-- InvalidStockQuantityError

Category        | Code                     | When Raised
----------------|--------------------------|------------------------------------------
Config          | CONFIGURATION_INVALID    | Unknown key or bad value in config source
----------------|--------------------------|------------------------------------------
Not found       | REQUEST_NOT_FOUND        | Request ID doesn't exist
                | SUPPLIER_NOT_FOUND       | Supplier ID doesn't exist
                | PRODUCT_NOT_FOUND        | Product ID doesn't exist
                | QUOTE_NOT_FOUND          | Supplier quote ID doesn't exist
                | QUOTE_REQUEST_NOT_FOUND  | Quote request ID doesn't exist
                | ORDER_NOT_FOUND          | Order ID doesn't exist
                | ORDER_ITEM_NOT_FOUND     | Order item not on the order
----------------|--------------------------|------------------------------------------
Request         | INVALID_REQUEST_STATUS   | Transition not allowed from current status
----------------|--------------------------|------------------------------------------
Quote           | UNPRICED_QUOTE_ITEM      | No price given and none in the catalogue
                | INVALID_QUOTE_REQUEST_STATUS | Quote request no longer pending
----------------|--------------------------|------------------------------------------
Order           | UNRESOLVED_SELECTION     | Selected supplier has no priced quote
                | INVALID_ORDER_STATUS     | Transition not allowed from current status
----------------|--------------------------|------------------------------------------
Inventory       | INVALID_STOCK_QUANTITY   | Negative count or received quantity

The aggregation engine never raises these for well-typed input; orphan
quotes and dangling selections are resolved silently there and surfaced
by order planning instead.
"""

from collections.abc import Sequence


class ProcureChefError(Exception):
    """
    Base exception for all ProcureChef errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "PROCURECHEF_ERROR"


# Configuration


class ConfigurationError(ProcureChefError):
    """Configuration source contains an invalid key or value."""

    code: str = "CONFIGURATION_INVALID"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")


# Lookups


class NotFoundError(ProcureChefError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class RequestNotFoundError(NotFoundError):
    """Procurement request with given ID was not found."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Request not found: {request_id}")


class SupplierNotFoundError(NotFoundError):
    """Supplier with given ID was not found."""

    code: str = "SUPPLIER_NOT_FOUND"

    def __init__(self, supplier_id: str):
        self.supplier_id = supplier_id
        super().__init__(f"Supplier not found: {supplier_id}")


class ProductNotFoundError(NotFoundError):
    """Catalogue product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class QuoteNotFoundError(NotFoundError):
    """Supplier quote with given ID was not found."""

    code: str = "QUOTE_NOT_FOUND"

    def __init__(self, quote_id: str):
        self.quote_id = quote_id
        super().__init__(f"Quote not found: {quote_id}")


class QuoteRequestNotFoundError(NotFoundError):
    """Quote request with given ID was not found."""

    code: str = "QUOTE_REQUEST_NOT_FOUND"

    def __init__(self, quote_request_id: str):
        self.quote_request_id = quote_request_id
        super().__init__(f"Quote request not found: {quote_request_id}")


class OrderNotFoundError(NotFoundError):
    """Purchase order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderItemNotFoundError(NotFoundError):
    """Order item does not exist on the given order."""

    code: str = "ORDER_ITEM_NOT_FOUND"

    def __init__(self, order_id: str, order_item_id: str):
        self.order_id = order_id
        self.order_item_id = order_item_id
        super().__init__(
            f"Order item {order_item_id} not found on order {order_id}"
        )


# Requests


class RequestError(ProcureChefError):
    """Base exception for purchase request lifecycle errors."""

    code: str = "REQUEST_ERROR"


class InvalidRequestStatusError(RequestError):
    """Request cannot move from its current status to the requested one."""

    code: str = "INVALID_REQUEST_STATUS"

    def __init__(self, request_id: str, current_status: str, requested_status: str):
        self.request_id = request_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Request {request_id} cannot move from {current_status} "
            f"to {requested_status}"
        )


# Quotes


class QuoteError(ProcureChefError):
    """Base exception for supplier quote and quote request errors."""

    code: str = "QUOTE_ERROR"


class UnpricedQuoteItemError(QuoteError):
    """Quote line has no price and the supplier catalogue has none either."""

    code: str = "UNPRICED_QUOTE_ITEM"

    def __init__(self, supplier_id: str, product_id: str):
        self.supplier_id = supplier_id
        self.product_id = product_id
        super().__init__(
            f"No price for product {product_id} from supplier {supplier_id}"
        )


class InvalidQuoteRequestStatusError(QuoteError):
    """Quote request is not in a status that allows the operation."""

    code: str = "INVALID_QUOTE_REQUEST_STATUS"

    def __init__(self, quote_request_id: str, current_status: str):
        self.quote_request_id = quote_request_id
        self.current_status = current_status
        super().__init__(
            f"Quote request {quote_request_id} is {current_status}, not pending"
        )


# Orders


class OrderError(ProcureChefError):
    """Base exception for order generation and lifecycle errors."""

    code: str = "ORDER_ERROR"


class UnresolvedSelectionError(OrderError):
    """
    One or more selected suppliers have no priced quote for their product.

    Raised only when order generation runs in strict mode; otherwise the
    unresolved selections are reported alongside the generated orders.
    """

    code: str = "UNRESOLVED_SELECTION"

    def __init__(self, selections: Sequence[tuple[str, str]]):
        self.selections = list(selections)
        pairs = ", ".join(f"{p}->{s}" for p, s in self.selections)
        super().__init__(f"Selections without a priced quote: {pairs}")


class InvalidOrderStatusError(OrderError):
    """Order cannot move from its current status to the requested one."""

    code: str = "INVALID_ORDER_STATUS"

    def __init__(self, order_id: str, current_status: str, requested_status: str):
        self.order_id = order_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Order {order_id} cannot move from {current_status} "
            f"to {requested_status}"
        )


# Inventory


class InventoryError(ProcureChefError):
    """Base exception for inventory errors."""

    code: str = "INVENTORY_ERROR"


class InvalidStockQuantityError(InventoryError):
    """Stock count or received quantity is negative."""

    code: str = "INVALID_STOCK_QUANTITY"

    def __init__(self, product_id: str, quantity: object):
        self.product_id = product_id
        self.quantity = str(quantity)
        super().__init__(
            f"Invalid stock quantity {quantity} for product {product_id}"
        )
