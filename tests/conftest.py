"""
Pytest fixtures for the ProcureChef test suite.

Provides:
- In-memory SQLite database sessions (fresh schema per test)
- Deterministic clock
- Structured log capture
- Catalogue / request / quote builders for service tests
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from procurechef_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from procurechef_kernel.domain.clock import DeterministicClock
from procurechef_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from procurechef_modules.procurement.orm import (
    ProductModel,
    RequestItemModel,
    RequestModel,
    SupplierModel,
    SupplierProductModel,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture procurechef logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.generate_orders(comparisons)
            logs = captured_logs()
            assert any(r["message"] == "procurement_orders_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("procurechef")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """A session on a fresh in-memory database with every table created."""
    init_engine_from_url("sqlite://")
    create_tables()
    sess = get_session()
    yield sess
    sess.close()
    reset_engine()


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Data builders
# =============================================================================


@pytest.fixture
def catalogue(session):
    """
    Two products and three suppliers.

    Returns a dict of the created ids keyed by short name.
    """
    tomatoes = ProductModel(id="p-tomato", name="Tomatoes", category="Produce", default_unit="kg")
    flour = ProductModel(id="p-flour", name="Flour", category="Dry goods", default_unit="kg")
    fresh = SupplierModel(id="s-fresh", name="FreshCo", email="orders@fresh.example")
    farm = SupplierModel(id="s-farm", name="FarmDirect")
    mill = SupplierModel(id="s-mill", name="MillWorks")
    session.add_all([tomatoes, flour, fresh, farm, mill])
    session.add(SupplierProductModel(
        supplier_id="s-mill",
        product_id="p-flour",
        supplier_product_code="MW-FL25",
        minimum_order_quantity=Decimal("25"),
        package_unit="sack",
        package_unit_size=Decimal("25"),
        package_unit_price=Decimal("40.00"),
    ))
    session.commit()
    return {
        "tomatoes": "p-tomato",
        "flour": "p-flour",
        "fresh": "s-fresh",
        "farm": "s-farm",
        "mill": "s-mill",
    }


@pytest.fixture
def make_request(session):
    """Factory: persist a request with ``(product_id, name, quantity, unit)`` lines."""

    def _make(request_id: str, lines, title: str = "Weekly order") -> str:
        request = RequestModel(id=request_id, title=title)
        for product_id, name, quantity, unit in lines:
            request.items.append(RequestItemModel(
                product_id=product_id,
                product_name=name,
                quantity=Decimal(str(quantity)),
                unit=unit,
            ))
        session.add(request)
        session.commit()
        return request_id

    return _make
