# backend-services/stock-price-service/tests/conftest.py
"""
Pytest configuration and shared fixtures for stock-price-service tests
Centralizes the test client, the in-memory like store and quote stubs
"""

import os
import sys
from typing import Dict, Optional

import pytest

# Ensure the service and shared modules are in the python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

# The app configures logging at import time; keep the file handler out of /app
os.environ.setdefault("LOG_DIR", os.path.join(os.path.dirname(__file__), ".logs"))


def pytest_configure(config):
    """Register custom markers to avoid warnings."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated, no containers).")
    config.addinivalue_line(
        "markers",
        "integration: Integration tests (may need a running MongoDB).",
    )


def pytest_collection_modifyitems(config, items):
    # auto-tag tests by folder so `-m unit|integration` works consistently
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
        elif f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)

# -------------------------------------------------------------------
# Environment helpers
# -------------------------------------------------------------------

@pytest.fixture(autouse=True)
def ensure_test_env(monkeypatch):
    """Standardize DB env for tests."""
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("TEST_DB_NAME", "test_stock_price_checker")
    monkeypatch.setenv("LIKE_STORE", "memory")
    yield

# -------------------------------------------------------------------
# Quote stubs
# -------------------------------------------------------------------

@pytest.fixture
def quote_prices() -> Dict[str, Optional[float]]:
    """Symbol -> price served by `stub_fetch`; None simulates an upstream failure."""
    return {"GOOG": 786.9, "MSFT": 62.3, "AAPL": 150.25}


@pytest.fixture
def stub_fetch(quote_prices):
    from shared.contracts import QuoteResult

    calls = []

    def _fetch(symbol: str) -> QuoteResult:
        calls.append(symbol)
        return QuoteResult(symbol=symbol, price=quote_prices.get(symbol))

    _fetch.calls = calls
    return _fetch

# -------------------------------------------------------------------
# Store and Flask fixtures
# -------------------------------------------------------------------

@pytest.fixture
def memory_store():
    from database.like_store import InMemoryLikeStore
    return InMemoryLikeStore()


@pytest.fixture(scope="session")
def app():
    from app import app as flask_app
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture
def client(app, memory_store, stub_fetch, monkeypatch):
    """Test client wired to a fresh in-memory store and the stub quote source."""
    from services import stock_likes_service
    monkeypatch.setitem(app.config, "LIKE_STORE", memory_store)
    monkeypatch.setattr(stock_likes_service, "fetch_quote", stub_fetch)
    return app.test_client()
