"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("APPROVAL_DELAY_SECONDS", "0")


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from storefront.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def customer_form() -> dict[str, str]:
    """Raw checkout form fields as the storefront client sends them."""
    return {
        "fullName": "Jane O'Neil",
        "email": "Jane.ONeil@Example.com",
        "phone": "(123) 456-7890",
        "address": "123 Market Street",
        "city": "San Francisco",
        "state": "ca",
        "zipCode": "94103",
        "cardNumber": "4532 0151 1283 0366",
        "expiryDate": "12/99",
        "cvv": "123",
    }


@pytest.fixture
def product_snapshot() -> dict[str, Any]:
    """Product snapshot for two Premium T-Shirts."""
    return {
        "name": "Premium T-Shirt",
        "price": 29.99,
        "variant": {"color": "Black", "size": "M"},
        "quantity": 2,
    }


@pytest.fixture
def order_row(product_snapshot: dict[str, Any]) -> dict[str, Any]:
    """An orders table row as Supabase returns it."""
    return {
        "id": "660e8400-e29b-41d4-a716-446655440000",
        "order_id": "ORD-1718000000000-ABC123XYZ",
        "product": product_snapshot,
        "customer": {
            "fullName": "Jane O'Neil",
            "email": "jane.oneil@example.com",
            "phone": "1234567890",
            "address": "123 Market Street",
            "city": "San Francisco",
            "state": "CA",
            "zipCode": "94103",
        },
        "payment": {"cardNumber": "0366", "status": "approved"},
        "total": 59.98,
        "created_at": "2024-06-15T12:00:00+00:00",
    }


@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """Provide a mocked Supabase client.

    Returns:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )
    return mock_client


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    """Provide a mocked notification dispatcher."""
    return MagicMock()


@pytest.fixture
def client(
    mock_supabase_client: MagicMock, mock_dispatcher: MagicMock
) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    The lifespan builds its store client from ``create_supabase_client``,
    which is patched to return the mocked client.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.
        mock_dispatcher: Mocked notification dispatcher fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from storefront.main import app
    from storefront.services.notification_service import get_notification_dispatcher

    app.dependency_overrides[get_notification_dispatcher] = lambda: mock_dispatcher
    with patch("storefront.main.create_supabase_client", return_value=mock_supabase_client):
        with TestClient(app) as test_client:
            yield test_client
    app.dependency_overrides.clear()
