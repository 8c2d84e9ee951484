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
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
os.environ.setdefault("DEFAULT_CURRENCY", "JPY")
os.environ.setdefault("SUPPORTED_CURRENCIES", "JPY,USD,EUR")
os.environ.setdefault("CLIENT_URL", "https://shop.example.com")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "correct-horse-battery-staple")
os.environ.setdefault("RESEND_API_KEY", "")


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    # Clear the cache to ensure fresh settings
    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    # Clean up cache after tests
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> Generator[None, None, None]:
    """Start every test with an empty rate limiter."""
    from src.core.rate_limiter import get_rate_limiter

    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    The application's database handle opens this mock instead of a real
    client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    # Configure default mock responses
    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.create_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def mock_stripe() -> MagicMock:
    """Provide a mocked Stripe module for the payment provider."""
    return MagicMock()


@pytest.fixture
def client(mock_supabase_client: MagicMock, mock_stripe: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Runs the lifespan (so the database handle is open) and swaps the
    payment provider for one backed by `mock_stripe`.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.
        mock_stripe: Mocked Stripe module fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.api.deps import get_payment_provider
    from src.main import app
    from src.services.payment_provider import StripePaymentProvider

    app.dependency_overrides[get_payment_provider] = lambda: StripePaymentProvider(stripe_module=mock_stripe)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token() -> str:
    """A valid env-admin access token."""
    from src.api.middleware.auth import create_access_token

    return create_access_token(role="admin", email="admin@example.com")


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    """Authorization headers for the env admin."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def customer_headers() -> dict[str, str]:
    """Authorization headers for an ordinary signed-in customer."""
    from src.api.middleware.auth import create_access_token

    token = create_access_token(role="customer", sub="user-123", email="buyer@example.com")
    return {"Authorization": f"Bearer {token}"}

