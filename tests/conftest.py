"""
Pytest configuration and fixtures for the shipping rate service tests.
"""
import os
from decimal import Decimal
from typing import Callable
from unittest.mock import AsyncMock

import httpx
import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_PROVIDER_ENABLED"] = "true"

from shipping_rates.core.monitoring import metrics  # noqa: E402
from shipping_rates.modules.shipping.models import PostalAddress, ServiceQuote  # noqa: E402

POSTAL_BASE = "https://postal.test/ws"
PROVIDER_BASE = "https://provider.test/api"


@pytest.fixture
def anyio_backend():
    """Run anyio-marked tests on asyncio, the loop the service targets."""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are process-global; start every test from zero."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def sao_paulo() -> PostalAddress:
    return PostalAddress(
        code="01001000",
        street="Praça da Sé",
        neighborhood="Sé",
        city="São Paulo",
        region="SP",
    )


@pytest.fixture
def campinas() -> PostalAddress:
    return PostalAddress(
        code="13010100",
        street="Rua Barão de Jaguara",
        neighborhood="Centro",
        city="Campinas",
        region="SP",
    )


@pytest.fixture
def rio() -> PostalAddress:
    return PostalAddress(
        code="20040020",
        street="Avenida Rio Branco",
        neighborhood="Centro",
        city="Rio de Janeiro",
        region="RJ",
    )


@pytest.fixture
def mock_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an AsyncClient answering through httpx.MockTransport."""

    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def mock_resolver(sao_paulo, rio) -> AsyncMock:
    """Resolver mock answering the two fixture addresses by code."""
    addresses = {sao_paulo.code: sao_paulo, rio.code: rio}

    async def resolve(code):
        return addresses[code.replace("-", "")]

    resolver = AsyncMock()
    resolver.resolve = AsyncMock(side_effect=resolve)
    return resolver


@pytest.fixture
def provider_services():
    return [
        ServiceQuote(service_code="2", service_name="SEDEX", price=Decimal("48.90"), eta_days=2),
        ServiceQuote(service_code="1", service_name="PAC", price=Decimal("22.35"), eta_days=6),
        ServiceQuote(service_code="3", service_name="Jadlog", price=Decimal("22.35"), eta_days=4),
    ]


@pytest.fixture
def mock_provider(provider_services) -> AsyncMock:
    provider = AsyncMock()
    provider.quote = AsyncMock(return_value=list(provider_services))
    return provider
