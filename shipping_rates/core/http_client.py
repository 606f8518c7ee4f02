"""
Shared HTTP client for outbound calls

One httpx.AsyncClient is created per application (see main.lifespan) and
injected into the postal code resolver and the rate quote provider. Each
component applies its own per-request timeout on top of the client default.
No retries are performed at this layer.
"""
import logging
from typing import Dict, Optional

import httpx

from shipping_rates.core.config import settings

logger = logging.getLogger(__name__)

# Connection pool sizing for the shared client
MAX_CONNECTIONS = 100
MAX_KEEPALIVE_CONNECTIONS = 20


def create_http_client(
    timeout: Optional[float] = None,
    extra_headers: Optional[Dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build the shared async client with default headers and timeouts.

    Args:
        timeout: Default timeout in seconds (components override per request)
        extra_headers: Headers merged over the defaults
        transport: Optional transport, used by tests to mock responses
    """
    headers = {
        "User-Agent": settings.HTTP_USER_AGENT,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)

    default_timeout = timeout or max(
        settings.POSTAL_CODE_TIMEOUT_SECONDS,
        settings.RATE_PROVIDER_TIMEOUT_SECONDS,
    )

    logger.debug(f"Creating shared HTTP client (timeout={default_timeout}s)")
    return httpx.AsyncClient(
        timeout=httpx.Timeout(default_timeout),
        headers=headers,
        follow_redirects=True,
        limits=httpx.Limits(
            max_connections=MAX_CONNECTIONS,
            max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
        ),
        transport=transport,
    )
