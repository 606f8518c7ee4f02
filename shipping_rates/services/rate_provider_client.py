"""
Rate Quote Provider Client

Calls a Frete Click compatible quoting API:

    POST {base}/frete
    {cep_origem, cep_destino, peso (kg), comprimento, altura, largura, valor_declarado}

    -> {"success": true, "data": {"services": [{"id", "name", "price", "delivery_time", ...}]}}

The rest of the system works in grams; the provider expects kilograms, so the
weight is converted here and only here.

Any non-2xx response, transport error, timeout, success=false, empty service
list or a list with no usable entries raises ProviderUnavailableError. The
orchestrator always recovers from it.
"""
import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from shipping_rates.core.config import settings
from shipping_rates.core.exceptions import ProviderUnavailableError
from shipping_rates.modules.shipping.fallback_pricing import round2
from shipping_rates.modules.shipping.models import PackageSpec, PostalAddress, ServiceQuote

logger = logging.getLogger(__name__)

QUOTE_PATH = "/frete"


class RateQuoteProvider:
    """
    Stateless provider client, safe to share across concurrent requests.

    Holds only configuration and an injected httpx.AsyncClient.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        declared_value: Optional[float] = None,
    ):
        self._http_client = http_client
        self.base_url = (base_url or settings.RATE_PROVIDER_API_BASE).rstrip("/")
        self.timeout = timeout or settings.RATE_PROVIDER_TIMEOUT_SECONDS
        self.declared_value = (
            declared_value if declared_value is not None else settings.RATE_PROVIDER_DECLARED_VALUE
        )

    def build_payload(
        self,
        origin: PostalAddress,
        destination: PostalAddress,
        package: PackageSpec,
    ) -> Dict[str, Any]:
        """Provider request body. Weight is sent in kilograms."""
        return {
            "cep_origem": origin.code,
            "cep_destino": destination.code,
            "peso": package.weight_kg,
            "comprimento": package.length_cm,
            "altura": package.height_cm,
            "largura": package.width_cm,
            "valor_declarado": self.declared_value,
        }

    async def quote(
        self,
        origin: PostalAddress,
        destination: PostalAddress,
        package: PackageSpec,
    ) -> List[ServiceQuote]:
        """
        Request quotes for a package between two resolved addresses.

        Returns:
            Non-empty list of normalized ServiceQuote

        Raises:
            ProviderUnavailableError: on any failure or unusable answer
        """
        url = f"{self.base_url}{QUOTE_PATH}"
        payload = self.build_payload(origin, destination, package)

        try:
            response = await self._http_client.post(
                url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(
                f"Rate provider timed out after {self.timeout}s",
                reason="timeout",
            ) from e
        except httpx.RequestError as e:
            raise ProviderUnavailableError(
                f"Network error calling rate provider: {e}",
                reason="network_error",
            ) from e

        logger.debug(f"Rate provider POST {QUOTE_PATH} -> {response.status_code}")

        if not response.is_success:
            raise ProviderUnavailableError(
                f"Rate provider returned HTTP {response.status_code}",
                reason="http_error",
                details={"status": response.status_code, "body": response.text[:200]},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(
                "Rate provider returned invalid JSON",
                reason="invalid_response",
            ) from e

        return parse_services(data)


def parse_services(data: Any) -> List[ServiceQuote]:
    """
    Normalize a provider answer into ServiceQuote values.

    Entries missing a name, a non-negative price or an ETA of at least one
    day are dropped. Raises ProviderUnavailableError when nothing usable is
    left.
    """
    if not isinstance(data, dict):
        raise ProviderUnavailableError("Unexpected provider payload", reason="invalid_response")

    if not data.get("success"):
        raise ProviderUnavailableError(
            f"Rate provider reported failure: {data.get('error') or 'unknown error'}",
            reason="provider_error",
        )

    body = data.get("data")
    services = body.get("services") if isinstance(body, dict) else None
    if not isinstance(services, list) or not services:
        raise ProviderUnavailableError("Rate provider returned no services", reason="empty_response")

    quotes = []
    for raw in services:
        quote = _to_service_quote(raw)
        if quote is None:
            logger.warning(f"Skipping malformed provider service entry: {str(raw)[:200]}")
            continue
        quotes.append(quote)

    if not quotes:
        raise ProviderUnavailableError(
            "Rate provider returned no usable services",
            reason="invalid_response",
        )
    return quotes


def _to_service_quote(raw: Any) -> Optional[ServiceQuote]:
    if not isinstance(raw, dict):
        return None

    service_id = raw.get("id")
    name = raw.get("name")
    if service_id is None or not name:
        return None

    price = _to_price(raw.get("price"))
    eta_days = _to_eta(raw.get("delivery_time"))
    if price is None or eta_days is None:
        return None

    return ServiceQuote(
        service_code=str(service_id),
        service_name=str(name),
        price=price,
        eta_days=eta_days,
    )


def _to_price(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return round2(price)


def _to_eta(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        days = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(days) or days < 1:
        return None
    return int(math.ceil(days))
