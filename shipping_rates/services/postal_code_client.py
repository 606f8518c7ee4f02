"""
Postal Code Directory Client

Resolves a Brazilian postal code (CEP) to a structured address using a
ViaCEP-compatible directory:

    GET {base}/{8 digits}/json

A body with an "erro" key means the code is well formed but unknown.

Error contract:
- InvalidPostalCodeError: code doesn't normalize to 8 digits (no network call)
- PostalCodeNotFoundError: directory has no match
- PostalCodeLookupError: transport failure, timeout or unusable response

No retries are done here; that belongs to the caller.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from shipping_rates.core.config import settings
from shipping_rates.core.exceptions import (
    InvalidPostalCodeError,
    PostalCodeLookupError,
    PostalCodeNotFoundError,
)
from shipping_rates.core.postal_code import is_valid_postal_code, normalize_postal_code
from shipping_rates.modules.shipping.models import PostalAddress

logger = logging.getLogger(__name__)


class PostalCodeResolver:
    """
    Stateless directory client.

    The HTTP client is injected so the application can share one connection
    pool and tests can swap in an httpx.MockTransport.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._http_client = http_client
        self.base_url = (base_url or settings.POSTAL_CODE_API_BASE).rstrip("/")
        self.timeout = timeout or settings.POSTAL_CODE_TIMEOUT_SECONDS

    async def resolve(self, code: str) -> PostalAddress:
        """
        Resolve a postal code to an address.

        Args:
            code: Postal code, with or without the hyphen

        Returns:
            PostalAddress with the normalized 8-digit code
        """
        if not is_valid_postal_code(code):
            raise InvalidPostalCodeError(details={"postal_code": code})

        digits = normalize_postal_code(code)
        url = f"{self.base_url}/{digits}/json"

        try:
            response = await self._http_client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            logger.error(f"Postal code lookup timed out for {digits}: {e}")
            raise PostalCodeLookupError(
                details={"postal_code": digits, "reason": "timeout"},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Postal code lookup request failed for {digits}: {e}")
            raise PostalCodeLookupError(
                details={"postal_code": digits, "reason": "network_error"},
            ) from e

        logger.debug(f"Postal directory GET {url} -> {response.status_code}")

        if response.status_code == 404:
            raise PostalCodeNotFoundError(details={"postal_code": digits})

        if response.status_code != 200:
            logger.error(
                f"Postal directory error for {digits}: {response.status_code} - {response.text[:200]}"
            )
            raise PostalCodeLookupError(
                details={"postal_code": digits, "status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Postal directory returned invalid JSON for {digits}")
            raise PostalCodeLookupError(
                details={"postal_code": digits, "reason": "invalid_json"},
            ) from e

        if not isinstance(data, dict):
            raise PostalCodeLookupError(
                details={"postal_code": digits, "reason": "unexpected_payload"},
            )

        if _is_not_found(data):
            logger.info(f"Postal code {digits} not found in directory")
            raise PostalCodeNotFoundError(details={"postal_code": digits})

        address = _to_address(digits, data)
        logger.info(f"Resolved postal code {digits}: {address.city} - {address.region}")
        return address


def _is_not_found(data: Dict[str, Any]) -> bool:
    # ViaCEP answers {"erro": true} (older deployments: {"erro": "true"})
    erro = data.get("erro")
    if erro is None:
        return False
    if isinstance(erro, str):
        return erro.strip().lower() in ("true", "1")
    return bool(erro)


def _to_address(digits: str, data: Dict[str, Any]) -> PostalAddress:
    region = str(data.get("uf") or "").strip()
    if not region:
        raise PostalCodeLookupError(
            details={"postal_code": digits, "reason": "missing_region"},
        )

    return PostalAddress(
        code=digits,
        street=str(data.get("logradouro") or ""),
        neighborhood=str(data.get("bairro") or ""),
        city=str(data.get("localidade") or ""),
        region=region,
    )
