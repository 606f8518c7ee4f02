"""
Shipping API Routes

Provides endpoints for:
- Postal code lookup (address for a CEP)
- Rate quoting (delivery options between two CEPs)

Domain errors are turned into HTTP responses by the handlers registered in
main.py: 400 invalid code / package, 404 unknown code, 502 directory down.
Provider outages never surface here; the service falls back instead.
"""
import logging

from fastapi import APIRouter, Depends, Request

from shipping_rates.api.deps import get_shipping_service
from shipping_rates.core.config import settings
from shipping_rates.core.rate_limit import limiter
from shipping_rates.schemas.shipping import (
    ErrorResponse,
    PostalAddressResponse,
    RateQuoteResponse,
    RateRequest,
)
from shipping_rates.services.shipping_service import ShippingRateService, build_package

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Shipping"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid postal code or package"},
    404: {"model": ErrorResponse, "description": "Postal code not found"},
    502: {"model": ErrorResponse, "description": "Postal code directory unavailable"},
}


# ==================== Postal Code Endpoints ====================


@router.get(
    "/postal-code/{code}",
    response_model=PostalAddressResponse,
    responses=ERROR_RESPONSES,
)
@limiter.limit(settings.RATE_LIMIT_SHIPPING)
async def get_postal_code(
    request: Request,
    code: str,
    shipping_service: ShippingRateService = Depends(get_shipping_service),
):
    """Resolve a postal code (with or without hyphen) to an address."""
    address = await shipping_service.lookup_address(code)
    return PostalAddressResponse.from_address(address)


# ==================== Rate Endpoints ====================


@router.post(
    "/shipping/rates",
    response_model=RateQuoteResponse,
    responses=ERROR_RESPONSES,
)
@limiter.limit(settings.RATE_LIMIT_SHIPPING)
async def calculate_shipping_rates(
    request: Request,
    rate_request: RateRequest,
    shipping_service: ShippingRateService = Depends(get_shipping_service),
):
    """
    Get delivery options between two postal codes, cheapest first.

    Package fields are optional and default to 1000 g and 20x20x20 cm.
    """
    package = build_package(
        weight_grams=rate_request.weightGrams,
        length_cm=rate_request.lengthCm,
        height_cm=rate_request.heightCm,
        width_cm=rate_request.widthCm,
    )

    result = await shipping_service.calculate_rates(
        rate_request.originCode,
        rate_request.destinationCode,
        package,
    )
    return RateQuoteResponse.from_result(result)
