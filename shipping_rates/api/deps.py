"""
API dependencies
"""
from fastapi import HTTPException, Request, status

from shipping_rates.services.shipping_service import ShippingRateService


def get_shipping_service(request: Request) -> ShippingRateService:
    """Shipping rate service built during application startup."""
    service = getattr(request.app.state, "shipping_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shipping service not initialized",
        )
    return service
