"""
Shipping Schemas

Pydantic models for the postal code and shipping rate endpoints. Field names
are camelCase to match the storefront's JSON contract.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from shipping_rates.core.postal_code import format_postal_code
from shipping_rates.modules.shipping.models import PostalAddress, RateQuoteResult


# ==================== Postal Code Schemas ====================


class PostalAddressResponse(BaseModel):
    """Resolved address."""
    code: str = Field(..., description="8 raw digits")
    formattedCode: str = Field(..., description="DDDDD-DDD display form")
    street: str
    neighborhood: str
    city: str
    region: str

    @classmethod
    def from_address(cls, address: PostalAddress) -> "PostalAddressResponse":
        return cls(
            code=address.code,
            formattedCode=format_postal_code(address.code),
            street=address.street,
            neighborhood=address.neighborhood,
            city=address.city,
            region=address.region,
        )


# ==================== Rate Schemas ====================


class RateRequest(BaseModel):
    """Request shipping rates. Omitted dimensions use the service defaults."""
    originCode: str = Field(..., min_length=1, max_length=20)
    destinationCode: str = Field(..., min_length=1, max_length=20)
    weightGrams: Optional[float] = Field(None, gt=0, description="Package weight in grams")
    lengthCm: Optional[float] = Field(None, gt=0)
    heightCm: Optional[float] = Field(None, gt=0)
    widthCm: Optional[float] = Field(None, gt=0)


class ServiceQuoteResponse(BaseModel):
    """One delivery option."""
    serviceCode: str
    serviceName: str
    price: float = Field(..., ge=0)
    etaDays: int = Field(..., ge=1)


class RateQuoteResponse(BaseModel):
    """Rates for an origin/destination pair, cheapest first."""
    originCode: str
    destinationCode: str
    services: List[ServiceQuoteResponse]

    @classmethod
    def from_result(cls, result: RateQuoteResult) -> "RateQuoteResponse":
        return cls(**result.to_dict())


class ErrorResponse(BaseModel):
    """Error body returned by the service endpoints."""
    error: str
    code: Optional[str] = None
