"""
Shipping Data Classes

Carrier-agnostic value objects shared by the resolver, the provider client,
the fallback model and the orchestrator. All of them are created per request
and never mutated after construction.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Tuple, Union

GRAMS_PER_KILOGRAM = 1000


@dataclass(frozen=True)
class PostalAddress:
    """Resolved address for a postal code. `code` is always 8 raw digits."""
    code: str
    street: str
    neighborhood: str
    city: str
    region: str


@dataclass(frozen=True)
class PackageSpec:
    """Package weight (grams) and dimensions (centimeters)."""
    weight_grams: float
    length_cm: float
    height_cm: float
    width_cm: float

    @property
    def weight_kg(self) -> float:
        return self.weight_grams / GRAMS_PER_KILOGRAM

    def invalid_fields(self) -> List[str]:
        """Names of fields that are not strictly positive numbers."""
        invalid = []
        for name in ("weight_grams", "length_cm", "height_cm", "width_cm"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)) or not value > 0:
                invalid.append(name)
        return invalid


@dataclass(frozen=True)
class ServiceQuote:
    """One delivery option: price in BRL, ETA in days."""
    service_code: str
    service_name: str
    price: Decimal
    eta_days: int


@dataclass(frozen=True)
class RateQuoteResult:
    """Normalized answer returned to callers. `services` is never empty."""
    origin_code: str
    destination_code: str
    services: Tuple[ServiceQuote, ...]

    def to_dict(self) -> dict:
        return {
            "originCode": self.origin_code,
            "destinationCode": self.destination_code,
            "services": [
                {
                    "serviceCode": s.service_code,
                    "serviceName": s.service_name,
                    "price": float(s.price),
                    "etaDays": s.eta_days,
                }
                for s in self.services
            ],
        }


# =============================================================================
# Internal quote outcome (tagged result)
# =============================================================================

class QuoteSource(str, Enum):
    PROVIDER = "provider"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ProviderQuote:
    """Quotes returned by the external provider."""
    services: Tuple[ServiceQuote, ...]
    source: QuoteSource = field(default=QuoteSource.PROVIDER, init=False)


@dataclass(frozen=True)
class FallbackQuote:
    """Quotes computed offline after a provider failure."""
    services: Tuple[ServiceQuote, ...]
    distance_km: int
    failure_reason: str
    source: QuoteSource = field(default=QuoteSource.FALLBACK, init=False)


QuoteOutcome = Union[ProviderQuote, FallbackQuote]


def rank_services(services: List[ServiceQuote]) -> Tuple[ServiceQuote, ...]:
    """Order services by price, then by ETA. Sort is stable."""
    return tuple(sorted(services, key=lambda s: (s.price, s.eta_days)))
