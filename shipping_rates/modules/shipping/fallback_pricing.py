"""
Fallback Pricing Model

Linear price and banded ETA per service tier, used whenever the external
rate provider can't answer:

    price = round2(base + distance_km * per_km + weight_kg * per_kg)

round2 rounds half-up to cents. The tier constants below are business
assumptions kept as data so they can be revised without touching the
algorithm. Express constants are all >= the standard ones and its ETA bands
are all <= standard's, so express is never cheaper nor slower.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple

from shipping_rates.core.exceptions import InternalComputationError
from shipping_rates.modules.shipping.models import ServiceQuote

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PricingTier:
    """Pricing constants for one service tier."""
    service_code: str
    service_name: str
    base_price: Decimal
    price_per_km: Decimal
    price_per_kg: Decimal
    # (max distance km inclusive, eta days), ascending by distance
    eta_bands: Tuple[Tuple[int, int], ...]
    max_eta_days: int

    def price_for(self, distance_km: Decimal, weight_kg: Decimal) -> Decimal:
        raw = self.base_price + distance_km * self.price_per_km + weight_kg * self.price_per_kg
        return round2(raw)

    def eta_for(self, distance_km: Decimal) -> int:
        for limit_km, days in self.eta_bands:
            if distance_km <= limit_km:
                return days
        return self.max_eta_days


# Correios PAC
STANDARD_TIER = PricingTier(
    service_code="04510",
    service_name="PAC",
    base_price=Decimal("15.50"),
    price_per_km=Decimal("0.08"),
    price_per_kg=Decimal("2.50"),
    eta_bands=((200, 3), (500, 5), (1000, 7)),
    max_eta_days=10,
)

# Correios SEDEX
EXPRESS_TIER = PricingTier(
    service_code="04014",
    service_name="SEDEX",
    base_price=Decimal("25.00"),
    price_per_km=Decimal("0.12"),
    price_per_kg=Decimal("4.00"),
    eta_bands=((200, 1), (500, 2), (1000, 3)),
    max_eta_days=5,
)

DEFAULT_TIERS = (STANDARD_TIER, EXPRESS_TIER)


def round2(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _as_decimal(value, name: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InternalComputationError(
            f"{name} must be a number",
            details={name: repr(value)},
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise InternalComputationError(
            f"{name} must be finite",
            details={name: value},
        )
    # str() keeps float inputs such as 0.3 exact
    result = value if isinstance(value, Decimal) else Decimal(str(value))
    if not result.is_finite():
        raise InternalComputationError(f"{name} must be finite", details={name: str(value)})
    return result


class FallbackPricingModel:
    """Computes the standard and express quotes for a distance and weight."""

    def __init__(self, tiers: Optional[Sequence[PricingTier]] = None):
        self.tiers = tuple(tiers) if tiers else DEFAULT_TIERS

    def price(self, distance_km, weight_kg) -> List[ServiceQuote]:
        """
        Price every tier.

        Raises:
            InternalComputationError: distance is negative or weight is not
                strictly positive
        """
        distance = _as_decimal(distance_km, "distance_km")
        weight = _as_decimal(weight_kg, "weight_kg")

        if distance < 0:
            raise InternalComputationError(
                "distance_km must not be negative",
                details={"distance_km": str(distance)},
            )
        if weight <= 0:
            raise InternalComputationError(
                "weight_kg must be greater than zero",
                details={"weight_kg": str(weight)},
            )

        quotes = [
            ServiceQuote(
                service_code=tier.service_code,
                service_name=tier.service_name,
                price=tier.price_for(distance, weight),
                eta_days=tier.eta_for(distance),
            )
            for tier in self.tiers
        ]

        logger.debug(
            f"Fallback pricing for {distance} km / {weight} kg: "
            + ", ".join(f"{q.service_name} R$ {q.price} ({q.eta_days}d)" for q in quotes)
        )
        return quotes
