"""
Shipping domain: value objects and the offline pricing components.

Nothing in this package performs I/O.
"""
from shipping_rates.modules.shipping.models import (
    PostalAddress,
    PackageSpec,
    ServiceQuote,
    RateQuoteResult,
)
from shipping_rates.modules.shipping.distance import DeterministicDistanceEstimator
from shipping_rates.modules.shipping.fallback_pricing import FallbackPricingModel, PricingTier
