"""
Shipping Rate Service

The only component callers invoke. Per request:

    resolve origin + destination (concurrently)
      -> any resolution error: request fails, provider is never called
    quote with the external provider (single attempt, bounded by a timeout)
      -> success: provider quotes
      -> any failure: deterministic distance estimate + fallback pricing

Callers get the same RateQuoteResult shape either way. Whether prices came
from the provider or the fallback is only logged and counted.
"""
import asyncio
import logging
import time
from typing import Optional, Tuple

from shipping_rates.core.config import settings
from shipping_rates.core.exceptions import (
    InternalComputationError,
    InvalidPostalCodeError,
    ProviderUnavailableError,
)
from shipping_rates.core.monitoring import (
    record_provider_duration,
    record_provider_failure,
    record_quote_source,
)
from shipping_rates.core.postal_code import is_valid_postal_code
from shipping_rates.modules.shipping.distance import DeterministicDistanceEstimator
from shipping_rates.modules.shipping.fallback_pricing import FallbackPricingModel
from shipping_rates.modules.shipping.models import (
    FallbackQuote,
    PackageSpec,
    PostalAddress,
    ProviderQuote,
    QuoteOutcome,
    RateQuoteResult,
    rank_services,
)
from shipping_rates.services.postal_code_client import PostalCodeResolver
from shipping_rates.services.rate_provider_client import RateQuoteProvider

logger = logging.getLogger(__name__)

# Package defaults applied when the caller omits a field
DEFAULT_WEIGHT_GRAMS = 1000
DEFAULT_LENGTH_CM = 20
DEFAULT_HEIGHT_CM = 20
DEFAULT_WIDTH_CM = 20


def build_package(
    weight_grams: Optional[float] = None,
    length_cm: Optional[float] = None,
    height_cm: Optional[float] = None,
    width_cm: Optional[float] = None,
) -> PackageSpec:
    """Build a PackageSpec, filling omitted fields with the defaults."""
    return PackageSpec(
        weight_grams=DEFAULT_WEIGHT_GRAMS if weight_grams is None else weight_grams,
        length_cm=DEFAULT_LENGTH_CM if length_cm is None else length_cm,
        height_cm=DEFAULT_HEIGHT_CM if height_cm is None else height_cm,
        width_cm=DEFAULT_WIDTH_CM if width_cm is None else width_cm,
    )


class ShippingRateService:
    """
    Orchestrates address resolution, provider quoting and the fallback path.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        resolver: PostalCodeResolver,
        provider: RateQuoteProvider,
        distance_estimator: Optional[DeterministicDistanceEstimator] = None,
        pricing_model: Optional[FallbackPricingModel] = None,
        provider_timeout: Optional[float] = None,
        provider_enabled: Optional[bool] = None,
    ):
        self.resolver = resolver
        self.provider = provider
        self.distance_estimator = distance_estimator or DeterministicDistanceEstimator()
        self.pricing_model = pricing_model or FallbackPricingModel()
        self.provider_timeout = provider_timeout or settings.RATE_PROVIDER_TIMEOUT_SECONDS
        self.provider_enabled = (
            settings.RATE_PROVIDER_ENABLED if provider_enabled is None else provider_enabled
        )

    # ==================== Address Lookup ====================

    async def lookup_address(self, code: str) -> PostalAddress:
        """Resolve a single postal code."""
        return await self.resolver.resolve(code)

    # ==================== Rate Quoting ====================

    async def calculate_rates(
        self,
        origin_code: str,
        destination_code: str,
        package: Optional[PackageSpec] = None,
    ) -> RateQuoteResult:
        """
        Quote every available service between two postal codes.

        Args:
            origin_code: Origin postal code (with or without hyphen)
            destination_code: Destination postal code
            package: Package weight and dimensions, defaults to 1000 g / 20x20x20 cm

        Returns:
            RateQuoteResult with at least one service

        Raises:
            InvalidPostalCodeError, PostalCodeNotFoundError, PostalCodeLookupError:
                address resolution failed (no fallback is possible)
            InternalComputationError: package values are out of contract
        """
        package = package or build_package()
        invalid_fields = package.invalid_fields()
        if invalid_fields:
            raise InternalComputationError(
                "Package weight and dimensions must be greater than zero",
                details={"fields": invalid_fields},
            )

        origin, destination = await self._resolve_addresses(origin_code, destination_code)
        outcome = await self._quote(origin, destination, package)

        record_quote_source(outcome.source.value)
        logger.info(
            f"Quoted {origin.code} -> {destination.code}: {len(outcome.services)} services "
            f"(source={outcome.source.value})"
        )

        return RateQuoteResult(
            origin_code=origin.code,
            destination_code=destination.code,
            services=outcome.services,
        )

    async def _resolve_addresses(
        self,
        origin_code: str,
        destination_code: str,
    ) -> Tuple[PostalAddress, PostalAddress]:
        """
        Resolve both codes concurrently.

        The first failure cancels the other lookup. When both fail the
        origin's error wins.
        """
        # Format errors must not leave a sibling lookup on the wire
        for code in (origin_code, destination_code):
            if not is_valid_postal_code(code):
                raise InvalidPostalCodeError(details={"postal_code": code})

        origin_task = asyncio.ensure_future(self.resolver.resolve(origin_code))
        destination_task = asyncio.ensure_future(self.resolver.resolve(destination_code))
        tasks = (origin_task, destination_task)

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        errors = [task.exception() for task in tasks if task in done]
        for error in errors:
            if error is not None:
                raise error

        return origin_task.result(), destination_task.result()

    async def _quote(
        self,
        origin: PostalAddress,
        destination: PostalAddress,
        package: PackageSpec,
    ) -> QuoteOutcome:
        """Single provider attempt; any failure switches to the fallback."""
        if not self.provider_enabled:
            return self._fallback(origin, destination, package, reason="disabled")

        started = time.perf_counter()
        try:
            services = await asyncio.wait_for(
                self.provider.quote(origin, destination, package),
                timeout=self.provider_timeout,
            )
        except asyncio.TimeoutError:
            reason = "timeout"
            logger.warning(
                f"Rate provider exceeded {self.provider_timeout}s budget for "
                f"{origin.code} -> {destination.code}"
            )
        except ProviderUnavailableError as e:
            reason = e.reason
            logger.warning(f"Rate provider unavailable ({reason}): {e.message}")
        except Exception as e:
            # Provider failures never reach the caller
            reason = "unexpected_error"
            logger.exception(f"Unexpected rate provider failure: {type(e).__name__}: {e}")
        else:
            if services:
                record_provider_duration(time.perf_counter() - started, "success")
                return ProviderQuote(services=rank_services(services))
            reason = "empty_response"
            logger.warning("Rate provider returned an empty service list")

        record_provider_duration(time.perf_counter() - started, "failure")
        record_provider_failure(reason)
        return self._fallback(origin, destination, package, reason=reason)

    def _fallback(
        self,
        origin: PostalAddress,
        destination: PostalAddress,
        package: PackageSpec,
        reason: str,
    ) -> FallbackQuote:
        distance_km = self.distance_estimator.estimate(origin, destination)
        services = self.pricing_model.price(distance_km, package.weight_kg)

        logger.warning(
            f"Using fallback pricing for {origin.code} ({origin.region}) -> "
            f"{destination.code} ({destination.region}): {distance_km} km, "
            f"{package.weight_kg} kg, reason={reason}"
        )
        return FallbackQuote(
            services=rank_services(services),
            distance_km=distance_km,
            failure_reason=reason,
        )
