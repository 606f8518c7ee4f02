"""
Tests for the fallback pricing model.
"""
from decimal import Decimal

import pytest

from shipping_rates.core.exceptions import InternalComputationError
from shipping_rates.modules.shipping.fallback_pricing import (
    EXPRESS_TIER,
    STANDARD_TIER,
    FallbackPricingModel,
    PricingTier,
    round2,
)


def _by_code(quotes):
    return {q.service_code: q for q in quotes}


class TestFallbackPricing:

    def setup_method(self):
        self.model = FallbackPricingModel()

    def test_returns_standard_and_express(self):
        quotes = self.model.price(100, 1)
        assert len(quotes) == 2
        assert {q.service_name for q in quotes} == {"PAC", "SEDEX"}

    def test_short_same_region_quote(self):
        quotes = _by_code(self.model.price(100, 1))

        standard = quotes[STANDARD_TIER.service_code]
        assert standard.price == Decimal("26.00")
        assert standard.eta_days == 3

        express = quotes[EXPRESS_TIER.service_code]
        assert express.price == Decimal("41.00")
        assert express.eta_days == 1

    def test_long_cross_region_quote(self):
        quotes = _by_code(self.model.price(1200, 2))

        standard = quotes[STANDARD_TIER.service_code]
        assert standard.price == Decimal("116.50")
        assert standard.eta_days == 10

        express = quotes[EXPRESS_TIER.service_code]
        assert express.price == Decimal("177.00")
        assert express.eta_days == 5

    def test_zero_distance_is_allowed(self):
        quotes = _by_code(self.model.price(0, 1))
        assert quotes[STANDARD_TIER.service_code].price == Decimal("18.00")
        assert quotes[STANDARD_TIER.service_code].eta_days == 3

    def test_express_never_cheaper_or_slower(self):
        for distance in (0, 50, 200, 201, 499, 500, 1000, 1001, 1999):
            for weight in (0.1, 1, 2.5, 30):
                quotes = _by_code(self.model.price(distance, weight))
                standard = quotes[STANDARD_TIER.service_code]
                express = quotes[EXPRESS_TIER.service_code]
                assert express.price >= standard.price
                assert express.eta_days <= standard.eta_days

    @pytest.mark.parametrize("tier", [STANDARD_TIER, EXPRESS_TIER], ids=["standard", "express"])
    def test_price_strictly_increases_with_distance(self, tier):
        prices = [
            _by_code(self.model.price(distance, 1))[tier.service_code].price
            for distance in range(0, 2000, 97)
        ]
        assert all(later > earlier for earlier, later in zip(prices, prices[1:]))

    @pytest.mark.parametrize("tier", [STANDARD_TIER, EXPRESS_TIER], ids=["standard", "express"])
    def test_price_strictly_increases_with_weight(self, tier):
        for distance in (60, 300, 1500):
            prices = [
                _by_code(self.model.price(distance, weight))[tier.service_code].price
                for weight in (0.1, 0.5, 1, 5, 10, 30)
            ]
            assert all(later > earlier for earlier, later in zip(prices, prices[1:]))

    @pytest.mark.parametrize(
        "distance,standard_days,express_days",
        [(200, 3, 1), (201, 5, 2), (500, 5, 2), (501, 7, 3), (1000, 7, 3), (1001, 10, 5)],
    )
    def test_eta_band_boundaries(self, distance, standard_days, express_days):
        quotes = _by_code(self.model.price(distance, 1))
        assert quotes[STANDARD_TIER.service_code].eta_days == standard_days
        assert quotes[EXPRESS_TIER.service_code].eta_days == express_days

    def test_rounds_half_up_to_cents(self):
        # 15.50 + 0.002 * 2.50 = 15.505, 25.00 + 0.002 * 4.00 = 25.008
        quotes = _by_code(self.model.price(0, 0.002))
        assert quotes[STANDARD_TIER.service_code].price == Decimal("15.51")
        assert quotes[EXPRESS_TIER.service_code].price == Decimal("25.01")

    def test_prices_have_two_decimal_places(self):
        for quote in self.model.price(333, 1.234):
            assert quote.price == quote.price.quantize(Decimal("0.01"))

    @pytest.mark.parametrize("weight", [0, -1, -0.5])
    def test_rejects_non_positive_weight(self, weight):
        with pytest.raises(InternalComputationError):
            self.model.price(100, weight)

    def test_rejects_negative_distance(self):
        with pytest.raises(InternalComputationError):
            self.model.price(-1, 1)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "100", None, True])
    def test_rejects_non_numeric_distance(self, value):
        with pytest.raises(InternalComputationError):
            self.model.price(value, 1)

    def test_custom_tiers(self):
        economy = PricingTier(
            service_code="ECO",
            service_name="Economy",
            base_price=Decimal("5.00"),
            price_per_km=Decimal("0.01"),
            price_per_kg=Decimal("1.00"),
            eta_bands=((100, 4),),
            max_eta_days=12,
        )
        quotes = FallbackPricingModel(tiers=[economy]).price(150, 2)
        assert len(quotes) == 1
        assert quotes[0].price == Decimal("8.50")
        assert quotes[0].eta_days == 12


def test_round2_half_up():
    assert round2(Decimal("1.005")) == Decimal("1.01")
    assert round2(Decimal("1.004")) == Decimal("1.00")
    assert round2(Decimal("2.675")) == Decimal("2.68")
