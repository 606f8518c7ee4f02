"""
Tests for the rate quote provider client.
"""
import json
from decimal import Decimal

import httpx
import pytest

from shipping_rates.core.exceptions import ProviderUnavailableError
from shipping_rates.modules.shipping.models import PackageSpec
from shipping_rates.services.rate_provider_client import RateQuoteProvider, parse_services

BASE_URL = "https://provider.test/api"

PACKAGE = PackageSpec(weight_grams=1500, length_cm=30, height_cm=10, width_cm=20)

SUCCESS_PAYLOAD = {
    "success": True,
    "data": {
        "services": [
            {"id": 1, "name": "PAC", "price": 22.35, "company": "Correios", "delivery_time": 6},
            {"id": "2", "name": "SEDEX", "price": "48.9", "company": "Correios", "delivery_time": 2},
        ]
    },
}


def _provider(mock_http_client, handler) -> RateQuoteProvider:
    return RateQuoteProvider(
        mock_http_client(handler),
        base_url=BASE_URL,
        timeout=1.0,
        declared_value=100,
    )


class TestRateQuoteProvider:

    def test_build_payload_sends_kilograms(self, mock_http_client, sao_paulo, rio):
        provider = _provider(mock_http_client, lambda request: httpx.Response(200))
        payload = provider.build_payload(sao_paulo, rio, PACKAGE)

        assert payload == {
            "cep_origem": "01001000",
            "cep_destino": "20040020",
            "peso": 1.5,
            "comprimento": 30,
            "altura": 10,
            "largura": 20,
            "valor_declarado": 100,
        }

    @pytest.mark.asyncio
    async def test_quote_success(self, mock_http_client, sao_paulo, rio):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=SUCCESS_PAYLOAD)

        quotes = await _provider(mock_http_client, handler).quote(sao_paulo, rio, PACKAGE)

        assert [q.service_name for q in quotes] == ["PAC", "SEDEX"]
        assert quotes[0].service_code == "1"
        assert quotes[0].price == Decimal("22.35")
        assert quotes[0].eta_days == 6
        assert quotes[1].price == Decimal("48.90")

        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert str(requests[0].url) == f"{BASE_URL}/frete"
        body = json.loads(requests[0].content)
        assert body["peso"] == 1.5
        assert body["cep_origem"] == "01001000"

    @pytest.mark.asyncio
    async def test_timeout_raises_unavailable(self, mock_http_client, sao_paulo, rio):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _provider(mock_http_client, handler).quote(sao_paulo, rio, PACKAGE)

        assert exc_info.value.reason == "timeout"

    @pytest.mark.asyncio
    async def test_network_error_raises_unavailable(self, mock_http_client, sao_paulo, rio):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _provider(mock_http_client, handler).quote(sao_paulo, rio, PACKAGE)

        assert exc_info.value.reason == "network_error"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 500, 503])
    async def test_non_success_status_raises_unavailable(self, mock_http_client, sao_paulo, rio, status):
        def handler(request):
            return httpx.Response(status, json={"success": False})

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _provider(mock_http_client, handler).quote(sao_paulo, rio, PACKAGE)

        assert exc_info.value.reason == "http_error"
        assert exc_info.value.details["status"] == status

    @pytest.mark.asyncio
    async def test_invalid_json_raises_unavailable(self, mock_http_client, sao_paulo, rio):
        def handler(request):
            return httpx.Response(200, text="not json")

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await _provider(mock_http_client, handler).quote(sao_paulo, rio, PACKAGE)

        assert exc_info.value.reason == "invalid_response"


class TestParseServices:

    def test_success_false(self):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            parse_services({"success": False, "error": "CEP de destino inválido"})
        assert exc_info.value.reason == "provider_error"

    @pytest.mark.parametrize(
        "payload",
        [
            {"success": True, "data": {"services": []}},
            {"success": True, "data": {}},
            {"success": True},
            {"success": True, "data": None},
        ],
    )
    def test_empty_services(self, payload):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            parse_services(payload)
        assert exc_info.value.reason == "empty_response"

    def test_non_object_payload(self):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            parse_services(["PAC"])
        assert exc_info.value.reason == "invalid_response"

    def test_malformed_entries_are_dropped(self):
        payload = {
            "success": True,
            "data": {
                "services": [
                    {"id": 1, "name": "PAC", "price": -5, "delivery_time": 6},
                    {"id": 2, "name": "", "price": 10, "delivery_time": 2},
                    {"id": 3, "name": "Jadlog", "price": "abc", "delivery_time": 4},
                    {"id": 4, "name": "Loggi", "price": 19.9, "delivery_time": 0},
                    "garbage",
                    {"id": 5, "name": "SEDEX", "price": 40.456, "delivery_time": 2.2},
                ]
            },
        }

        quotes = parse_services(payload)

        assert len(quotes) == 1
        assert quotes[0].service_code == "5"
        assert quotes[0].price == Decimal("40.46")
        assert quotes[0].eta_days == 3

    def test_all_entries_malformed(self):
        payload = {
            "success": True,
            "data": {"services": [{"id": 1, "name": "PAC", "price": None, "delivery_time": 6}]},
        }
        with pytest.raises(ProviderUnavailableError) as exc_info:
            parse_services(payload)
        assert exc_info.value.reason == "invalid_response"

    def test_zero_price_is_accepted(self):
        payload = {
            "success": True,
            "data": {"services": [{"id": 9, "name": "Retirada", "price": 0, "delivery_time": 1}]},
        }
        assert parse_services(payload)[0].price == Decimal("0.00")
