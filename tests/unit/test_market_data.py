"""
Market Data Unit Tests
======================
Strict decoding of the pump.fun `/coins/{mint}` payload, via httpx.MockTransport.
"""

import httpx
import pytest
from solders.pubkey import Pubkey

from pumpfleet.shared.errors import MarketDataUnavailable
from pumpfleet.shared.infrastructure.market_data import PumpMarketData, decode_snapshot

BONDING_CURVE = str(Pubkey(bytes([7] * 32)))
ASSOCIATED_BONDING_CURVE = str(Pubkey(bytes([9] * 32)))


def _payload(**overrides):
    payload = {
        "mint": "ignored",
        "name": "Test Coin",
        "virtual_token_reserves": 500_000_000,
        "virtual_sol_reserves": 1_000_000,
        "bonding_curve": BONDING_CURVE,
        "associated_bonding_curve": ASSOCIATED_BONDING_CURVE,
    }
    payload.update(overrides)
    return payload


def _market(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PumpMarketData("https://frontend-api.pump.fun/", client=client)


@pytest.mark.unit
class TestDecodeSnapshot:
    def test_valid_payload(self, mint):
        snapshot = decode_snapshot(mint, _payload())

        assert snapshot.mint == mint
        assert snapshot.virtual_sol_reserves == 1_000_000
        assert snapshot.virtual_token_reserves == 500_000_000
        assert snapshot.bonding_curve == Pubkey.from_string(BONDING_CURVE)
        assert snapshot.associated_bonding_curve == Pubkey.from_string(ASSOCIATED_BONDING_CURVE)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"virtual_sol_reserves": None},
            {"virtual_sol_reserves": "1000000"},
            {"virtual_sol_reserves": 1.5},
            {"virtual_token_reserves": True},
            {"virtual_token_reserves": -1},
            {"bonding_curve": 42},
            {"associated_bonding_curve": "not-a-pubkey"},
        ],
    )
    def test_malformed_fields_rejected(self, mint, overrides):
        with pytest.raises(MarketDataUnavailable):
            decode_snapshot(mint, _payload(**overrides))

    def test_missing_field_rejected(self, mint):
        payload = _payload()
        del payload["bonding_curve"]
        with pytest.raises(MarketDataUnavailable) as exc_info:
            decode_snapshot(mint, payload)
        assert "bonding_curve" in str(exc_info.value)

    def test_non_object_rejected(self, mint):
        with pytest.raises(MarketDataUnavailable):
            decode_snapshot(mint, [1, 2, 3])


@pytest.mark.unit
class TestPumpMarketData:
    @pytest.mark.asyncio
    async def test_fetches_coin_endpoint_with_browser_headers(self, mint):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["origin"] = request.headers.get("Origin")
            return httpx.Response(200, json=_payload())

        snapshot = await _market(handler).fetch_snapshot(mint)

        assert seen["url"] == f"https://frontend-api.pump.fun/coins/{mint}"
        assert seen["origin"] == "https://www.pump.fun"
        assert snapshot.virtual_sol_reserves == 1_000_000

    @pytest.mark.asyncio
    async def test_non_200_raises(self, mint):
        market = _market(lambda request: httpx.Response(503, text="busy"))

        with pytest.raises(MarketDataUnavailable) as exc_info:
            await market.fetch_snapshot(mint)
        assert "503" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_raises(self, mint):
        market = _market(lambda request: httpx.Response(200, text="<html>cloudflare</html>"))

        with pytest.raises(MarketDataUnavailable):
            await market.fetch_snapshot(mint)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, mint):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(MarketDataUnavailable) as exc_info:
            await _market(handler).fetch_snapshot(mint)
        assert exc_info.value.retryable
