"""
Market Data Source
==================
Bonding-curve reserve snapshots from the pump.fun frontend API.

The payload is decoded strictly: a missing or mistyped field is an error,
never a default. Snapshots are fetched fresh per trade and never cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import httpx
from solders.pubkey import Pubkey

from pumpfleet.shared.errors import MarketDataUnavailable
from pumpfleet.shared.system.logging import Logger

# The API sits behind a browser-facing CDN
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.pump.fun/",
    "Origin": "https://www.pump.fun",
}


@dataclass(frozen=True)
class CurveSnapshot:
    """Virtual reserves and curve accounts for one mint at one instant."""

    mint: str
    virtual_token_reserves: int
    virtual_sol_reserves: int  # lamports
    bonding_curve: Pubkey
    associated_bonding_curve: Pubkey


def _require_int(mint: str, payload: Dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MarketDataUnavailable(mint, f"field {key!r} must be an integer, got {value!r}")
    if value < 0:
        raise MarketDataUnavailable(mint, f"field {key!r} is negative: {value}")
    return value


def _require_pubkey(mint: str, payload: Dict[str, Any], key: str) -> Pubkey:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MarketDataUnavailable(mint, f"field {key!r} must be a base58 address, got {value!r}")
    try:
        return Pubkey.from_string(value)
    except ValueError:
        raise MarketDataUnavailable(mint, f"field {key!r} is not a valid address: {value!r}") from None


def decode_snapshot(mint: str, payload: Any) -> CurveSnapshot:
    """Decode a `/coins/{mint}` payload into a CurveSnapshot."""
    if not isinstance(payload, dict):
        raise MarketDataUnavailable(mint, "response body is not a JSON object")
    return CurveSnapshot(
        mint=mint,
        virtual_token_reserves=_require_int(mint, payload, "virtual_token_reserves"),
        virtual_sol_reserves=_require_int(mint, payload, "virtual_sol_reserves"),
        bonding_curve=_require_pubkey(mint, payload, "bonding_curve"),
        associated_bonding_curve=_require_pubkey(mint, payload, "associated_bonding_curve"),
    )


class PumpMarketData:
    """
    Usage:
        market = PumpMarketData("https://frontend-api.pump.fun")
        snapshot = await market.fetch_snapshot(mint)

    Pass `client` to share a connection pool or inject a mock transport.
    """

    def __init__(
        self,
        api_url: str = "https://frontend-api.pump.fun",
        timeout_s: float = 10.0,
        client: httpx.AsyncClient = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = client

    async def fetch_snapshot(self, mint: str) -> CurveSnapshot:
        """
        Raises:
            MarketDataUnavailable: transport error, non-200, non-JSON or malformed body
        """
        url = f"{self.api_url}/coins/{mint}"
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=BROWSER_HEADERS)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    response = await client.get(url, headers=BROWSER_HEADERS)
        except httpx.HTTPError as e:
            raise MarketDataUnavailable(mint, f"request failed: {e}") from e

        if response.status_code != 200:
            raise MarketDataUnavailable(mint, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            raise MarketDataUnavailable(mint, "response body is not JSON") from None

        snapshot = decode_snapshot(mint, payload)
        Logger.debug(
            f"[MARKET] {mint[:8]}... reserves sol={snapshot.virtual_sol_reserves} "
            f"token={snapshot.virtual_token_reserves}"
        )
        return snapshot
