"""Price oracle - Jupiter Price API with a DexScreener fallback."""
from __future__ import annotations

import logging

import httpx

from pumpswap_sniper.constants import DEXSCREENER_TOKENS_API, JUPITER_PRICE_API
from pumpswap_sniper.exceptions import PriceUnavailableException
from pumpswap_sniper.utils.circuit_breaker import CircuitBreaker


class JupiterPriceOracle:
    """
    USD price for a mint.

    Jupiter is asked first; when it fails, returns nothing usable or its
    breaker is open, DexScreener is tried. Raises PriceUnavailableException
    when neither yields a positive price.
    """

    def __init__(
        self,
        price_api_base: str = JUPITER_PRICE_API,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.price_api_base = price_api_base.rstrip("/")
        self.api_key = api_key
        self.logger = logging.getLogger("pumpswap_sniper.price_oracle")
        self._client = client
        self._owns_client = client is None
        self._jupiter_breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=60.0, name="Jupiter")

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"x-api-key": self.api_key} if self.api_key else {}
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(10.0, connect=5.0),
                limits=httpx.Limits(max_keepalive_connections=5),
            )
        return self._client

    async def get_price(self, token_mint: str) -> float:
        price = None
        if self._jupiter_breaker.can_execute():
            try:
                price = await self._fetch_jupiter(token_mint)
                self._jupiter_breaker.record_success()
            except (httpx.HTTPError, ValueError) as e:
                self._jupiter_breaker.record_failure()
                self.logger.warning("Jupiter price failed for %s: %s", token_mint[:8], e)

        if not price:
            try:
                price = await self._fetch_dexscreener(token_mint)
            except (httpx.HTTPError, ValueError) as e:
                self.logger.warning("DexScreener price failed for %s: %s", token_mint[:8], e)

        if not price or price <= 0:
            raise PriceUnavailableException("No price available", mint=token_mint)
        return price

    async def _fetch_jupiter(self, token_mint: str) -> float | None:
        client = await self._ensure_client()
        response = await client.get(self.price_api_base, params={"ids": token_mint})
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            return None
        prices = data.get("data", data)
        info = prices.get(token_mint) if isinstance(prices, dict) else None
        if not info:
            return None
        return float(info.get("usdPrice") or info.get("price") or 0) or None

    async def _fetch_dexscreener(self, token_mint: str) -> float | None:
        client = await self._ensure_client()
        response = await client.get(f"{DEXSCREENER_TOKENS_API}/{token_mint}")
        response.raise_for_status()
        best_price, best_liquidity = None, -1.0
        for pair in response.json().get("pairs") or []:
            if (pair.get("baseToken") or {}).get("address") != token_mint:
                continue
            price = float(pair.get("priceUsd") or 0)
            liquidity = float((pair.get("liquidity") or {}).get("usd") or 0)
            # Deepest pool wins
            if price > 0 and liquidity > best_liquidity:
                best_price, best_liquidity = price, liquidity
        return best_price

    async def close(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None
