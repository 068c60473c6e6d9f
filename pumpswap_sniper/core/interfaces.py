"""Boundaries to the external collaborators the sniper consumes."""
from __future__ import annotations

from typing import Any, Protocol

from pumpswap_sniper.core.models import ActivityRecord


class LedgerClient(Protocol):
    async def get_recent_activity(
        self,
        address: str,
        limit: int | None = None,
        until: str | None = None,
        before: str | None = None,
    ) -> list[ActivityRecord]:
        """Signatures for ``address``, newest-first."""
        ...

    async def get_activity_detail(self, signature: str) -> dict[str, Any] | None:
        ...


class TradeSDK(Protocol):
    async def buy(self, token_mint: str, wallet: str, amount_sol: float) -> str:
        """Buy ``amount_sol`` worth of ``token_mint``; returns the tx signature."""
        ...

    async def sell_percentage(self, token_mint: str, wallet: str, pct: float) -> str:
        """Sell ``pct`` percent of the held balance; returns the tx signature."""
        ...


class PriceOracle(Protocol):
    async def get_price(self, token_mint: str) -> float:
        ...


class WalletProvider(Protocol):
    @property
    def public_key(self) -> str:
        ...
