"""Shared fakes for the sniper tests."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from pumpswap_sniper.config import SniperConfig
from pumpswap_sniper.constants import PUMPSWAP_PROGRAM
from pumpswap_sniper.core.models import ActivityRecord

MINT = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"
WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
POOL_VAULT_OWNER = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"


class FakeLedger:
    """
    In-memory ledger. ``signatures`` is kept newest-first, like the RPC.
    """

    def __init__(self, signatures=None, details=None):
        self.signatures = list(signatures or [])
        self.details = dict(details or {})
        self.activity_calls = []
        self.fail_next = 0

    def push(self, signature, detail=None):
        """Append a new (newest) signature."""
        self.signatures.insert(0, signature)
        if detail is not None:
            self.details[signature] = detail

    async def get_recent_activity(self, address, limit=None, until=None, before=None):
        self.activity_calls.append({"limit": limit, "until": until, "before": before})
        if self.fail_next:
            self.fail_next -= 1
            raise ConnectionError("rpc down")

        sigs = self.signatures
        if before is not None:
            sigs = sigs[sigs.index(before) + 1:]
        if until is not None and until in sigs:
            sigs = sigs[:sigs.index(until)]
        if limit is not None:
            sigs = sigs[:limit]
        return [ActivityRecord(signature=s) for s in sigs]

    async def get_activity_detail(self, signature):
        return self.details.get(signature)


class SequencePriceOracle:
    """Returns prices from a list, repeating the last one."""

    def __init__(self, prices):
        self.prices = list(prices)
        self.calls = 0

    async def get_price(self, token_mint):
        idx = min(self.calls, len(self.prices) - 1)
        self.calls += 1
        price = self.prices[idx]
        if isinstance(price, Exception):
            raise price
        return price


class StaticWallet:
    public_key = WALLET


def swap_detail(program=str(PUMPSWAP_PROGRAM), pre=1_000_000, post=1_050_000, err=None, mint=MINT):
    """jsonParsed-shaped transaction touching ``program`` with a vault balance change."""
    return {
        "slot": 1,
        "blockTime": 1700000000,
        "meta": {
            "err": err,
            "logMessages": [f"Program {program} invoke [1]", "Program log: Instruction: Buy"],
            "preTokenBalances": [
                {"accountIndex": 3, "mint": mint, "owner": POOL_VAULT_OWNER,
                 "uiTokenAmount": {"amount": str(pre), "decimals": 6}},
                {"accountIndex": 5, "mint": mint, "owner": WALLET,
                 "uiTokenAmount": {"amount": "10", "decimals": 6}},
            ],
            "postTokenBalances": [
                {"accountIndex": 3, "mint": mint, "owner": POOL_VAULT_OWNER,
                 "uiTokenAmount": {"amount": str(post), "decimals": 6}},
                {"accountIndex": 5, "mint": mint, "owner": WALLET,
                 "uiTokenAmount": {"amount": "20", "decimals": 6}},
            ],
        },
        "transaction": {
            "message": {
                "accountKeys": [
                    {"pubkey": WALLET, "signer": True, "writable": True},
                    {"pubkey": program, "signer": False, "writable": False},
                ],
                "instructions": [{"programId": program, "accounts": []}],
            }
        },
    }


@pytest.fixture
def make_config():
    def _make(**overrides):
        values = dict(
            token_mint=MINT,
            buy_amount=0.1,
            sell_percentage=50,
            max_slippage=5,
            buy_delay_ms=0,
            sell_delay_ms=0,
            min_price_impact=1,
            max_price_impact=10,
            max_concurrent_trades=3,
            stop_loss_percentage=10,
            take_profit_percentage=20,
            poll_interval_sec=0.01,
            error_backoff_sec=0.01,
            monitor_tick_sec=0.01,
        )
        values.update(overrides)
        return SniperConfig(**values).validate()
    return _make


@pytest.fixture
def sdk():
    mock = AsyncMock()
    mock.buy.return_value = "buy-sig"
    mock.sell_percentage.return_value = "sell-sig"
    return mock


@pytest.fixture
def wallet():
    return StaticWallet()


@pytest.fixture
def sleep_calls(monkeypatch):
    """Record requested asyncio.sleep durations while only yielding to the loop."""
    calls = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay, *args, **kwargs):
        calls.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return calls
