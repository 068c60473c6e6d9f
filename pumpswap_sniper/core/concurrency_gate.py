"""
Trade Concurrency Gate

Bounds how many trade sessions may be in flight at once. Candidates that
arrive while the bound is reached are dropped, not queued.
"""
from __future__ import annotations

import logging
import threading

from pumpswap_sniper.exceptions import StateException


class ActiveTradeCounter:
    """
    Shared count of in-flight sessions.

    Passed by reference to the gate and the executor. The lock keeps
    admission atomic even if sessions are ever moved onto worker threads.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def try_increment(self, limit: int) -> bool:
        with self._lock:
            if self._value >= limit:
                return False
            self._value += 1
            return True

    def decrement(self) -> int:
        with self._lock:
            if self._value <= 0:
                raise StateException("Active trade counter would go negative")
            self._value -= 1
            return self._value


class TradeConcurrencyGate:
    def __init__(self, max_concurrent_trades: int, counter: ActiveTradeCounter | None = None) -> None:
        if max_concurrent_trades < 1:
            raise ValueError("max_concurrent_trades must be >= 1")
        self.max_concurrent_trades = max_concurrent_trades
        self.counter = counter or ActiveTradeCounter()
        self.logger = logging.getLogger("pumpswap_sniper.gate")
        self.rejected = 0

    @property
    def active_trades(self) -> int:
        return self.counter.value

    def try_admit(self) -> bool:
        """Reserve a slot. Returns False (and warns) when the bound is reached."""
        if self.counter.try_increment(self.max_concurrent_trades):
            self.logger.debug(
                "Trade admitted (%d/%d active)", self.counter.value, self.max_concurrent_trades
            )
            return True
        self.rejected += 1
        self.logger.warning(
            "Maximum concurrent trades reached (%d), dropping candidate", self.max_concurrent_trades
        )
        return False

    def release(self) -> None:
        """Give back a slot reserved by try_admit(). Call exactly once per admission."""
        remaining = self.counter.decrement()
        self.logger.debug("Trade slot released (%d/%d active)", remaining, self.max_concurrent_trades)
