"""Position Monitor - polls price for one open session and exits on SL/TP.

Runs a fixed-cadence loop against the entry price recorded after the
scheduled sell. The first threshold crossed triggers a full sell and ends
the watch. An optional cancellation event and holding-time limit can end
it earlier.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from pumpswap_sniper.constants import FULL_EXIT_PCT
from pumpswap_sniper.core.models import ExitReason, TradeSession
from pumpswap_sniper.exceptions import PriceUnavailableException
from pumpswap_sniper.logger import trade_logger

if TYPE_CHECKING:
    from pumpswap_sniper.config import SniperConfig
    from pumpswap_sniper.core.interfaces import PriceOracle, TradeSDK


class PositionMonitor:
    def __init__(self, config: "SniperConfig", price_oracle: "PriceOracle", sdk: "TradeSDK") -> None:
        self.config = config
        self.price_oracle = price_oracle
        self.sdk = sdk
        self.logger = logging.getLogger("pumpswap_sniper.position_monitor")

    def evaluate(self, price_change_pct: float) -> ExitReason | None:
        """Stop-loss is checked first, so at most one trigger fires."""
        if price_change_pct <= -self.config.stop_loss_percentage:
            return ExitReason.STOP_LOSS
        if price_change_pct >= self.config.take_profit_percentage:
            return ExitReason.TAKE_PROFIT
        return None

    async def watch(self, session: TradeSession, cancel_event: asyncio.Event | None = None) -> ExitReason:
        """
        Poll until stop-loss or take-profit fires, then sell 100%.

        Price or sell failures propagate to the caller, which aborts the
        session. Returns CANCELLED without selling when ``cancel_event`` is
        set, and TIMEOUT after a full sell when ``max_monitor_seconds`` elapses.
        """
        entry = session.entry_price
        if entry <= 0:
            raise PriceUnavailableException("Entry price must be positive", mint=session.token_mint, entry=entry)

        started = time.monotonic()
        max_hold = self.config.max_monitor_seconds
        self.logger.info(
            "[%s] Monitoring %s from entry %.10f (SL -%.1f%% / TP +%.1f%%)",
            session.session_id, session.token_mint[:12], entry,
            self.config.stop_loss_percentage, self.config.take_profit_percentage,
        )

        while True:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning("[%s] Monitoring cancelled, position left open", session.session_id)
                return ExitReason.CANCELLED

            current = await self.price_oracle.get_price(session.token_mint)
            change_pct = (current - entry) / entry * 100
            trade_logger.log_position_update(session.session_id, session.token_mint, current, change_pct)

            reason = self.evaluate(change_pct)
            if reason is None and max_hold is not None and time.monotonic() - started >= max_hold:
                reason = ExitReason.TIMEOUT

            if reason is not None:
                await self.sdk.sell_percentage(session.token_mint, session.wallet, FULL_EXIT_PCT)
                session.exit_price = current
                if reason == ExitReason.STOP_LOSS:
                    self.logger.info("[%s] Stop loss triggered at %+.2f%%", session.session_id, change_pct)
                elif reason == ExitReason.TAKE_PROFIT:
                    self.logger.info("[%s] Take profit triggered at %+.2f%%", session.session_id, change_pct)
                else:
                    self.logger.info("[%s] Max monitoring time reached at %+.2f%%", session.session_id, change_pct)
                trade_logger.log_exit(
                    session.session_id, session.token_mint, reason.value,
                    entry_price=entry, exit_price=current, pnl_pct=change_pct,
                    hold_time_seconds=time.monotonic() - started,
                )
                return reason

            await self._sleep_tick(cancel_event)

    async def _sleep_tick(self, cancel_event: asyncio.Event | None) -> None:
        tick = self.config.monitor_tick_sec
        if cancel_event is None:
            await asyncio.sleep(tick)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=tick)
        except asyncio.TimeoutError:
            pass
