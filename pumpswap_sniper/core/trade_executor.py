"""Trade Executor - runs one buy -> delay -> sell -> monitor session.

The caller must have reserved a slot with TradeConcurrencyGate.try_admit();
the executor gives it back exactly once, whatever way the session ends.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pumpswap_sniper.core.models import ActivityRecord, ExitReason, TradePhase, TradeSession
from pumpswap_sniper.logger import trade_logger

if TYPE_CHECKING:
    from pumpswap_sniper.config import SniperConfig
    from pumpswap_sniper.core.concurrency_gate import TradeConcurrencyGate
    from pumpswap_sniper.core.interfaces import PriceOracle, TradeSDK, WalletProvider
    from pumpswap_sniper.core.position_monitor import PositionMonitor


class TradeExecutor:
    def __init__(
        self,
        config: "SniperConfig",
        sdk: "TradeSDK",
        price_oracle: "PriceOracle",
        wallet: "WalletProvider",
        gate: "TradeConcurrencyGate",
        monitor: "PositionMonitor",
    ) -> None:
        self.config = config
        self.sdk = sdk
        self.price_oracle = price_oracle
        self.wallet = wallet
        self.gate = gate
        self.monitor = monitor
        self.logger = logging.getLogger("pumpswap_sniper.executor")

    def new_session(self, record: ActivityRecord) -> TradeSession:
        return TradeSession(
            token_mint=self.config.token_mint,
            wallet=self.wallet.public_key,
            trigger_signature=record.signature,
        )

    async def run(
        self,
        record: ActivityRecord,
        cancel_event: asyncio.Event | None = None,
        session: TradeSession | None = None,
    ) -> TradeSession:
        """Drive a session to CLOSED. Errors are logged, never raised."""
        session = session or self.new_session(record)
        failure = ExitReason.ERROR
        self.logger.info(
            "[%s] Starting new trade execution (trigger %s)", session.session_id, record.signature[:16]
        )

        try:
            # IDLE -> BUYING
            failure = ExitReason.BUY_FAILED
            await asyncio.sleep(self.config.buy_delay_sec)
            session.transition_to(TradePhase.BUYING, "buy delay elapsed")
            await self.sdk.buy(session.token_mint, session.wallet, self.config.buy_amount)
            self.logger.info("[%s] Bought %s SOL worth of tokens", session.session_id, self.config.buy_amount)
            trade_logger.log_buy(session.session_id, session.token_mint, self.config.buy_amount, session.wallet)

            # BUYING -> SELLING
            failure = ExitReason.SELL_FAILED
            await asyncio.sleep(self.config.sell_delay_sec)
            session.transition_to(TradePhase.SELLING, "sell delay elapsed")
            await self.sdk.sell_percentage(session.token_mint, session.wallet, self.config.sell_percentage)
            self.logger.info("[%s] Sold %s%% of tokens", session.session_id, self.config.sell_percentage)
            trade_logger.log_sell(session.session_id, session.token_mint, self.config.sell_percentage)

            # SELLING -> MONITORING
            failure = ExitReason.PRICE_FAILED
            session.entry_price = await self.price_oracle.get_price(session.token_mint)
            session.transition_to(TradePhase.MONITORING, "entry price captured")

            failure = ExitReason.ERROR
            reason = await self.monitor.watch(session, cancel_event)
            session.close(reason)

        except asyncio.CancelledError:
            self.logger.warning("[%s] Trade session cancelled in %s", session.session_id, session.phase.value)
            session.close(ExitReason.CANCELLED)
            raise
        except Exception as e:
            self.logger.error(
                "[%s] Error executing trade in %s: %s", session.session_id, session.phase.value, e
            )
            session.close(failure)
        finally:
            self.gate.release()

        self.logger.info(
            "[%s] Trade session closed: %s", session.session_id, session.exit_reason.value
        )
        return session
