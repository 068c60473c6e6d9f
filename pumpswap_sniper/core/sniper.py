"""
PumpSwap Sniper - bot controller.

Owns the start/stop lifecycle and the polling loop:
detector -> relevance filter -> concurrency gate -> executor (spawned task).
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pumpswap_sniper.core.change_detector import LedgerChangeDetector
from pumpswap_sniper.core.concurrency_gate import ActiveTradeCounter, TradeConcurrencyGate
from pumpswap_sniper.core.models import ActivityRecord, ExitReason, TradeSession
from pumpswap_sniper.core.position_monitor import PositionMonitor
from pumpswap_sniper.core.relevance_filter import TransactionRelevanceFilter
from pumpswap_sniper.core.trade_executor import TradeExecutor
from pumpswap_sniper.exceptions import AlreadyRunningError

if TYPE_CHECKING:
    from pumpswap_sniper.config import SniperConfig
    from pumpswap_sniper.core.interfaces import LedgerClient, PriceOracle, TradeSDK, WalletProvider

logger = logging.getLogger("pumpswap_sniper.sniper")


class PumpSwapSniper:
    """
    Watches the configured mint and fires a trade session for every relevant
    transaction, up to ``max_concurrent_trades`` at once.

    Usage:
        sniper = PumpSwapSniper(config, ledger, sdk, price_oracle, wallet)
        await sniper.start()
        ...
        await sniper.shutdown()
    """

    def __init__(
        self,
        config: "SniperConfig",
        ledger: "LedgerClient",
        sdk: "TradeSDK",
        price_oracle: "PriceOracle",
        wallet: "WalletProvider",
        counter: ActiveTradeCounter | None = None,
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.detector = LedgerChangeDetector(
            ledger,
            config.token_mint,
            page_size=config.signature_page_size,
            max_pages=config.max_signature_pages,
        )
        self.relevance_filter = TransactionRelevanceFilter.from_config(config)
        self.gate = TradeConcurrencyGate(config.max_concurrent_trades, counter)
        self.monitor = PositionMonitor(config, price_oracle, sdk)
        self.executor = TradeExecutor(config, sdk, price_oracle, wallet, self.gate, self.monitor)

        self.is_running = False
        self._loop_task: asyncio.Task | None = None
        self._cancel_event = asyncio.Event()
        self._poll_lock = asyncio.Lock()
        self._session_tasks: set[asyncio.Task] = set()
        self._sessions: dict[str, TradeSession] = {}
        self.completed_sessions = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Seed the watermark and spawn the polling loop."""
        if self.is_running:
            raise AlreadyRunningError("Sniper bot is already running", mint=self.config.token_mint)

        # A stopped loop may still be alive; it must not resume next to the new one.
        # Holding the poll lock means it is not halfway through a batch.
        async with self._poll_lock:
            await self._cancel_loop_task()

        self.is_running = True
        self._cancel_event.clear()
        logger.info("Starting PumpSwap Sniper Bot for %s...", self.config.token_mint)

        try:
            await self.detector.seed()
        except Exception:
            self.is_running = False
            raise

        self._loop_task = asyncio.create_task(self._monitor_loop())

    def stop(self) -> None:
        """Stop polling after the current iteration. In-flight sessions keep running."""
        if self.is_running:
            logger.info("Stopping PumpSwap Sniper Bot...")
        self.is_running = False

    async def shutdown(self, cancel_sessions: bool = True) -> None:
        """
        Stop polling, signal every Position Monitor to exit and wait for all
        sessions. With ``cancel_sessions`` sessions still buying or selling
        are cancelled instead of awaited.
        """
        self.stop()
        self._cancel_event.set()
        await self._cancel_loop_task()

        tasks = list(self._session_tasks)
        if cancel_sessions:
            for task in tasks:
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("PumpSwap Sniper Bot shut down (%d sessions completed)", self.completed_sessions)

    async def _cancel_loop_task(self) -> None:
        task, self._loop_task = self._loop_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait_closed(self) -> None:
        """Wait for the polling loop to exit."""
        if self._loop_task:
            await self._loop_task

    # ------------------------------------------------------------------
    # Polling loop
    # ------------------------------------------------------------------

    async def _monitor_loop(self) -> None:
        while self.is_running:
            try:
                async with self._poll_lock:
                    await self.check_new_transactions()
                await asyncio.sleep(self.config.poll_interval_sec)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(self.config.error_backoff_sec)

    async def check_new_transactions(self) -> int:
        """Run one poll cycle. Returns the number of sessions spawned."""
        batch = await self.detector.poll()
        if not batch:
            return 0

        spawned = 0
        for record in batch.chronological():
            if await self.process_record(record):
                spawned += 1

        self.detector.commit(batch)
        return spawned

    async def process_record(self, record: ActivityRecord) -> bool:
        """Filter and admit one record. Returns True if a session was spawned."""
        try:
            if record.detail is None:
                record.detail = await self.ledger.get_activity_detail(record.signature)
            if not record.detail:
                return False

            if not self.relevance_filter.is_relevant(record):
                return False

            if not self.gate.try_admit():
                return False

            self._spawn_session(record)
            return True
        except Exception as e:
            logger.error("Error processing transaction %s: %s", record.signature[:16], e)
            return False

    def _spawn_session(self, record: ActivityRecord) -> None:
        session = self.executor.new_session(record)
        self._sessions[session.session_id] = session
        task = asyncio.create_task(self.executor.run(record, self._cancel_event, session))
        self._session_tasks.add(task)
        task.add_done_callback(lambda t, s=session: self._on_session_done(t, s))

    def _on_session_done(self, task: asyncio.Task, session: TradeSession) -> None:
        self._session_tasks.discard(task)
        self._sessions.pop(session.session_id, None)
        if not session.is_closed:
            # Cancelled before the executor ever ran, so its finally never released
            session.close(ExitReason.CANCELLED)
            self.gate.release()
        self.completed_sessions += 1

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def active_trades(self) -> int:
        return self.gate.active_trades

    @property
    def open_sessions(self) -> list[TradeSession]:
        return list(self._sessions.values())

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "token_mint": self.config.token_mint,
            "watermark": self.detector.watermark,
            "active_trades": self.gate.active_trades,
            "max_concurrent_trades": self.config.max_concurrent_trades,
            "rejected_candidates": self.gate.rejected,
            "completed_sessions": self.completed_sessions,
            "open_sessions": [s.to_dict() for s in self._sessions.values()],
        }
