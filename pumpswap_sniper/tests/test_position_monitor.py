"""
Unit tests for the Position Monitor

Tests:
1. Stop-loss and take-profit exits with a full sell
2. At most one trigger per evaluation
3. Cancellation and holding-time limit
4. Error propagation
"""

import asyncio

import pytest

from pumpswap_sniper.core.models import ExitReason, TradeSession
from pumpswap_sniper.core.position_monitor import PositionMonitor
from pumpswap_sniper.exceptions import PriceUnavailableException
from pumpswap_sniper.tests.conftest import MINT, WALLET, SequencePriceOracle


def open_session(entry=100.0):
    return TradeSession(token_mint=MINT, wallet=WALLET, trigger_signature="sig", entry_price=entry)


class TestEvaluate:

    def test_thresholds(self, make_config, sdk):
        monitor = PositionMonitor(make_config(), SequencePriceOracle([1]), sdk)

        assert monitor.evaluate(-10.0) == ExitReason.STOP_LOSS
        assert monitor.evaluate(-9.99) is None
        assert monitor.evaluate(19.99) is None
        assert monitor.evaluate(20.0) == ExitReason.TAKE_PROFIT

    def test_zero_thresholds_fire_stop_loss_first(self, make_config, sdk):
        """With both thresholds at 0 an unchanged price satisfies both; only SL fires"""
        config = make_config(stop_loss_percentage=0, take_profit_percentage=0)
        monitor = PositionMonitor(config, SequencePriceOracle([1]), sdk)

        assert monitor.evaluate(0.0) == ExitReason.STOP_LOSS


class TestWatch:

    @pytest.mark.asyncio
    async def test_stop_loss_sells_everything(self, make_config, sdk, sleep_calls, caplog):
        oracle = SequencePriceOracle([95.0, 89.0, 150.0])
        monitor = PositionMonitor(make_config(), oracle, sdk)
        session = open_session()

        with caplog.at_level("INFO", logger="pumpswap_sniper.position_monitor"):
            reason = await monitor.watch(session)

        assert reason == ExitReason.STOP_LOSS
        sdk.sell_percentage.assert_awaited_once_with(MINT, WALLET, 100.0)
        assert session.exit_price == 89.0
        assert oracle.calls == 2
        assert sleep_calls == [0.01]
        assert "Stop loss triggered" in caplog.text

    @pytest.mark.asyncio
    async def test_take_profit_sells_everything(self, make_config, sdk, sleep_calls):
        oracle = SequencePriceOracle([110.0, 121.0])
        monitor = PositionMonitor(make_config(), oracle, sdk)

        reason = await monitor.watch(open_session())

        assert reason == ExitReason.TAKE_PROFIT
        sdk.sell_percentage.assert_awaited_once_with(MINT, WALLET, 100.0)

    @pytest.mark.asyncio
    async def test_exactly_at_stop_loss_triggers(self, make_config, sdk, sleep_calls):
        monitor = PositionMonitor(make_config(), SequencePriceOracle([90.0]), sdk)

        assert await monitor.watch(open_session()) == ExitReason.STOP_LOSS
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_trigger_is_logged(self, make_config, sdk, sleep_calls, caplog):
        monitor = PositionMonitor(make_config(), SequencePriceOracle([121.0]), sdk)

        with caplog.at_level("INFO", logger="pumpswap_sniper.position_monitor"):
            await monitor.watch(open_session())

        assert "Take profit triggered" in caplog.text

    @pytest.mark.asyncio
    async def test_non_positive_entry_price_rejected(self, make_config, sdk):
        monitor = PositionMonitor(make_config(), SequencePriceOracle([1.0]), sdk)

        with pytest.raises(PriceUnavailableException):
            await monitor.watch(open_session(entry=0.0))
        sdk.sell_percentage.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_price_error_propagates(self, make_config, sdk, sleep_calls):
        oracle = SequencePriceOracle([100.0, PriceUnavailableException("no quote")])
        monitor = PositionMonitor(make_config(), oracle, sdk)

        with pytest.raises(PriceUnavailableException):
            await monitor.watch(open_session())
        sdk.sell_percentage.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sell_error_propagates(self, make_config, sdk, sleep_calls):
        sdk.sell_percentage.side_effect = RuntimeError("swap failed")
        monitor = PositionMonitor(make_config(), SequencePriceOracle([50.0]), sdk)

        with pytest.raises(RuntimeError):
            await monitor.watch(open_session())


class TestEarlyExit:

    @pytest.mark.asyncio
    async def test_cancel_before_first_tick(self, make_config, sdk):
        oracle = SequencePriceOracle([100.0])
        monitor = PositionMonitor(make_config(), oracle, sdk)
        event = asyncio.Event()
        event.set()

        reason = await monitor.watch(open_session(), event)

        assert reason == ExitReason.CANCELLED
        assert oracle.calls == 0
        sdk.sell_percentage.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_while_waiting(self, make_config, sdk):
        monitor = PositionMonitor(make_config(monitor_tick_sec=5.0), SequencePriceOracle([100.0]), sdk)
        event = asyncio.Event()

        task = asyncio.create_task(monitor.watch(open_session(), event))
        await asyncio.sleep(0.01)
        event.set()

        reason = await asyncio.wait_for(task, timeout=1.0)

        assert reason == ExitReason.CANCELLED
        sdk.sell_percentage.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_holding_time_limit_forces_exit(self, make_config, sdk):
        config = make_config(max_monitor_seconds=0.03)
        monitor = PositionMonitor(config, SequencePriceOracle([101.0]), sdk)
        session = open_session()

        reason = await asyncio.wait_for(monitor.watch(session), timeout=2.0)

        assert reason == ExitReason.TIMEOUT
        sdk.sell_percentage.assert_awaited_once_with(MINT, WALLET, 100.0)
        assert session.exit_price == 101.0
