import argparse
import asyncio
import logging
import platform
import signal
import sys
from pathlib import Path

from pumpswap_sniper import config as env
from pumpswap_sniper.config import SniperConfig, load_sniper_config
from pumpswap_sniper.core.ledger_client import SolanaLedgerClient
from pumpswap_sniper.core.price_oracle import JupiterPriceOracle
from pumpswap_sniper.core.sniper import PumpSwapSniper
from pumpswap_sniper.core.trade_sdk import JupiterTradeSDK, PaperTradeSDK
from pumpswap_sniper.core.wallet import KeypairWallet, WatchOnlyWallet
from pumpswap_sniper.exceptions import BotException
from pumpswap_sniper.logger import setup_logging

logger = logging.getLogger(__name__)

# Public key used as the account identity in paper mode without a private key
PAPER_WALLET_PUBKEY = "11111111111111111111111111111111"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Snipe a PumpSwap token: buy on new activity, sell, then hold until stop-loss or take-profit.",
    )
    parser.add_argument("--config", default=env.SNIPER_CONFIG_PATH, help="YAML or JSON sniper config file.")
    parser.add_argument("--token-mint", help="Token mint to watch (overrides the config file).")
    parser.add_argument("--live", action="store_true", help="Execute real swaps instead of paper trading.")
    parser.add_argument("--log-level", default=env.LOG_LEVEL, help="Logging level (default: INFO).")
    parser.add_argument("--no-file-logs", action="store_true", help="Log to the console only.")
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> SniperConfig:
    """Config file first, then CLI overrides. Validated before returning."""
    path = Path(args.config)
    if path.exists():
        config = load_sniper_config(path)
        if args.token_mint:
            config = config.with_overrides(token_mint=args.token_mint)
    elif args.token_mint:
        logger.info("No config file at %s, using defaults", path)
        config = SniperConfig(token_mint=args.token_mint)
    else:
        raise BotException("No config file found and no --token-mint given", path=str(path))

    if env.PAPER_TRADING_MODE is not None:
        config = config.with_overrides(paper_trading=env.PAPER_TRADING_MODE)
    if args.live:
        config = config.with_overrides(paper_trading=False)
    return config.validate()


def build_sniper(config: SniperConfig):
    """Wire the sniper with the concrete adapters. Returns (sniper, closeables)."""
    # Wallet first: a bad key must fail before any client is opened
    if config.paper_trading:
        wallet = KeypairWallet.from_secret(env.PRIVATE_KEY) if env.PRIVATE_KEY else WatchOnlyWallet(PAPER_WALLET_PUBKEY)
    else:
        wallet = KeypairWallet.from_secret(env.PRIVATE_KEY)

    ledger = SolanaLedgerClient(env.RPC_URL)
    oracle = JupiterPriceOracle(env.JUPITER_PRICE_API_BASE, env.JUPITER_API_KEY)

    if config.paper_trading:
        sdk = PaperTradeSDK(oracle, slippage_pct=config.max_slippage)
        closeables = [ledger, oracle]
        logger.info("PAPER TRADING mode - no real swaps will be sent")
    else:
        sdk = JupiterTradeSDK(
            env.RPC_URL,
            wallet,
            slippage_bps=config.slippage_bps,
            quote_api_base=env.JUPITER_QUOTE_API_BASE,
            api_key=env.JUPITER_API_KEY,
        )
        closeables = [ledger, oracle, sdk]
        logger.warning("LIVE TRADING mode - real funds at risk")

    return PumpSwapSniper(config, ledger, sdk, oracle, wallet), closeables


async def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, enable_file=not args.no_file_logs, log_dir=env.LOG_DIR)

    try:
        config = resolve_config(args)
        sniper, closeables = build_sniper(config)
    except BotException as e:
        logger.error("Configuration error: %s", e)
        return 2

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_shutdown(sig):
        logger.info("Received signal %s, shutting down...", sig)
        shutdown_event.set()

    # Add signal handlers (not supported on Windows - use fallback)
    if platform.system() != "Windows":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))
    else:
        signal.signal(signal.SIGINT, lambda s, f: loop.call_soon_threadsafe(handle_shutdown, s))

    try:
        try:
            await sniper.start()
        except BotException as e:
            logger.error("Failed to start sniper: %s", e)
            return 1
        await shutdown_event.wait()
    finally:
        logger.info("Initiating graceful shutdown...")
        await sniper.shutdown(cancel_sessions=True)
        for resource in closeables:
            await resource.close()
        logger.info("Shutdown complete")
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("Bot stopped by user.")


if __name__ == "__main__":
    run()
