"""Config package"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from .sniper_config import (
    SniperConfig,
    load_sniper_config,
    save_sniper_config,
)
from ..constants import JUPITER_QUOTE_API, JUPITER_PRICE_API, DEFAULT_RPC_URL

# ============================================
# CREDENTIALS & ENDPOINTS
# ============================================
PRIVATE_KEY = os.getenv("SOLANA_PRIVATE_KEY")
RPC_URL = os.getenv("RPC_URL", DEFAULT_RPC_URL)
JUPITER_API_KEY = os.getenv("JUPITER_API_KEY", "")
JUPITER_QUOTE_API_BASE = os.getenv("JUPITER_QUOTE_API_BASE", JUPITER_QUOTE_API)
JUPITER_PRICE_API_BASE = os.getenv("JUPITER_PRICE_API_BASE", JUPITER_PRICE_API)

# ============================================
# RUNTIME
# ============================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")
SNIPER_CONFIG_PATH = os.getenv("SNIPER_CONFIG_PATH", "config/sniper.yaml")

# Overrides the config file when set; unset or empty leaves paper_trading to the config (default True)
_paper_mode = os.getenv("PAPER_TRADING_MODE")
PAPER_TRADING_MODE = None if not _paper_mode else _paper_mode.strip().lower() == "true"

__all__ = [
    "SniperConfig",
    "load_sniper_config",
    "save_sniper_config",
    "PRIVATE_KEY",
    "RPC_URL",
    "JUPITER_API_KEY",
    "JUPITER_QUOTE_API_BASE",
    "JUPITER_PRICE_API_BASE",
    "LOG_LEVEL",
    "LOG_DIR",
    "SNIPER_CONFIG_PATH",
    "PAPER_TRADING_MODE",
]
