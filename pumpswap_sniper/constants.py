from solders.pubkey import Pubkey

# ============================================
# PROGRAM IDS
# ============================================
PUMP_PROGRAM = Pubkey.from_string("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")
PUMP_AMM_PROGRAM = Pubkey.from_string("pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA")

# Alias used by the relevance filter
PUMPSWAP_PROGRAM = PUMP_AMM_PROGRAM

WSOL_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")
SOL_MINT = str(WSOL_MINT)
LAMPORTS_PER_SOL = 1_000_000_000

# ============================================
# API ENDPOINTS
# ============================================
JUPITER_QUOTE_API = "https://api.jup.ag/swap/v1"
JUPITER_PRICE_API = "https://api.jup.ag/price/v3"
DEXSCREENER_TOKENS_API = "https://api.dexscreener.com/latest/dex/tokens"
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

# ============================================
# LOOP TIMING (seconds)
# ============================================
POLL_INTERVAL_SEC = 1.0         # Steady-state poll cadence
ERROR_BACKOFF_SEC = 5.0         # Sleep after a failed poll
MONITOR_TICK_SEC = 1.0          # Position monitor price cadence

# ============================================
# LEDGER PAGING
# ============================================
SIGNATURE_PAGE_SIZE = 1000      # RPC maximum for getSignaturesForAddress
MAX_SIGNATURE_PAGES = 5

FULL_EXIT_PCT = 100.0
