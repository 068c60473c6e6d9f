"""
Logging setup for the sniper bot.

Console output is coloured and human readable; file output is one JSON
object per line, rotated by size. Trade events (buy, sell, exit, position
updates) are emitted through TradeLogger and additionally land in trades.log.
"""

import json
import logging
import logging.handlers
import os
from datetime import datetime
from typing import Optional

DEFAULT_LOG_DIR = "logs"
NOISY_LOGGERS = ("solana", "solders", "httpx", "httpcore", "asyncio")

MB = 1024 * 1024


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, merged with the record's ``extra_data``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        payload.update(getattr(record, "extra_data", None) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class HumanReadableFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{clock}] [{record.levelname:8s}]{self.RESET} {record.getMessage()}"

        extra = getattr(record, "extra_data", None)
        if extra:
            line += " (" + " | ".join(f"{k}={v}" for k, v in extra.items() if k != "trade_event") + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def is_trade_event(record: logging.LogRecord) -> bool:
    """True for records emitted by TradeLogger."""
    extra = getattr(record, "extra_data", None)
    return bool(extra and extra.get("trade_event"))


def _json_file_handler(path: str, max_mb: int, backups: int, level: int = logging.DEBUG):
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=max_mb * MB, backupCount=backups)
    handler.setFormatter(StructuredFormatter())
    handler.setLevel(level)
    return handler


def setup_logging(
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    log_dir: Optional[str] = None,
):
    """
    Replace the root logger's handlers.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Coloured output on stderr
        enable_file: bot.log (everything), errors.log (ERROR+), trades.log (trade events)
        log_dir: Directory for log files (default: ./logs)
    """
    numeric_level = getattr(logging, level.upper())
    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    if enable_console:
        console = logging.StreamHandler()
        console.setFormatter(HumanReadableFormatter())
        console.setLevel(numeric_level)
        root.addHandler(console)

    if enable_file:
        log_dir = log_dir or DEFAULT_LOG_DIR
        os.makedirs(log_dir, exist_ok=True)

        root.addHandler(_json_file_handler(os.path.join(log_dir, "bot.log"), 10, 5))
        root.addHandler(_json_file_handler(os.path.join(log_dir, "errors.log"), 5, 3, logging.ERROR))

        trades = _json_file_handler(os.path.join(log_dir, "trades.log"), 10, 10)
        trades.addFilter(is_trade_event)
        root.addHandler(trades)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class TradeLogger:
    """
    Emits structured trade events tagged with ``trade_event``.

    Usage:
        trade_logger.log_buy(session_id="a1b2", mint="ABC", amount_sol=0.1)
        trade_logger.log_exit(session_id="a1b2", mint="ABC", reason="STOP_LOSS", pnl_pct=-10.5)
    """

    def __init__(self, name: str = "pumpswap_sniper.trades"):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, event_type: str, **fields):
        data = {"trade_event": True, "event_type": event_type}
        data.update(fields)
        self.logger.log(level, event_type, extra={"extra_data": data})

    def log_buy(self, session_id: str, mint: str, amount_sol: float, wallet: str = ""):
        self._emit(logging.INFO, "BUY", session_id=session_id, mint=mint, amount_sol=amount_sol, wallet=wallet)

    def log_sell(self, session_id: str, mint: str, sell_pct: float, reason: str = "SCHEDULED"):
        self._emit(logging.INFO, "SELL", session_id=session_id, mint=mint, sell_pct=sell_pct, reason=reason)

    def log_exit(
        self,
        session_id: str,
        mint: str,
        reason: str,
        entry_price: float = 0.0,
        exit_price: float = 0.0,
        pnl_pct: float = 0.0,
        hold_time_seconds: float = 0.0,
    ):
        self._emit(
            logging.INFO, "EXIT", session_id=session_id, mint=mint, reason=reason,
            entry_price=entry_price, exit_price=exit_price, pnl_pct=round(pnl_pct, 4),
            hold_time_seconds=round(hold_time_seconds, 3),
        )

    def log_position_update(self, session_id: str, mint: str, price: float, pnl_pct: float):
        self._emit(logging.DEBUG, "POSITION_UPDATE", session_id=session_id, mint=mint,
                   price=price, pnl_pct=round(pnl_pct, 4))


trade_logger = TradeLogger()
