"""
Sniper Configuration

Immutable trading parameters supplied at construction, loaded from a
YAML or JSON file and validated once at startup.
"""

import json
import logging
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .. import constants
from ..exceptions import ConfigurationException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SniperConfig:
    """Complete sniper configuration"""
    # Token configuration
    token_mint: str                       # Token to snipe
    buy_amount: float = 0.1               # Amount of SOL to buy with
    sell_percentage: float = 50.0         # Percentage to sell after the buy (0-100)
    max_slippage: float = 5.0             # Maximum allowed slippage (%)

    # Timing
    buy_delay_ms: int = 1000
    sell_delay_ms: int = 5000

    # Price impact band (%)
    min_price_impact: float = 1.0
    max_price_impact: float = 10.0

    # Safety
    max_concurrent_trades: int = 3
    stop_loss_percentage: float = 10.0
    take_profit_percentage: float = 20.0

    # Policies
    max_monitor_seconds: Optional[float] = None   # None = hold until SL/TP
    required_programs: Tuple[str, ...] = (str(constants.PUMPSWAP_PROGRAM),)
    paper_trading: bool = True

    # Loop cadence
    poll_interval_sec: float = constants.POLL_INTERVAL_SEC
    error_backoff_sec: float = constants.ERROR_BACKOFF_SEC
    monitor_tick_sec: float = constants.MONITOR_TICK_SEC
    signature_page_size: int = constants.SIGNATURE_PAGE_SIZE
    max_signature_pages: int = constants.MAX_SIGNATURE_PAGES

    @property
    def buy_delay_sec(self) -> float:
        return self.buy_delay_ms / 1000.0

    @property
    def sell_delay_sec(self) -> float:
        return self.sell_delay_ms / 1000.0

    @property
    def slippage_bps(self) -> int:
        return int(round(self.max_slippage * 100))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = asdict(self)
        data["required_programs"] = list(self.required_programs)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SniperConfig":
        """Create from dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

        kwargs = {k: v for k, v in data.items() if k in known}
        if "token_mint" not in kwargs:
            raise ConfigurationException("token_mint is required")
        if "required_programs" in kwargs:
            kwargs["required_programs"] = tuple(kwargs["required_programs"] or ())
        return cls(**kwargs)

    def with_overrides(self, **changes) -> "SniperConfig":
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)

    def validation_errors(self) -> List[str]:
        """Validate current config, return list of errors"""
        errors = []

        if not self.token_mint:
            errors.append("token_mint must not be empty")

        if self.buy_amount <= 0:
            errors.append("buy_amount must be > 0")

        if not 0 <= self.sell_percentage <= 100:
            errors.append("sell_percentage must be between 0 and 100")

        if self.max_slippage < 0:
            errors.append("max_slippage must be >= 0")

        if self.buy_delay_ms < 0 or self.sell_delay_ms < 0:
            errors.append("buy_delay_ms and sell_delay_ms must be >= 0")

        if self.min_price_impact > self.max_price_impact:
            errors.append("min_price_impact must be <= max_price_impact")

        if self.max_concurrent_trades < 1:
            errors.append("max_concurrent_trades must be >= 1")

        if self.stop_loss_percentage < 0:
            errors.append("stop_loss_percentage must be >= 0")

        if self.take_profit_percentage < 0:
            errors.append("take_profit_percentage must be >= 0")

        if self.max_monitor_seconds is not None and self.max_monitor_seconds <= 0:
            errors.append("max_monitor_seconds must be > 0 when set")

        if self.poll_interval_sec < 0 or self.error_backoff_sec < 0 or self.monitor_tick_sec <= 0:
            errors.append("loop intervals must be non-negative (monitor tick > 0)")

        if self.signature_page_size < 1 or self.max_signature_pages < 1:
            errors.append("signature paging limits must be >= 1")

        return errors

    def validate(self) -> "SniperConfig":
        """Raise ConfigurationException if any invariant is violated"""
        try:
            errors = self.validation_errors()
        except TypeError as e:
            raise ConfigurationException("Invalid sniper config value types", error=str(e)) from e
        if errors:
            raise ConfigurationException("Invalid sniper config", errors="; ".join(errors))
        return self


def load_sniper_config(path: Union[str, Path]) -> SniperConfig:
    """
    Load and validate a SniperConfig from a YAML or JSON file.

    Raises:
        ConfigurationException: file missing, unparsable or invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationException("Config file not found", path=str(config_path))

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationException("Config file could not be parsed", path=str(config_path), error=str(e)) from e

    if not isinstance(data, dict):
        raise ConfigurationException("Config file must contain a mapping", path=str(config_path))

    config = SniperConfig.from_dict(data).validate()
    logger.info(f"Sniper config loaded from {config_path}")
    return config


def save_sniper_config(config: SniperConfig, path: Union[str, Path]):
    """Save config to file"""
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.to_dict()

    with open(config_path, 'w', encoding='utf-8') as f:
        if config_path.suffix in ['.yaml', '.yml']:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info(f"Sniper config saved to {config_path}")
