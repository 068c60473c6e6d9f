from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TradePhase(str, Enum):
    IDLE = "IDLE"
    BUYING = "BUYING"
    SELLING = "SELLING"
    MONITORING = "MONITORING"
    CLOSED = "CLOSED"


class ExitReason(str, Enum):
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    BUY_FAILED = "BUY_FAILED"
    SELL_FAILED = "SELL_FAILED"
    PRICE_FAILED = "PRICE_FAILED"
    ERROR = "ERROR"


# Allowed forward moves; any phase may jump straight to CLOSED on abort.
_TRANSITIONS = {
    TradePhase.IDLE: {TradePhase.BUYING},
    TradePhase.BUYING: {TradePhase.SELLING},
    TradePhase.SELLING: {TradePhase.MONITORING},
    TradePhase.MONITORING: set(),
    TradePhase.CLOSED: set(),
}


@dataclass
class ActivityRecord:
    """One signature observed on the tracked address."""
    signature: str
    slot: int = 0
    block_time: int | None = None
    err: Any = None
    detail: dict[str, Any] | None = None

    @property
    def failed(self) -> bool:
        return self.err is not None

    @classmethod
    def from_rpc(cls, entry: Any) -> "ActivityRecord":
        """Build from a getSignaturesForAddress entry (dict or solders object)."""
        if isinstance(entry, dict):
            return cls(
                signature=str(entry.get("signature", "")),
                slot=int(entry.get("slot") or 0),
                block_time=entry.get("blockTime"),
                err=entry.get("err"),
            )
        return cls(
            signature=str(entry.signature),
            slot=int(getattr(entry, "slot", 0) or 0),
            block_time=getattr(entry, "block_time", None),
            err=getattr(entry, "err", None),
        )


@dataclass
class PhaseTransition:
    from_phase: TradePhase
    to_phase: TradePhase
    reason: str
    ts: float = field(default_factory=time.time)


@dataclass
class TradeSession:
    """State of one buy -> sell -> monitor sequence."""
    token_mint: str
    wallet: str
    trigger_signature: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    phase: TradePhase = TradePhase.IDLE
    entry_price: float = 0.0
    exit_price: float = 0.0
    exit_reason: ExitReason | None = None
    opened_at: float = field(default_factory=time.time)
    monitoring_since: float = 0.0
    closed_at: float = 0.0
    transitions: list[PhaseTransition] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.phase == TradePhase.CLOSED

    def transition_to(self, phase: TradePhase, reason: str = "") -> None:
        if phase != TradePhase.CLOSED and phase not in _TRANSITIONS[self.phase]:
            raise ValueError(f"Illegal transition {self.phase.value} -> {phase.value}")
        if self.phase == TradePhase.CLOSED:
            raise ValueError("Session already closed")
        self.transitions.append(PhaseTransition(self.phase, phase, reason))
        self.phase = phase
        if phase == TradePhase.MONITORING:
            self.monitoring_since = time.time()

    def close(self, reason: ExitReason) -> None:
        if self.is_closed:
            return
        self.exit_reason = reason
        self.transition_to(TradePhase.CLOSED, reason.value)
        self.closed_at = time.time()

    def pnl_pct(self, price: float) -> float:
        if self.entry_price <= 0:
            return 0.0
        return (price - self.entry_price) / self.entry_price * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "token_mint": self.token_mint,
            "trigger_signature": self.trigger_signature,
            "phase": self.phase.value,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "exit_reason": self.exit_reason.value if self.exit_reason else None,
            "opened_at": self.opened_at,
            "closed_at": self.closed_at,
        }
