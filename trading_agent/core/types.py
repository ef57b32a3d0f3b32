"""
Core data types: price samples, indicator snapshots, decisions, positions,
trades and the portfolio snapshot.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Action(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class PriceSample:
    """One observed price; timestamp in epoch milliseconds."""
    price: float
    timestamp: int


@dataclass
class IndicatorSnapshot:
    """Latest indicator values plus trailing histories aligned to the last N samples."""
    rsi_short: float
    rsi_long: float
    ema: float
    macd: float
    price_history: List[float] = field(default_factory=list)
    ema_history: List[float] = field(default_factory=list)
    macd_history: List[float] = field(default_factory=list)
    rsi_history: List[float] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TradingDecision:
    """Decision for one symbol on one tick."""
    symbol: str
    action: Action
    confidence: float
    reasoning: str
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    chain_of_thought: str = ""
    invalidation_condition: Optional[str] = None
    source: str = "fallback"  # "ai" | "fallback"


@dataclass
class Position:
    """Open long position. At most one per symbol."""
    symbol: str
    quantity: float
    entry_price: float
    current_price: float
    entry_time: int
    unrealized_pnl: float = 0.0
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None

    def mark(self, price: float) -> None:
        self.current_price = price
        self.unrealized_pnl = (price - self.entry_price) * self.quantity

    @property
    def market_value(self) -> float:
        return self.current_price * self.quantity


@dataclass(frozen=True)
class Trade:
    """Executed ledger entry. realized_pnl is set on SELL only."""
    id: int
    symbol: str
    type: TradeType
    quantity: float
    price: float
    timestamp: int
    reason: str
    confidence: float
    realized_pnl: Optional[float] = None


@dataclass
class PortfolioContext:
    """What the decision policy knows about the account for one symbol."""
    position: Optional[Position]
    total_value: float
    cash: float
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Portfolio:
    """Cash, open positions and trade history (newest first)."""
    cash: float
    total_value: float
    positions: List[Position] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    total_return: float = 0.0

    def position(self, symbol: str) -> Optional[Position]:
        for p in self.positions:
            if p.symbol == symbol:
                return p
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for t in data["trades"]:
            t["type"] = t["type"].value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Portfolio":
        positions = [Position(**p) for p in data.get("positions", [])]
        trades = [
            Trade(**{**t, "type": TradeType(t["type"])})
            for t in data.get("trades", [])
        ]
        return cls(
            cash=float(data["cash"]),
            total_value=float(data.get("total_value", data["cash"])),
            positions=positions,
            trades=trades,
            total_return=float(data.get("total_return", 0.0)),
        )
