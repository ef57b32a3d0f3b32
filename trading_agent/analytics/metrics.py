"""
Performance summary for a paper portfolio: realised P&L statistics over
SELL trades and drawdown over the per-tick equity curve.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from trading_agent.core.types import Portfolio, TradeType


@dataclass
class PerformanceMetrics:
    total_return_pct: float
    realized_pnl: float
    unrealized_pnl: float
    win_rate: float
    profit_factor: float
    expectancy: float
    max_drawdown_pct: float
    closed_trades: int
    open_positions: int


def realized_pnls(portfolio: Portfolio) -> List[float]:
    """Realised P&L per SELL, oldest first."""
    sells = [t for t in portfolio.trades if t.type == TradeType.SELL and t.realized_pnl is not None]
    return [t.realized_pnl for t in sorted(sells, key=lambda t: (t.timestamp, t.id))]


def win_rate(pnls: Sequence[float]) -> float:
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls)


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss; inf with wins and no losses."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return float("inf") if wins > 0 else 0.0
    return wins / losses


def max_drawdown(equity: Sequence[float]) -> float:
    """Largest peak-to-trough decline, in percent (<= 0)."""
    if len(equity) == 0:
        return 0.0
    arr = np.asarray(equity, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (arr - peak) / np.where(peak != 0, peak, 1)
    return float(np.min(dd)) * 100.0


def compute_metrics(portfolio: Portfolio, equity_curve: Optional[Sequence[float]] = None) -> PerformanceMetrics:
    pnls = realized_pnls(portfolio)
    return PerformanceMetrics(
        total_return_pct=portfolio.total_return,
        realized_pnl=float(sum(pnls)),
        unrealized_pnl=float(sum(p.unrealized_pnl for p in portfolio.positions)),
        win_rate=win_rate(pnls),
        profit_factor=profit_factor(pnls),
        expectancy=float(sum(pnls) / len(pnls)) if pnls else 0.0,
        max_drawdown_pct=max_drawdown(equity_curve if equity_curve is not None else []),
        closed_trades=len(pnls),
        open_positions=len(portfolio.positions),
    )
