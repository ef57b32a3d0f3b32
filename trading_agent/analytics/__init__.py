"""Analytics: portfolio performance summary."""

from trading_agent.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    realized_pnls,
    win_rate,
    profit_factor,
    max_drawdown,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "realized_pnls",
    "win_rate",
    "profit_factor",
    "max_drawdown",
]
