"""Position sizing."""

from trading_agent.risk.sizing import PositionSizer, truncate_quantity

__all__ = ["PositionSizer", "truncate_quantity"]
