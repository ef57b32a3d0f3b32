"""Technical indicators: RSI, EMA, MACD."""

from trading_agent.indicators.technical import (
    compute_rsi,
    compute_ema,
    compute_macd,
    compute_snapshot,
)

__all__ = ["compute_rsi", "compute_ema", "compute_macd", "compute_snapshot"]
