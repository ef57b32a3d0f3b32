"""
RSI, EMA and MACD over a closing-price sequence (oldest -> newest).
Pure functions: every call recomputes from the full input.
"""

from __future__ import annotations
from typing import Dict, Sequence

import numpy as np

from trading_agent.core.errors import InsufficientDataError
from trading_agent.core.types import IndicatorSnapshot

NEUTRAL_RSI = 50.0


def _as_array(prices: Sequence[float]) -> np.ndarray:
    arr = np.asarray(prices, dtype=float)
    if arr.ndim != 1 or len(arr) < 2:
        raise InsufficientDataError(f"need at least 2 prices, got {arr.size}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("prices must be finite")
    return arr


def compute_rsi(prices: Sequence[float], period: int = 14) -> float:
    """
    Relative strength index over the last `period` deltas.
    Returns 50 when fewer than `period` deltas exist; 100 when there are no
    losses, 0 when there are no gains.
    """
    arr = _as_array(prices)
    deltas = np.diff(arr)
    if len(deltas) < period:
        return NEUTRAL_RSI
    window = deltas[-period:]
    avg_gain = float(window.clip(min=0).mean())
    avg_loss = float((-window).clip(min=0).mean())
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else NEUTRAL_RSI
    if avg_gain == 0:
        return 0.0
    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))


def compute_ema(prices: Sequence[float], period: int = 20) -> float:
    """
    EMA with alpha = 2 / (period + 1), seeded with the simple average of the
    first `period` samples. Shorter inputs return their simple average.
    """
    arr = _as_array(prices)
    if len(arr) <= period:
        return float(arr.mean())
    alpha = 2.0 / (period + 1.0)
    ema = float(arr[:period].mean())
    for price in arr[period:]:
        ema = alpha * float(price) + (1.0 - alpha) * ema
    return ema


def compute_macd(prices: Sequence[float], fast: int = 12, slow: int = 26) -> Dict[str, float]:
    """MACD line only: EMA(fast) - EMA(slow)."""
    return {"macd": compute_ema(prices, fast) - compute_ema(prices, slow)}


def compute_snapshot(
    prices: Sequence[float],
    rsi_short_len: int = 7,
    rsi_long_len: int = 14,
    ema_len: int = 20,
    macd_fast: int = 12,
    macd_slow: int = 26,
    history_window: int = 10,
) -> IndicatorSnapshot:
    """
    Latest RSI(short/long), EMA and MACD plus histories over the trailing
    `history_window` samples. History entry i is computed on prices[:i+1].
    """
    arr = _as_array(prices)
    series = arr.tolist()
    n = len(series)

    ema_hist, macd_hist, rsi_hist = [], [], []
    for end in range(max(2, n - history_window + 1), n + 1):
        prefix = series[:end]
        ema_hist.append(compute_ema(prefix, ema_len))
        macd_hist.append(compute_macd(prefix, macd_fast, macd_slow)["macd"])
        rsi_hist.append(compute_rsi(prefix, rsi_short_len))

    return IndicatorSnapshot(
        rsi_short=compute_rsi(series, rsi_short_len),
        rsi_long=compute_rsi(series, rsi_long_len),
        ema=compute_ema(series, ema_len),
        macd=compute_macd(series, macd_fast, macd_slow)["macd"],
        price_history=series[-history_window:],
        ema_history=ema_hist,
        macd_history=macd_hist,
        rsi_history=rsi_hist,
    )
