"""
Tick sources for the CLI: CSV replay and a synthetic random walk.
Each tick is (timestamp_ms, {symbol: price}).
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger("trading_agent.feeds")

Tick = Tuple[int, Dict[str, float]]
REQUIRED_COLUMNS = ("timestamp", "symbol", "price")


class CsvPriceFeed:
    """
    Replays a long-format CSV (timestamp, symbol, price), one tick per timestamp.
    When symbols is given, other rows are dropped.
    """

    def __init__(self, path: Path, symbols: Optional[Sequence[str]] = None):
        self.path = Path(path)
        self.symbols = [s.upper() for s in symbols] if symbols else None

    def load(self) -> pd.DataFrame:
        df = pd.read_csv(self.path)
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"{self.path}: missing columns {missing}")
        df = df.dropna(subset=list(REQUIRED_COLUMNS))
        df["timestamp"] = df["timestamp"].astype("int64")
        df["symbol"] = df["symbol"].astype(str).str.upper()
        df["price"] = df["price"].astype(float)
        if self.symbols is not None:
            df = df[df["symbol"].isin(self.symbols)]
        return df.sort_values("timestamp", kind="stable")

    def ticks(self) -> Iterator[Tick]:
        df = self.load()
        logger.info("Replaying %d rows from %s", len(df), self.path)
        for ts, group in df.groupby("timestamp", sort=True):
            yield int(ts), dict(zip(group["symbol"], group["price"]))


def random_walk_ticks(
    symbols: Sequence[str],
    n_ticks: int,
    start_prices: Optional[Dict[str, float]] = None,
    volatility: float = 0.01,
    interval_ms: int = 10_000,
    start_ts: int = 0,
    seed: Optional[int] = None,
) -> List[Tick]:
    """Geometric random walk per symbol. Deterministic for a given seed."""
    rng = np.random.default_rng(seed)
    start_prices = start_prices or {}
    paths = {}
    for symbol in symbols:
        p0 = float(start_prices.get(symbol, 100.0))
        shocks = rng.normal(0.0, volatility, size=n_ticks)
        paths[symbol] = p0 * np.exp(np.cumsum(shocks))
    return [
        (start_ts + i * interval_ms, {s: float(paths[s][i]) for s in symbols})
        for i in range(n_ticks)
    ]
