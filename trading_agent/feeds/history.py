"""Rolling per-symbol price history buffer."""

from __future__ import annotations
from collections import deque
from typing import Deque, Dict, List, Mapping

from trading_agent.core.types import PriceSample


class PriceHistory:
    """Keeps the newest `maxlen` samples per symbol, oldest first."""

    def __init__(self, maxlen: int = 100):
        self.maxlen = maxlen
        self._samples: Dict[str, Deque[PriceSample]] = {}

    def append(self, symbol: str, price: float, timestamp: int) -> None:
        buf = self._samples.setdefault(symbol, deque(maxlen=self.maxlen))
        buf.append(PriceSample(price=float(price), timestamp=int(timestamp)))

    def update(self, prices: Mapping[str, float], timestamp: int) -> None:
        for symbol, price in prices.items():
            self.append(symbol, price, timestamp)

    def samples(self, symbol: str) -> List[PriceSample]:
        return list(self._samples.get(symbol, ()))

    def prices(self, symbol: str) -> List[float]:
        return [s.price for s in self._samples.get(symbol, ())]

    def snapshot(self) -> Dict[str, List[PriceSample]]:
        return {symbol: list(buf) for symbol, buf in self._samples.items()}

    def __len__(self) -> int:
        return len(self._samples)
