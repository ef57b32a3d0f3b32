"""Price inputs: rolling history and tick sources."""

from trading_agent.feeds.history import PriceHistory
from trading_agent.feeds.sources import CsvPriceFeed, random_walk_ticks

__all__ = ["PriceHistory", "CsvPriceFeed", "random_walk_ticks"]
