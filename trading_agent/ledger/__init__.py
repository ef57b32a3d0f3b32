"""Portfolio ledger and snapshot persistence."""

from trading_agent.ledger.portfolio import PortfolioLedger, ThresholdAlert
from trading_agent.ledger.store import StateStore, MemoryStore, JsonFileStore

__all__ = ["PortfolioLedger", "ThresholdAlert", "StateStore", "MemoryStore", "JsonFileStore"]
