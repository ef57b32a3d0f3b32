"""Core: config, types, errors, logging."""

from trading_agent.core.config import load_config, Config
from trading_agent.core.errors import (
    TradingAgentError,
    InsufficientDataError,
    AnalyzerError,
    LedgerRejection,
    InsufficientFundsError,
    NoPositionError,
    LedgerInvariantError,
    PersistenceError,
)
from trading_agent.core.types import (
    Action,
    TradeType,
    PriceSample,
    IndicatorSnapshot,
    TradingDecision,
    Position,
    Trade,
    Portfolio,
    PortfolioContext,
)
from trading_agent.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "TradingAgentError",
    "InsufficientDataError",
    "AnalyzerError",
    "LedgerRejection",
    "InsufficientFundsError",
    "NoPositionError",
    "LedgerInvariantError",
    "PersistenceError",
    "Action",
    "TradeType",
    "PriceSample",
    "IndicatorSnapshot",
    "TradingDecision",
    "Position",
    "Trade",
    "Portfolio",
    "PortfolioContext",
    "setup_logging",
]
