"""
Exception hierarchy. Ledger rejections and analyzer failures are caught
inside the engine; only invariant and persistence errors reach callers.
"""

from __future__ import annotations


class TradingAgentError(Exception):
    """Base class for all trading_agent errors."""


class InsufficientDataError(TradingAgentError):
    """Not enough price history to compute an indicator."""


class AnalyzerError(TradingAgentError):
    """Outbound analyzer call failed or returned an unusable response."""


class LedgerRejection(TradingAgentError):
    """A trade request the ledger refused to apply."""


class InsufficientFundsError(LedgerRejection):
    """BUY cost exceeds available cash."""


class NoPositionError(LedgerRejection):
    """SELL requested for a symbol with no open position."""


class LedgerInvariantError(TradingAgentError):
    """Internal ledger state is inconsistent (programming error)."""


class PersistenceError(TradingAgentError):
    """Persisted snapshot could not be read or written."""
