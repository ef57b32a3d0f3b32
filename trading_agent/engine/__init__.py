"""Trading orchestrator."""

from trading_agent.engine.orchestrator import TradingOrchestrator, TickResult, DecisionReport

__all__ = ["TradingOrchestrator", "TickResult", "DecisionReport"]
