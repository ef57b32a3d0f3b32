"""AI-assisted paper trading agent: indicators, decision policy, ledger, orchestrator."""

__version__ = "0.1.0"
