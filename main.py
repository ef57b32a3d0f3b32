#!/usr/bin/env python3
"""
Trading Agent CLI: run | status | reset
Usage:
  python main.py run [--config config.yaml] [--prices ticks.csv | --synthetic 200] [--interval 10]
  python main.py status [--config config.yaml]
  python main.py reset [--config config.yaml]
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Optional

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trading_agent.analytics.metrics import compute_metrics
from trading_agent.core.config import Config, load_config
from trading_agent.core.logger import setup_logging
from trading_agent.decision.analyzers import build_analyzer
from trading_agent.decision.policy import DecisionPolicy
from trading_agent.engine.orchestrator import TickResult, TradingOrchestrator
from trading_agent.feeds.history import PriceHistory
from trading_agent.feeds.sources import CsvPriceFeed, Tick, random_walk_ticks
from trading_agent.ledger.portfolio import PortfolioLedger, now_ms
from trading_agent.ledger.store import JsonFileStore
from trading_agent.risk.sizing import PositionSizer

logger = logging.getLogger("trading_agent")


def _setup(config_path: Optional[Path]) -> tuple[Config, PortfolioLedger]:
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file, config.log_decision_level)
    store = JsonFileStore(config.state_dir)
    ledger = PortfolioLedger(store, initial_cash=config.initial_cash, key=config.state_key)
    return config, ledger


def build_orchestrator(config: Config, ledger: PortfolioLedger) -> TradingOrchestrator:
    policy = DecisionPolicy(build_analyzer(config), history_window=config.history_window)
    sizer = PositionSizer(
        base_risk_pct=config.base_risk_pct,
        confidence_risk_pct=config.confidence_risk_pct,
        min_confidence=config.min_confidence,
        step=config.quantity_step,
    )
    return TradingOrchestrator(
        ledger=ledger,
        policy=policy,
        sizer=sizer,
        min_history=config.min_history,
        report_limit=config.report_limit,
        strict=config.strict,
        indicator_settings={
            "rsi_short_len": config.rsi_short_len,
            "rsi_long_len": config.rsi_long_len,
            "ema_len": config.ema_len,
            "macd_fast": config.macd_fast,
            "macd_slow": config.macd_slow,
            "history_window": config.history_window,
        },
    )


def print_tick(result: TickResult) -> None:
    p = result.portfolio
    print(f"Value ${p.total_value:,.2f} | Cash ${p.cash:,.2f} | Return {p.total_return:+.2f}% | Positions {len(p.positions)}")
    for trade in result.trades:
        print(f"  {trade.type.value} {trade.symbol} {trade.quantity} @ {trade.price:.4f} ({trade.reason})")
    for alert in result.alerts:
        print(f"  ALERT {alert.symbol} {alert.kind} at {alert.price:.4f} (threshold {alert.threshold:.4f})")


def run(config_path: Optional[Path], prices_csv: Optional[Path], synthetic: int, interval: Optional[float]) -> int:
    """Drive ticks from a CSV replay or a synthetic random walk."""
    config, ledger = _setup(config_path)
    orchestrator = build_orchestrator(config, ledger)
    orchestrator.on_publish = print_tick
    history = PriceHistory(maxlen=config.history_size)

    ticks: Iterable[Tick]
    if prices_csv is not None:
        ticks = CsvPriceFeed(prices_csv, config.symbols).ticks()
    else:
        ticks = random_walk_ticks(config.symbols, synthetic, start_ts=now_ms())
    delay = config.tick_interval_s if interval is None else interval

    logger.info("Agent starting | symbols=%s | provider=%s", config.symbols, config.ai_provider)
    try:
        for ts, prices in ticks:
            history.update(prices, ts)
            orchestrator.on_tick(prices, history.snapshot())
            if delay > 0:
                time.sleep(delay)
    except KeyboardInterrupt:
        logger.info("Shutdown by user")

    metrics = compute_metrics(ledger.get_portfolio(), orchestrator.equity_curve)
    print("\n--- Session Summary ---")
    print(f"Total return: {metrics.total_return_pct:.2f}%")
    print(f"Max drawdown: {metrics.max_drawdown_pct:.2f}%")
    print(f"Closed trades: {metrics.closed_trades} (win rate {metrics.win_rate*100:.1f}%)")
    for report in orchestrator.reports[:10]:
        print(report.summary())
    return 0


def status(config_path: Optional[Path]) -> int:
    _, ledger = _setup(config_path)
    portfolio = ledger.get_portfolio()
    m = compute_metrics(portfolio)
    print(f"Cash: ${portfolio.cash:,.2f}")
    print(f"Total value: ${portfolio.total_value:,.2f} ({portfolio.total_return:+.2f}%)")
    for pos in portfolio.positions:
        print(f"  {pos.symbol}: {pos.quantity} @ {pos.entry_price:.4f} -> {pos.current_price:.4f} (P&L {pos.unrealized_pnl:+.2f})")
    print(f"Trades: {len(portfolio.trades)} | Realized P&L: {m.realized_pnl:+.2f} | Profit factor: {m.profit_factor:.2f}")
    return 0


def reset(config_path: Optional[Path]) -> int:
    _, ledger = _setup(config_path)
    ledger.reset_portfolio()
    print(f"Portfolio reset to ${ledger.initial_cash:,.2f}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="AI paper-trading agent")
    parser.add_argument("mode", choices=["run", "status", "reset"], help="Run the agent, show status, or reset")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--prices", type=Path, default=None, help="CSV of timestamp,symbol,price to replay (configured symbols only)")
    parser.add_argument("--synthetic", type=int, default=200, help="Synthetic ticks when no CSV is given")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between ticks (overrides config)")
    args = parser.parse_args()
    if args.mode == "run":
        return run(args.config, args.prices, args.synthetic, args.interval)
    if args.mode == "status":
        return status(args.config)
    return reset(args.config)


if __name__ == "__main__":
    sys.exit(main())
