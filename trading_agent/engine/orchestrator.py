"""
Tick driver: indicators -> decision -> sizing -> ledger -> mark-to-market ->
publish. One run at a time; ticks arriving mid-run are dropped.
"""

from __future__ import annotations
import logging
import math
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from trading_agent.core.errors import InsufficientDataError, LedgerInvariantError
from trading_agent.core.types import (
    Action,
    Portfolio,
    PortfolioContext,
    PriceSample,
    Trade,
    TradingDecision,
)
from trading_agent.decision.policy import DecisionPolicy
from trading_agent.indicators.technical import compute_snapshot
from trading_agent.ledger.portfolio import PortfolioLedger, ThresholdAlert, now_ms
from trading_agent.risk.sizing import PositionSizer

logger = logging.getLogger("trading_agent.engine")

PriceInput = Union[float, Mapping[str, Any]]
HistoryInput = Sequence[Union[PriceSample, float]]


@dataclass(frozen=True)
class DecisionReport:
    """Human-readable record of one decision, kept whether or not it traded."""
    symbol: str
    action: Action
    confidence: float
    reasoning: str
    timestamp: int
    chain_of_thought: str = ""
    source: str = "fallback"
    trade_id: Optional[int] = None

    def summary(self) -> str:
        ts = datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        traded = f" trade #{self.trade_id}" if self.trade_id is not None else ""
        return (
            f"[{ts}] {self.symbol} {self.action.value} ({self.confidence:.0%}, {self.source}){traded}: "
            f"{self.reasoning}"
        )


@dataclass
class TickResult:
    """What one tick publishes to the presentation layer."""
    portfolio: Portfolio
    decisions: List[TradingDecision] = field(default_factory=list)
    reports: List[DecisionReport] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    alerts: List[ThresholdAlert] = field(default_factory=list)


def _price_of(value: PriceInput) -> float:
    if isinstance(value, Mapping):
        return float(value["price"])
    return float(value)


def _closes(samples: HistoryInput) -> List[float]:
    return [s.price if isinstance(s, PriceSample) else float(s) for s in samples]


class TradingOrchestrator:
    """
    Owns the per-tick workflow. The ledger, policy and sizer are passed in so
    several independent orchestrators can coexist in one process.
    """

    def __init__(
        self,
        ledger: PortfolioLedger,
        policy: DecisionPolicy,
        sizer: Optional[PositionSizer] = None,
        min_history: int = 20,
        report_limit: int = 50,
        strict: bool = True,
        indicator_settings: Optional[Dict[str, int]] = None,
        clock: Callable[[], int] = now_ms,
        on_publish: Optional[Callable[[TickResult], None]] = None,
    ):
        self.ledger = ledger
        self.policy = policy
        self.sizer = sizer or PositionSizer()
        self.min_history = min_history
        self.strict = strict
        self.indicator_settings = dict(indicator_settings or {})
        self._clock = clock
        self.on_publish = on_publish
        self._reports: Deque[DecisionReport] = deque(maxlen=report_limit)
        self._run_lock = threading.Lock()
        self.dropped_ticks = 0
        self.equity_curve: List[float] = []

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def reports(self) -> List[DecisionReport]:
        """Newest first, capped at report_limit."""
        return list(self._reports)

    def on_tick(
        self,
        prices: Mapping[str, PriceInput],
        history: Mapping[str, HistoryInput],
    ) -> Optional[TickResult]:
        """Run one decision round. Returns None if a previous round is still in flight."""
        if not self._run_lock.acquire(blocking=False):
            self.dropped_ticks += 1
            logger.debug("Tick dropped: previous run still in progress")
            return None
        try:
            return self._run(prices, history)
        finally:
            self._run_lock.release()

    def _run(self, prices: Mapping[str, PriceInput], history: Mapping[str, HistoryInput]) -> TickResult:
        current: Dict[str, float] = {}
        for symbol, value in prices.items():
            try:
                price = _price_of(value)
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring malformed price for %s: %r", symbol, value)
                continue
            if not math.isfinite(price) or price <= 0:
                logger.warning("Ignoring non-positive price for %s: %r", symbol, price)
                continue
            current[symbol] = price

        decisions: List[TradingDecision] = []
        trades: List[Trade] = []
        for symbol, price in current.items():
            samples = history.get(symbol, ())
            if len(samples) < self.min_history:
                continue
            try:
                decision, trade = self._process_symbol(symbol, price, samples)
            except InsufficientDataError as e:
                logger.debug("Skipping %s this tick: %s", symbol, e)
                continue
            except LedgerInvariantError:
                if self.strict:
                    raise
                logger.exception("Ledger invariant violated while processing %s; skipping", symbol)
                continue
            except Exception as e:
                logger.exception("Decision round failed for %s: %s", symbol, e)
                continue
            decisions.append(decision)
            if trade is not None:
                trades.append(trade)

        alerts = self.ledger.update_positions(current)
        try:
            self.ledger.check_invariants()
        except LedgerInvariantError:
            if self.strict:
                raise
            logger.exception("Ledger invariant violated after mark-to-market")

        portfolio = self.ledger.get_portfolio()
        self.equity_curve.append(portfolio.total_value)
        result = TickResult(
            portfolio=portfolio,
            decisions=decisions,
            reports=self.reports,
            trades=trades,
            alerts=alerts,
        )
        if self.on_publish is not None:
            self.on_publish(result)
        return result

    def _process_symbol(
        self, symbol: str, price: float, samples: HistoryInput
    ) -> Tuple[TradingDecision, Optional[Trade]]:
        indicators = compute_snapshot(_closes(samples), **self.indicator_settings)
        position = self.ledger.position(symbol)
        context = PortfolioContext(
            position=position,
            total_value=self.ledger.total_value,
            cash=self.ledger.cash,
        )
        decision = self.policy.decide(symbol, price, indicators, context)

        trade = None
        if self.sizer.should_trade(decision):
            if decision.action == Action.BUY:
                qty = self.sizer.quantity(self.ledger.cash, price, decision.confidence)
                if qty > 0:
                    trade = self.ledger.execute_trade(decision, price, qty)
            elif position is not None:
                # SELL exits the whole holding, not the risk-sized amount
                trade = self.ledger.execute_trade(decision, price, position.quantity)
            if trade is not None:
                self.ledger.check_invariants()

        self._reports.appendleft(DecisionReport(
            symbol=symbol,
            action=decision.action,
            confidence=decision.confidence,
            reasoning=decision.reasoning,
            timestamp=self._clock(),
            chain_of_thought=decision.chain_of_thought,
            source=decision.source,
            trade_id=trade.id if trade is not None else None,
        ))
        return decision, trade

