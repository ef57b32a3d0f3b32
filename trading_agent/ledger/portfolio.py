"""
Paper-trading ledger: cash, open long positions, trade history.
Mutated only through execute_trade / update_positions / reset_portfolio;
every mutation is persisted immediately.
"""

from __future__ import annotations
import copy
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

from trading_agent.core.errors import (
    InsufficientFundsError,
    LedgerInvariantError,
    LedgerRejection,
    NoPositionError,
)
from trading_agent.core.types import Action, Portfolio, Position, Trade, TradeType, TradingDecision
from trading_agent.ledger.store import StateStore

logger = logging.getLogger("trading_agent.ledger")

DEFAULT_STATE_KEY = "trading-portfolio"
VALUE_TOLERANCE = 1e-6


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ThresholdAlert:
    """Stop-loss or take-profit crossed during a mark. Informational only."""
    symbol: str
    kind: str  # "stop_loss" | "take_profit"
    price: float
    threshold: float


class PortfolioLedger:
    """
    Long-only ledger. BUYs never overdraw cash; SELLs are clamped to the
    held quantity; at most one position per symbol.
    """

    def __init__(
        self,
        store: StateStore,
        initial_cash: float = 10000.0,
        key: str = DEFAULT_STATE_KEY,
        clock: Callable[[], int] = now_ms,
    ):
        if initial_cash <= 0:
            raise ValueError("initial_cash must be positive")
        self.store = store
        self.initial_cash = float(initial_cash)
        self.key = key
        self._clock = clock
        saved = store.load(key)
        if saved:
            self._portfolio = Portfolio.from_dict(saved)
            logger.info(
                "Restored portfolio: cash %.2f, %d positions, %d trades",
                self._portfolio.cash, len(self._portfolio.positions), len(self._portfolio.trades),
            )
        else:
            self._portfolio = self._fresh()
        self._next_id = max((t.id for t in self._portfolio.trades), default=0) + 1

    def _fresh(self) -> Portfolio:
        return Portfolio(cash=self.initial_cash, total_value=self.initial_cash, total_return=0.0)

    # --- Queries ---
    def get_portfolio(self) -> Portfolio:
        """Deep copy; mutating it does not affect the ledger."""
        return copy.deepcopy(self._portfolio)

    @property
    def cash(self) -> float:
        return self._portfolio.cash

    @property
    def total_value(self) -> float:
        return self._portfolio.total_value

    def position(self, symbol: str) -> Optional[Position]:
        pos = self._portfolio.position(symbol)
        return copy.deepcopy(pos) if pos is not None else None

    # --- Mutations ---
    def execute_trade(self, decision: TradingDecision, current_price: float, quantity: float) -> Optional[Trade]:
        """
        Apply a decision at current_price. Returns the recorded Trade, or None
        for HOLD and rejected requests (logged as warnings).
        """
        if decision.action == Action.HOLD:
            return None
        try:
            self._validate_order(current_price, quantity)
            if decision.action == Action.BUY:
                trade = self._apply_buy(decision, current_price, quantity)
            else:
                trade = self._apply_sell(decision, current_price, quantity)
        except LedgerRejection as e:
            logger.warning("Rejected %s %s: %s", decision.action.value, decision.symbol, e)
            return None

        self._portfolio.trades.insert(0, trade)
        self._revalue()
        self._save()
        logger.info(
            "%s %s qty=%.4f @ %.4f (conf=%.2f) cash=%.2f",
            trade.type.value, trade.symbol, trade.quantity, trade.price, trade.confidence, self._portfolio.cash,
        )
        return trade

    def _validate_order(self, price: float, quantity: float) -> None:
        if not (math.isfinite(price) and price > 0):
            raise LedgerRejection(f"invalid price {price}")
        if not (math.isfinite(quantity) and quantity > 0):
            raise LedgerRejection(f"invalid quantity {quantity}")

    def _new_trade(
        self,
        decision: TradingDecision,
        trade_type: TradeType,
        quantity: float,
        price: float,
        realized_pnl: Optional[float] = None,
    ) -> Trade:
        trade = Trade(
            id=self._next_id,
            symbol=decision.symbol,
            type=trade_type,
            quantity=quantity,
            price=price,
            timestamp=self._clock(),
            reason=decision.reasoning,
            confidence=decision.confidence,
            realized_pnl=realized_pnl,
        )
        self._next_id += 1
        return trade

    def _apply_buy(self, decision: TradingDecision, price: float, quantity: float) -> Trade:
        cost = quantity * price
        if cost > self._portfolio.cash:
            raise InsufficientFundsError(f"cost {cost:.2f} > cash {self._portfolio.cash:.2f}")
        self._portfolio.cash -= cost

        pos = self._portfolio.position(decision.symbol)
        if pos is not None:
            total_qty = pos.quantity + quantity
            pos.entry_price = (pos.entry_price * pos.quantity + price * quantity) / total_qty
            pos.quantity = total_qty
            pos.stop_loss = decision.stop_loss
            pos.take_profit = decision.take_profit
            pos.mark(price)
        else:
            self._portfolio.positions.append(Position(
                symbol=decision.symbol,
                quantity=quantity,
                entry_price=price,
                current_price=price,
                entry_time=self._clock(),
                stop_loss=decision.stop_loss,
                take_profit=decision.take_profit,
            ))
        return self._new_trade(decision, TradeType.BUY, quantity, price)

    def _apply_sell(self, decision: TradingDecision, price: float, quantity: float) -> Trade:
        pos = self._portfolio.position(decision.symbol)
        if pos is None:
            raise NoPositionError("no position to sell")
        sell_qty = min(quantity, pos.quantity)
        realized = (price - pos.entry_price) * sell_qty
        self._portfolio.cash += sell_qty * price
        pos.quantity -= sell_qty
        if pos.quantity <= 0:
            self._portfolio.positions.remove(pos)
        else:
            pos.mark(pos.current_price)
        return self._new_trade(decision, TradeType.SELL, sell_qty, price, realized_pnl=realized)

    def update_positions(self, prices: Mapping[str, float]) -> List[ThresholdAlert]:
        """
        Mark positions with a known price; others keep their last mark.
        Returns stop-loss / take-profit crossings (positions are not closed).
        """
        alerts: List[ThresholdAlert] = []
        for pos in self._portfolio.positions:
            price = prices.get(pos.symbol)
            if price is None or not math.isfinite(price) or price <= 0:
                continue
            pos.mark(price)
            if pos.stop_loss and price <= pos.stop_loss:
                logger.info("Stop loss hit for %s: %.4f <= %.4f", pos.symbol, price, pos.stop_loss)
                alerts.append(ThresholdAlert(pos.symbol, "stop_loss", price, pos.stop_loss))
            if pos.take_profit and price >= pos.take_profit:
                logger.info("Take profit hit for %s: %.4f >= %.4f", pos.symbol, price, pos.take_profit)
                alerts.append(ThresholdAlert(pos.symbol, "take_profit", price, pos.take_profit))
        self._revalue()
        self._save()
        return alerts

    def reset_portfolio(self) -> None:
        """Back to initial cash; positions and trade history discarded."""
        self._portfolio = self._fresh()
        self._next_id = 1
        self._save()
        logger.info("Portfolio reset to %.2f", self.initial_cash)

    # --- Internals ---
    def _revalue(self) -> None:
        p = self._portfolio
        p.total_value = p.cash + sum(pos.market_value for pos in p.positions)
        p.total_return = (p.total_value - self.initial_cash) / self.initial_cash * 100

    def _save(self) -> None:
        self.store.save(self.key, self._portfolio.to_dict())

    def check_invariants(self) -> None:
        """Raise LedgerInvariantError if internal state is inconsistent."""
        p = self._portfolio
        symbols = [pos.symbol for pos in p.positions]
        if len(symbols) != len(set(symbols)):
            raise LedgerInvariantError(f"duplicate positions: {symbols}")
        for pos in p.positions:
            if pos.quantity <= 0:
                raise LedgerInvariantError(f"non-positive quantity for {pos.symbol}: {pos.quantity}")
        if p.cash < -VALUE_TOLERANCE:
            raise LedgerInvariantError(f"negative cash: {p.cash}")
        expected = p.cash + sum(pos.market_value for pos in p.positions)
        if abs(expected - p.total_value) > VALUE_TOLERANCE * max(1.0, abs(expected)):
            raise LedgerInvariantError(f"total value {p.total_value} != {expected}")
