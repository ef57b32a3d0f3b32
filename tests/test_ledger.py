"""Unit tests for ledger.portfolio."""

import pytest
from trading_agent.core.errors import LedgerInvariantError
from trading_agent.core.types import Action, TradeType, TradingDecision
from trading_agent.ledger import MemoryStore, PortfolioLedger


def _clock():
    t = [1_000]

    def tick():
        t[0] += 1
        return t[0]
    return tick


def _ledger(cash=10000.0, store=None):
    return PortfolioLedger(store or MemoryStore(), initial_cash=cash, clock=_clock())


def _decision(action, symbol="BTC", sl=None, tp=None, conf=0.8):
    return TradingDecision(symbol=symbol, action=action, confidence=conf, reasoning="test",
                           stop_loss=sl, take_profit=tp)


def test_hold_is_noop():
    led = _ledger()
    assert led.execute_trade(_decision(Action.HOLD), 100.0, 1.0) is None
    p = led.get_portfolio()
    assert p.cash == 10000.0 and p.trades == [] and p.positions == []


def test_buy_rejected_when_insufficient_funds(caplog):
    led = _ledger(cash=100.0)
    with caplog.at_level("WARNING", logger="trading_agent.ledger"):
        assert led.execute_trade(_decision(Action.BUY), 10.0, 11.0) is None
    assert led.cash == 100.0
    assert led.get_portfolio().positions == []
    assert any("Rejected" in r.message for r in caplog.records)


def test_buy_exact_cash_allowed():
    led = _ledger(cash=100.0)
    trade = led.execute_trade(_decision(Action.BUY), 10.0, 10.0)
    assert trade is not None
    assert led.cash == 0.0


def test_buy_creates_position_with_brackets():
    led = _ledger()
    trade = led.execute_trade(_decision(Action.BUY, sl=98.0, tp=104.0), 100.0, 2.0)
    assert trade.type == TradeType.BUY
    assert trade.quantity == 2.0 and trade.price == 100.0
    pos = led.position("BTC")
    assert pos.quantity == 2.0 and pos.entry_price == 100.0
    assert pos.stop_loss == 98.0 and pos.take_profit == 104.0
    assert led.cash == pytest.approx(9800.0)


def test_buy_merges_with_weighted_average():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY, sl=90.0, tp=120.0), 100.0, 10.0)
    led.execute_trade(_decision(Action.BUY, sl=190.0, tp=None), 200.0, 10.0)
    p = led.get_portfolio()
    assert len(p.positions) == 1
    pos = p.positions[0]
    assert pos.quantity == 20.0
    assert pos.entry_price == pytest.approx(150.0)
    assert pos.stop_loss == 190.0 and pos.take_profit is None


def test_sell_clamped_to_held_quantity():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY), 40.0, 5.0)
    cash_before = led.cash
    trade = led.execute_trade(_decision(Action.SELL), 50.0, 10.0)
    assert trade.quantity == 5.0
    assert trade.realized_pnl == pytest.approx(50.0)
    assert led.position("BTC") is None
    assert led.cash - cash_before == pytest.approx(250.0)


def test_partial_sell_keeps_position():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY), 100.0, 4.0)
    led.execute_trade(_decision(Action.SELL), 110.0, 1.5)
    pos = led.position("BTC")
    assert pos.quantity == pytest.approx(2.5)
    assert pos.entry_price == 100.0


def test_sell_without_position_rejected():
    led = _ledger()
    assert led.execute_trade(_decision(Action.SELL), 100.0, 1.0) is None
    assert led.get_portfolio().trades == []


@pytest.mark.parametrize("price,qty", [(0.0, 1.0), (100.0, 0.0), (100.0, -1.0), (float("nan"), 1.0)])
def test_invalid_orders_rejected(price, qty):
    led = _ledger()
    assert led.execute_trade(_decision(Action.BUY), price, qty) is None
    assert led.cash == 10000.0


def test_trades_newest_first_with_monotonic_ids():
    led = _ledger()
    t1 = led.execute_trade(_decision(Action.BUY), 100.0, 1.0)
    t2 = led.execute_trade(_decision(Action.BUY, symbol="ETH"), 10.0, 1.0)
    trades = led.get_portfolio().trades
    assert [t.id for t in trades] == [t2.id, t1.id]
    assert t2.id > t1.id
    assert t2.timestamp > t1.timestamp


def test_get_portfolio_is_defensive_copy():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY), 100.0, 1.0)
    snap = led.get_portfolio()
    snap.cash = 0.0
    snap.positions[0].quantity = 999.0
    snap.trades.clear()
    assert led.cash == pytest.approx(9900.0)
    assert led.position("BTC").quantity == 1.0
    assert len(led.get_portfolio().trades) == 1


def test_update_positions_marks_and_revalues():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY), 100.0, 10.0)
    led.execute_trade(_decision(Action.BUY, symbol="ETH"), 50.0, 2.0)
    led.update_positions({"BTC": 110.0})
    p = led.get_portfolio()
    btc, eth = p.position("BTC"), p.position("ETH")
    assert btc.current_price == 110.0 and btc.unrealized_pnl == pytest.approx(100.0)
    assert eth.current_price == 50.0  # stale mark kept
    assert p.total_value == pytest.approx(p.cash + 1100.0 + 100.0)
    assert p.total_return == pytest.approx((p.total_value - 10000.0) / 10000.0 * 100)


def test_threshold_crossings_are_reported_not_closed():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY, sl=95.0, tp=110.0), 100.0, 1.0)
    led.execute_trade(_decision(Action.BUY, symbol="ETH", sl=9.0, tp=12.0), 10.0, 1.0)
    alerts = led.update_positions({"BTC": 94.0, "ETH": 12.5})
    kinds = {(a.symbol, a.kind) for a in alerts}
    assert kinds == {("BTC", "stop_loss"), ("ETH", "take_profit")}
    assert led.position("BTC") is not None and led.position("ETH") is not None


def test_reset_restores_initial_state():
    store = MemoryStore()
    led = _ledger(store=store)
    led.execute_trade(_decision(Action.BUY), 100.0, 3.0)
    led.update_positions({"BTC": 120.0})
    led.reset_portfolio()
    p = led.get_portfolio()
    assert p.total_value == 10000.0 and p.cash == 10000.0
    assert p.positions == [] and p.trades == []
    assert p.total_return == 0.0
    assert store.load("trading-portfolio")["trades"] == []


def test_state_persisted_and_restored():
    store = MemoryStore()
    led = _ledger(store=store)
    led.execute_trade(_decision(Action.BUY, sl=90.0), 100.0, 3.0)
    first = led.execute_trade(_decision(Action.SELL), 105.0, 1.0)

    restored = PortfolioLedger(store, initial_cash=10000.0)
    p = restored.get_portfolio()
    assert p.cash == pytest.approx(led.cash)
    assert p.position("BTC").quantity == pytest.approx(2.0)
    assert p.position("BTC").stop_loss == 90.0
    assert p.trades[0].type == TradeType.SELL
    nxt = restored.execute_trade(_decision(Action.BUY), 100.0, 1.0)
    assert nxt.id > first.id


def test_check_invariants_detects_desync():
    led = _ledger()
    led.execute_trade(_decision(Action.BUY), 100.0, 1.0)
    led.check_invariants()
    led._portfolio.positions.append(led._portfolio.positions[0])
    with pytest.raises(LedgerInvariantError):
        led.check_invariants()


def test_initial_cash_must_be_positive():
    with pytest.raises(ValueError):
        PortfolioLedger(MemoryStore(), initial_cash=0)
