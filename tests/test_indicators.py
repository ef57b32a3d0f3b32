"""Unit tests for indicators.technical."""

import random

import pytest
from trading_agent.core.errors import InsufficientDataError
from trading_agent.indicators import compute_ema, compute_macd, compute_rsi, compute_snapshot


def test_rsi_bounds_random_walk():
    rng = random.Random(7)
    prices = [100.0]
    for _ in range(200):
        prices.append(max(1.0, prices[-1] + rng.uniform(-3, 3)))
    for end in range(2, len(prices)):
        rsi = compute_rsi(prices[:end], 14)
        assert 0.0 <= rsi <= 100.0


def test_rsi_strictly_increasing_is_100():
    assert compute_rsi(list(range(1, 30)), 14) == 100.0


def test_rsi_strictly_decreasing_is_0():
    assert compute_rsi(list(range(30, 1, -1)), 14) == 0.0


def test_rsi_neutral_when_not_enough_deltas():
    assert compute_rsi([1.0, 2.0, 3.0], 14) == 50.0


def test_rsi_flat_prices_neutral():
    assert compute_rsi([5.0] * 20, 7) == 50.0


def test_rsi_uses_last_period_deltas():
    # last 4 deltas: +2, -1, +2, -1 -> avg gain 1.0, avg loss 0.5 -> rs 2 -> 66.67
    prices = [50, 10, 12, 11, 13, 12]
    assert compute_rsi(prices, 4) == pytest.approx(100 - 100 / 3)


def test_ema_constant_sequence():
    assert compute_ema([42.5] * 30, 20) == pytest.approx(42.5)


def test_ema_seeded_with_sma():
    # seed mean(1,2,3)=2, alpha=0.5: 4 -> 3, 5 -> 4
    assert compute_ema([1, 2, 3, 4, 5], 3) == pytest.approx(4.0)


def test_ema_short_input_is_mean():
    assert compute_ema([2.0, 4.0], 20) == pytest.approx(3.0)


def test_macd_sign():
    assert compute_macd([10.0] * 40)["macd"] == pytest.approx(0.0)
    assert compute_macd([float(i) for i in range(1, 41)])["macd"] > 0
    assert compute_macd([float(i) for i in range(40, 0, -1)])["macd"] < 0


@pytest.mark.parametrize("fn", [compute_rsi, compute_ema])
def test_insufficient_data(fn):
    with pytest.raises(InsufficientDataError):
        fn([100.0], 14)
    with pytest.raises(InsufficientDataError):
        fn([], 14)


def test_macd_insufficient_data():
    with pytest.raises(InsufficientDataError):
        compute_macd([1.0])


def test_non_finite_prices_rejected():
    with pytest.raises(ValueError):
        compute_ema([1.0, float("nan"), 2.0], 3)


def test_snapshot_histories_aligned_to_window():
    prices = [100 + (i % 5) for i in range(30)]
    snap = compute_snapshot(prices, history_window=10)
    assert snap.price_history == [float(p) for p in prices[-10:]]
    assert len(snap.ema_history) == len(snap.macd_history) == len(snap.rsi_history) == 10
    assert snap.ema_history[-1] == pytest.approx(snap.ema)
    assert snap.macd_history[-1] == pytest.approx(snap.macd)
    assert snap.rsi_history[-1] == pytest.approx(snap.rsi_short)


def test_snapshot_is_pure():
    prices = [float(p) for p in range(1, 25)]
    assert compute_snapshot(prices) == compute_snapshot(list(prices))
