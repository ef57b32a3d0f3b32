"""Deterministic prompt construction for the external analyzer."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from trading_agent.core.types import IndicatorSnapshot, PortfolioContext

SYSTEM_PROMPT = (
    "You are a professional crypto trading analyst with expertise in technical analysis. "
    "Always respond with valid JSON."
)

RESPONSE_FORMAT = """Respond in this EXACT JSON format:
{
  "chainOfThought": "Your detailed analysis process here. Explain what you see in the data, why you're making this decision, and what conditions would invalidate your thesis.",
  "decision": "BUY|SELL|HOLD",
  "confidence": 0.0-1.0,
  "reasoning": "Brief summary of your decision",
  "stopLoss": price_number,
  "takeProfit": price_number,
  "invalidationCondition": "What would make you exit this trade"
}"""


@dataclass(frozen=True)
class PromptContext:
    """Analyzer input: one symbol, system + user prompt."""
    symbol: str
    system_prompt: str
    user_prompt: str


def _fmt(values: Sequence[float], digits: int, window: int) -> str:
    return ", ".join(f"{v:.{digits}f}" for v in list(values)[-window:])


def _optional_price(value) -> str:
    return f"${value}" if value else "Not set"


def build_prompt(
    symbol: str,
    price: float,
    indicators: IndicatorSnapshot,
    context: PortfolioContext,
    history_window: int = 10,
) -> PromptContext:
    """Same inputs always produce the same prompt text."""
    lines = [
        f"You are a professional crypto trader analyzing {symbol}. Provide a detailed trading decision.",
        "",
        f"CURRENT MARKET STATE FOR {symbol}",
        f"Current Price: ${price}",
        f"Current EMA: ${indicators.ema:.2f}",
        f"Current MACD: {indicators.macd:.3f}",
        f"Current RSI (short): {indicators.rsi_short:.2f}",
        f"Current RSI (long): {indicators.rsi_long:.2f}",
        "",
        "Intraday Price History (oldest -> newest):",
        _fmt(indicators.price_history, 2, history_window),
        "",
        "EMA History:",
        _fmt(indicators.ema_history, 2, history_window),
        "",
        "MACD History:",
        _fmt(indicators.macd_history, 3, history_window),
        "",
        "RSI (short) History:",
        _fmt(indicators.rsi_history, 2, history_window),
    ]
    for key in sorted(indicators.extra):
        lines.append(f"{key}: {indicators.extra[key]}")

    lines += [
        "",
        "YOUR ACCOUNT INFORMATION",
        f"Portfolio Value: ${context.total_value:.2f}",
        f"Available Cash: ${context.cash:.2f}",
        "",
    ]
    pos = context.position
    if pos is not None:
        lines += [
            f"CURRENT POSITION IN {symbol}:",
            f"Quantity: {pos.quantity}",
            f"Entry Price: ${pos.entry_price}",
            f"Current Price: ${price}",
            f"Unrealized P&L: ${pos.unrealized_pnl:.2f}",
            f"Stop Loss: {_optional_price(pos.stop_loss)}",
            f"Take Profit: {_optional_price(pos.take_profit)}",
        ]
    else:
        lines.append("No current position in this asset.")
    for key in sorted(context.extra):
        lines.append(f"{key}: {context.extra[key]}")

    lines += [
        "",
        "INSTRUCTIONS:",
        "1. Analyze the technical indicators (EMA, MACD, RSI)",
        "2. Consider the trend direction and momentum",
        "3. Evaluate risk/reward ratio",
        "4. Provide your decision: BUY, SELL, or HOLD",
        "",
        RESPONSE_FORMAT,
    ]
    return PromptContext(symbol=symbol, system_prompt=SYSTEM_PROMPT, user_prompt="\n".join(lines))
