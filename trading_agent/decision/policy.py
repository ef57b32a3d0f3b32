"""
Decision policy: external analyzer first, deterministic indicator rules as
fallback. Analyzer failures never leave this module.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

from trading_agent.core.errors import AnalyzerError
from trading_agent.core.types import Action, IndicatorSnapshot, PortfolioContext, TradingDecision
from trading_agent.decision.parsing import parse_decision
from trading_agent.decision.prompts import PromptContext, build_prompt

logger = logging.getLogger("trading_agent.decision")

Analyzer = Callable[[PromptContext], str]

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
SIGNAL_CONFIDENCE = 0.75
NEUTRAL_CONFIDENCE = 0.5
STOP_LOSS_MULT = 0.98
TAKE_PROFIT_MULT = 1.04


def fallback_decision(symbol: str, price: float, indicators: IndicatorSnapshot) -> TradingDecision:
    """
    Rule set on RSI(short) + MACD + price vs EMA. Pure arithmetic.
    BUY:  rsi < 30, macd > 0, price > ema (SL -2%, TP +4%).
    SELL: rsi > 70, macd < 0, price < ema.
    """
    rsi, macd, ema = indicators.rsi_short, indicators.macd, indicators.ema
    if rsi < RSI_OVERSOLD and macd > 0 and price > ema:
        return TradingDecision(
            symbol=symbol,
            action=Action.BUY,
            confidence=SIGNAL_CONFIDENCE,
            reasoning="RSI oversold with bullish MACD and price above EMA",
            stop_loss=price * STOP_LOSS_MULT,
            take_profit=price * TAKE_PROFIT_MULT,
            chain_of_thought=(
                "Oversold RSI combined with positive MACD momentum and price trading above "
                "the EMA suggests a potential reversal."
            ),
            invalidation_condition="Price closes below EMA",
        )
    if rsi > RSI_OVERBOUGHT and macd < 0 and price < ema:
        return TradingDecision(
            symbol=symbol,
            action=Action.SELL,
            confidence=SIGNAL_CONFIDENCE,
            reasoning="RSI overbought with bearish MACD and price below EMA",
            chain_of_thought=(
                "Overbought RSI with negative MACD momentum and price below the EMA "
                "indicates potential downside."
            ),
            invalidation_condition="Price closes above EMA",
        )
    return TradingDecision(
        symbol=symbol,
        action=Action.HOLD,
        confidence=NEUTRAL_CONFIDENCE,
        reasoning="No clear trading signal",
        chain_of_thought="RSI is neutral and MACD shows mixed signals. Waiting for a clearer setup.",
        invalidation_condition="N/A",
    )


class DecisionPolicy:
    """
    decide() makes at most one analyzer call. Without an analyzer, or when
    the call raises or its text cannot be parsed, the fallback rules decide.
    """

    def __init__(self, analyzer: Optional[Analyzer] = None, history_window: int = 10):
        self.analyzer = analyzer
        self.history_window = history_window

    def decide(
        self,
        symbol: str,
        price: float,
        indicators: IndicatorSnapshot,
        context: PortfolioContext,
    ) -> TradingDecision:
        if self.analyzer is None:
            return fallback_decision(symbol, price, indicators)

        prompt = build_prompt(symbol, price, indicators, context, self.history_window)
        try:
            text = self.analyzer(prompt)
        except Exception as e:
            logger.warning("Analyzer call failed for %s, using fallback: %s", symbol, e)
            return fallback_decision(symbol, price, indicators)

        try:
            decision = parse_decision(text, symbol)
        except AnalyzerError as e:
            logger.warning("Unparseable analyzer response for %s, using fallback: %s", symbol, e)
            return fallback_decision(symbol, price, indicators)

        logger.debug("Analyzer decision %s %s conf=%.2f", symbol, decision.action.value, decision.confidence)
        return decision
