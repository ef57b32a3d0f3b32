"""
Confidence-scaled position sizing.
risk_pct = base + confidence * scale; qty = floor(cash * risk_pct / price, step).
"""

from __future__ import annotations
import math

from trading_agent.core.types import Action, TradingDecision


def truncate_quantity(qty: float, step: float = 0.01) -> float:
    """Round down to step; 0 for non-positive input."""
    if qty <= 0:
        return 0.0
    # scaled floor avoids 0.29 / 0.01 -> 28.999...
    decimals = max(0, -int(math.floor(math.log10(step)))) if step < 1 else 0
    return round(math.floor(round(qty / step, 9)) * step, decimals)


class PositionSizer:
    """Decides whether a decision is actionable and how much to buy."""

    def __init__(
        self,
        base_risk_pct: float = 0.02,
        confidence_risk_pct: float = 0.03,
        min_confidence: float = 0.65,
        step: float = 0.01,
    ):
        self.base_risk_pct = base_risk_pct
        self.confidence_risk_pct = confidence_risk_pct
        self.min_confidence = min_confidence
        self.step = step

    def should_trade(self, decision: TradingDecision) -> bool:
        """Non-HOLD and confidence strictly above the threshold."""
        return decision.action != Action.HOLD and decision.confidence > self.min_confidence

    def risk_pct(self, confidence: float) -> float:
        return self.base_risk_pct + confidence * self.confidence_risk_pct

    def quantity(self, cash: float, price: float, confidence: float) -> float:
        if price <= 0 or cash <= 0:
            return 0.0
        risk_amount = cash * self.risk_pct(confidence)
        return truncate_quantity(risk_amount / price, self.step)
