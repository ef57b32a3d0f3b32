"""
Tolerant extraction of a JSON object from free-form analyzer text, followed
by strict validation into a TradingDecision.
"""

from __future__ import annotations
import json
import math
from typing import Any, Optional

from trading_agent.core.errors import AnalyzerError
from trading_agent.core.types import Action, TradingDecision


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced top-level {...} substring, or None.
    Braces inside JSON strings are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def parse_decision(text: str, symbol: str) -> TradingDecision:
    """Raise AnalyzerError when no valid decision object can be recovered."""
    if not isinstance(text, str):
        raise AnalyzerError("analyzer response is not text")
    raw = extract_json_object(text)
    if raw is None:
        raise AnalyzerError("no JSON object in analyzer response")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise AnalyzerError(f"invalid JSON in analyzer response: {e}") from e
    if not isinstance(parsed, dict):
        raise AnalyzerError("analyzer JSON is not an object")

    action_raw = parsed.get("decision") or "HOLD"
    try:
        action = Action(str(action_raw).strip().upper())
    except ValueError as e:
        raise AnalyzerError(f"unknown decision {action_raw!r}") from e

    if parsed.get("confidence") is None:
        confidence = 0.5
    else:
        confidence = _number(parsed["confidence"])
        if confidence is None:
            raise AnalyzerError(f"non-numeric confidence {parsed['confidence']!r}")
        confidence = min(1.0, max(0.0, confidence))

    invalidation = parsed.get("invalidationCondition")
    return TradingDecision(
        symbol=symbol,
        action=action,
        confidence=confidence,
        reasoning=str(parsed.get("reasoning") or "AI analysis"),
        stop_loss=_number(parsed.get("stopLoss")),
        take_profit=_number(parsed.get("takeProfit")),
        chain_of_thought=str(parsed.get("chainOfThought") or "No detailed analysis provided"),
        invalidation_condition=str(invalidation) if invalidation is not None else None,
        source="ai",
    )
