"""Decision policy: analyzer-backed with a deterministic fallback."""

from trading_agent.decision.policy import DecisionPolicy, Analyzer, fallback_decision
from trading_agent.decision.prompts import PromptContext, build_prompt
from trading_agent.decision.parsing import extract_json_object, parse_decision
from trading_agent.decision.analyzers import OpenAIChatAnalyzer, OllamaAnalyzer, build_analyzer

__all__ = [
    "DecisionPolicy",
    "Analyzer",
    "fallback_decision",
    "PromptContext",
    "build_prompt",
    "extract_json_object",
    "parse_decision",
    "OpenAIChatAnalyzer",
    "OllamaAnalyzer",
    "build_analyzer",
]
