"""Unit tests for decision.analyzers (HTTP transport mocked)."""

import pytest
import requests

from trading_agent.core.config import Config
from trading_agent.core.errors import AnalyzerError
from trading_agent.core.types import Action, IndicatorSnapshot, PortfolioContext
from trading_agent.decision import analyzers
from trading_agent.decision.analyzers import OllamaAnalyzer, OpenAIChatAnalyzer, build_analyzer
from trading_agent.decision.policy import DecisionPolicy, fallback_decision
from trading_agent.decision.prompts import PromptContext

PROMPT = PromptContext(symbol="BTC", system_prompt="sys", user_prompt="user")


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


def test_openai_returns_message_content(monkeypatch):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen.update(url=url, json=json, headers=headers, timeout=timeout)
        return FakeResponse(payload={"choices": [{"message": {"content": '{"decision": "BUY"}'}}]})

    monkeypatch.setattr(analyzers.requests, "post", fake_post)
    a = OpenAIChatAnalyzer(api_key="k", model="m", timeout=5.0)
    assert a(PROMPT) == '{"decision": "BUY"}'
    assert seen["url"] == analyzers.OPENAI_URL
    assert seen["timeout"] == 5.0
    assert seen["headers"]["Authorization"] == "Bearer k"
    assert seen["json"]["messages"][0] == {"role": "system", "content": "sys"}


def test_openai_requires_key():
    with pytest.raises(AnalyzerError):
        OpenAIChatAnalyzer(api_key="")


def test_http_error_becomes_analyzer_error(monkeypatch):
    monkeypatch.setattr(analyzers.requests, "post", lambda *a, **k: FakeResponse(status_code=500, text="boom"))
    with pytest.raises(AnalyzerError):
        OpenAIChatAnalyzer(api_key="k")(PROMPT)


def test_timeout_becomes_analyzer_error(monkeypatch):
    def fake_post(*a, **k):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(analyzers.requests, "post", fake_post)
    with pytest.raises(AnalyzerError):
        OllamaAnalyzer()(PROMPT)


def test_rate_limit_makes_one_call_then_falls_back(monkeypatch):
    calls = []

    def fake_post(*a, **k):
        calls.append(1)
        return FakeResponse(status_code=429)

    monkeypatch.setattr(analyzers.requests, "post", fake_post)
    ind = IndicatorSnapshot(rsi_short=50.0, rsi_long=50.0, ema=100.0, macd=0.0)
    ctx = PortfolioContext(position=None, total_value=1000.0, cash=1000.0)
    d = DecisionPolicy(OllamaAnalyzer()).decide("BTC", 100.0, ind, ctx)
    assert len(calls) == 1
    assert d == fallback_decision("BTC", 100.0, ind)
    assert d.source == "fallback"


def test_openrouter_sends_referer_and_title(monkeypatch):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen.update(url=url, headers=headers)
        return FakeResponse(payload={"choices": [{"message": {"content": "{}"}}]})

    monkeypatch.setattr(analyzers.requests, "post", fake_post)
    router = build_analyzer(Config(ai_provider="openrouter", ai_api_key="k", ai_referer="https://bot.example"))
    router(PROMPT)
    assert seen["url"] == analyzers.OPENROUTER_URL
    assert seen["headers"]["HTTP-Referer"] == "https://bot.example"
    assert seen["headers"]["X-Title"] == "Crypto Trading Bot"
    assert analyzers.openrouter_headers()["HTTP-Referer"] == "http://localhost"


def test_unexpected_shape(monkeypatch):
    monkeypatch.setattr(analyzers.requests, "post", lambda *a, **k: FakeResponse(payload={"choices": []}))
    with pytest.raises(AnalyzerError):
        OpenAIChatAnalyzer(api_key="k")(PROMPT)


def test_policy_falls_back_on_transport_failure(monkeypatch):
    def fake_post(*a, **k):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(analyzers.requests, "post", fake_post)
    ind = IndicatorSnapshot(rsi_short=25.0, rsi_long=40.0, ema=90.0, macd=1.0)
    ctx = PortfolioContext(position=None, total_value=1000.0, cash=1000.0)
    d = DecisionPolicy(OllamaAnalyzer()).decide("BTC", 100.0, ind, ctx)
    assert d == fallback_decision("BTC", 100.0, ind)
    assert d.action == Action.BUY


def test_build_analyzer_providers():
    assert build_analyzer(Config(ai_provider="none")) is None
    assert build_analyzer(Config(ai_provider="openai", ai_api_key="")) is None
    assert isinstance(build_analyzer(Config(ai_provider="ollama")), OllamaAnalyzer)
    router = build_analyzer(Config(ai_provider="openrouter", ai_api_key="k"))
    assert isinstance(router, OpenAIChatAnalyzer)
    assert router.base_url == analyzers.OPENROUTER_URL
    assert router.model == "openai/gpt-3.5-turbo"
    with pytest.raises(ValueError):
        build_analyzer(Config(ai_provider="carrier-pigeon"))
