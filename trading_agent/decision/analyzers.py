"""
HTTP analyzers: OpenAI-compatible chat completions (OpenAI, OpenRouter) and
Ollama. One POST per call, no retries; every failure surfaces as AnalyzerError
so the policy can fall back.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

import requests

from trading_agent.core.errors import AnalyzerError
from trading_agent.decision.prompts import PromptContext

if TYPE_CHECKING:
    from trading_agent.core.config import Config
    from trading_agent.decision.policy import Analyzer

logger = logging.getLogger("trading_agent.decision.analyzers")

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
OLLAMA_URL = "http://localhost:11434/api/generate"
OPENROUTER_TITLE = "Crypto Trading Bot"
DEFAULT_REFERER = "http://localhost"


def _post_json(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float) -> Dict[str, Any]:
    try:
        r = requests.post(url, json=payload, headers=headers, timeout=timeout)
        r.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise AnalyzerError(f"analyzer HTTP {status}: {e}") from e
    except requests.RequestException as e:
        raise AnalyzerError(f"analyzer request failed: {e}") from e
    try:
        return r.json()
    except ValueError as e:
        raise AnalyzerError(f"analyzer returned non-JSON body: {r.text[:200]}") from e


class OpenAIChatAnalyzer:
    """OpenAI-compatible /chat/completions client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str = OPENAI_URL,
        timeout: float = 30.0,
        temperature: float = 0.7,
        extra_headers: Optional[Dict[str, str]] = None,
    ):
        if not api_key:
            raise AnalyzerError("API key required for this provider")
        self._api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.temperature = temperature
        self.extra_headers = dict(extra_headers or {})

    def __call__(self, prompt: PromptContext) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            **self.extra_headers,
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt.system_prompt},
                {"role": "user", "content": prompt.user_prompt},
            ],
            "temperature": self.temperature,
        }
        data = _post_json(self.base_url, payload, headers, self.timeout)
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AnalyzerError(f"unexpected chat completion shape: {e}") from e


class OllamaAnalyzer:
    """Local Ollama /api/generate client (non-streaming)."""

    def __init__(
        self,
        model: str = "llama2",
        base_url: str = OLLAMA_URL,
        timeout: float = 30.0,
    ):
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

    def __call__(self, prompt: PromptContext) -> str:
        payload = {
            "model": self.model,
            "prompt": f"{prompt.system_prompt}\n\n{prompt.user_prompt}",
            "stream": False,
        }
        data = _post_json(self.base_url, payload, {"Content-Type": "application/json"}, self.timeout)
        if not isinstance(data, dict) or "response" not in data:
            raise AnalyzerError("unexpected Ollama response shape")
        return data["response"]


def openrouter_headers(referer: str = "") -> Dict[str, str]:
    """Attribution headers OpenRouter expects on every request."""
    return {"HTTP-Referer": referer or DEFAULT_REFERER, "X-Title": OPENROUTER_TITLE}


def build_analyzer(config: "Config") -> Optional["Analyzer"]:
    """Analyzer for the configured provider, or None for fallback-only decisions."""
    provider = config.ai_provider
    if provider == "none":
        logger.info("Analyzer disabled; using rule-based decisions only")
        return None
    if provider == "ollama":
        return OllamaAnalyzer(
            model=config.ai_model or "llama2",
            base_url=config.ai_base_url or OLLAMA_URL,
            timeout=config.ai_timeout_s,
        )
    if provider not in ("openai", "openrouter"):
        raise ValueError(f"Unsupported analyzer provider: {provider}")
    if not config.ai_api_key:
        logger.warning("No API key for provider %s; using rule-based decisions only", provider)
        return None
    if provider == "openrouter":
        return OpenAIChatAnalyzer(
            api_key=config.ai_api_key,
            model=config.ai_model or "openai/gpt-3.5-turbo",
            base_url=config.ai_base_url or OPENROUTER_URL,
            timeout=config.ai_timeout_s,
            temperature=config.ai_temperature,
            extra_headers=openrouter_headers(config.ai_referer),
        )
    return OpenAIChatAnalyzer(
        api_key=config.ai_api_key,
        model=config.ai_model or "gpt-3.5-turbo",
        base_url=config.ai_base_url or OPENAI_URL,
        timeout=config.ai_timeout_s,
        temperature=config.ai_temperature,
    )
