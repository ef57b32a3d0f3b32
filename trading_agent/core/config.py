"""
Load configuration from config.yaml and .env. Analyzer API key only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv


def _project_root(project_root: Optional[Path] = None) -> Path:
    return project_root or Path(__file__).resolve().parents[2]


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _project_root(project_root) / ".env"
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = _project_root(project_root)
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_list(key: str, default: List[str]) -> List[str]:
        raw = os.getenv(key)
        if not raw:
            return list(default)
        return [s.strip().upper() for s in raw.split(",") if s.strip()]

    trading = data.get("trading", {})
    indicators = data.get("indicators", {})
    ai = data.get("ai", {})
    storage = data.get("storage", {})
    logging_cfg = data.get("logging", {})

    provider = env("AI_PROVIDER", ai.get("provider", "openai")).lower()
    if provider == "openrouter":
        api_key = env("OPENROUTER_API_KEY") or env("AI_API_KEY")
    elif provider == "openai":
        api_key = env("OPENAI_API_KEY") or env("AI_API_KEY")
    else:
        api_key = env("AI_API_KEY")

    return Config(
        symbols=env_list("SYMBOLS", trading.get("symbols", ["BTC", "ETH", "SOL"])),
        initial_cash=env_float("INITIAL_CASH", trading.get("initial_cash", 10000.0)),
        min_history=env_int("MIN_HISTORY", trading.get("min_history", 20)),
        min_confidence=env_float("MIN_CONFIDENCE", trading.get("min_confidence", 0.65)),
        base_risk_pct=env_float("BASE_RISK_PCT", trading.get("base_risk_pct", 0.02)),
        confidence_risk_pct=env_float("CONFIDENCE_RISK_PCT", trading.get("confidence_risk_pct", 0.03)),
        quantity_step=env_float("QUANTITY_STEP", trading.get("quantity_step", 0.01)),
        history_size=env_int("HISTORY_SIZE", trading.get("history_size", 100)),
        report_limit=env_int("REPORT_LIMIT", trading.get("report_limit", 50)),
        tick_interval_s=env_float("TICK_INTERVAL_S", trading.get("tick_interval_s", 10.0)),
        # Indicators
        rsi_short_len=indicators.get("rsi_short_len", 7),
        rsi_long_len=indicators.get("rsi_long_len", 14),
        ema_len=indicators.get("ema_len", 20),
        macd_fast=indicators.get("macd_fast", 12),
        macd_slow=indicators.get("macd_slow", 26),
        history_window=indicators.get("history_window", 10),
        # Analyzer (key from env only)
        ai_provider=provider,
        ai_api_key=api_key,
        ai_model=env("AI_MODEL", ai.get("model", "") or ""),
        ai_base_url=env("AI_BASE_URL", ai.get("base_url", "") or ""),
        ai_timeout_s=env_float("AI_TIMEOUT_S", ai.get("timeout_s", 30.0)),
        ai_temperature=env_float("AI_TEMPERATURE", ai.get("temperature", 0.7)),
        ai_referer=env("AI_REFERER", ai.get("referer", "") or ""),
        # Storage
        state_dir=Path(env("STATE_DIR", str(storage.get("state_dir", "state")))),
        state_key=storage.get("state_key", "trading-portfolio"),
        # Runtime
        environment=env("ENVIRONMENT", data.get("environment", "development")).lower(),
        # Logging
        log_level=logging_cfg.get("level", "INFO"),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "trading_agent.log"),
        log_decision_level=env("LOG_DECISION_LEVEL", logging_cfg.get("decision_level", "") or ""),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "symbols", "initial_cash", "min_history", "min_confidence",
        "base_risk_pct", "confidence_risk_pct", "quantity_step",
        "history_size", "report_limit", "tick_interval_s",
        "rsi_short_len", "rsi_long_len", "ema_len", "macd_fast", "macd_slow", "history_window",
        "ai_provider", "ai_api_key", "ai_model", "ai_base_url",
        "ai_timeout_s", "ai_temperature", "ai_referer",
        "state_dir", "state_key",
        "environment",
        "log_level", "log_dir", "log_file", "log_decision_level",
    )

    def __init__(
        self,
        symbols: Optional[List[str]] = None,
        initial_cash: float = 10000.0,
        min_history: int = 20,
        min_confidence: float = 0.65,
        base_risk_pct: float = 0.02,
        confidence_risk_pct: float = 0.03,
        quantity_step: float = 0.01,
        history_size: int = 100,
        report_limit: int = 50,
        tick_interval_s: float = 10.0,
        rsi_short_len: int = 7,
        rsi_long_len: int = 14,
        ema_len: int = 20,
        macd_fast: int = 12,
        macd_slow: int = 26,
        history_window: int = 10,
        ai_provider: str = "openai",
        ai_api_key: str = "",
        ai_model: str = "",
        ai_base_url: str = "",
        ai_timeout_s: float = 30.0,
        ai_temperature: float = 0.7,
        ai_referer: str = "",
        state_dir: Path = None,
        state_key: str = "trading-portfolio",
        environment: str = "development",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "trading_agent.log",
        log_decision_level: str = "",
    ):
        self.symbols = list(symbols) if symbols else ["BTC", "ETH", "SOL"]
        self.initial_cash = initial_cash
        self.min_history = min_history
        self.min_confidence = min_confidence
        self.base_risk_pct = base_risk_pct
        self.confidence_risk_pct = confidence_risk_pct
        self.quantity_step = quantity_step
        self.history_size = history_size
        self.report_limit = report_limit
        self.tick_interval_s = tick_interval_s
        self.rsi_short_len = rsi_short_len
        self.rsi_long_len = rsi_long_len
        self.ema_len = ema_len
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.history_window = history_window
        self.ai_provider = ai_provider
        self.ai_api_key = ai_api_key
        self.ai_model = ai_model
        self.ai_base_url = ai_base_url
        self.ai_timeout_s = ai_timeout_s
        self.ai_temperature = ai_temperature
        self.ai_referer = ai_referer
        self.state_dir = Path(state_dir) if state_dir else Path("state")
        self.state_key = state_key
        self.environment = environment
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.log_decision_level = log_decision_level

    @property
    def strict(self) -> bool:
        """Fail loudly on ledger invariant violations outside production."""
        return self.environment != "production"
