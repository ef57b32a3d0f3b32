"""
Logging setup. Console + optional file. Never log API keys.
The decision loggers (prompts, analyzer transport, fallbacks) get their own
level so analyzer chatter can be silenced or traced without touching the rest.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DECISION_LOGGER = "trading_agent.decision"


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
    decision_level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the trading_agent logger hierarchy.
    decision_level overrides the level of trading_agent.decision.*; when unset
    those loggers inherit `level`.
    """
    log_level = _level(level, logging.INFO)
    root = logging.getLogger("trading_agent")
    root.setLevel(log_level)
    root.handlers.clear()
    logging.getLogger(DECISION_LOGGER).setLevel(_level(decision_level, logging.NOTSET))

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)

    return root
