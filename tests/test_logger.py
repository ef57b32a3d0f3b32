"""Unit tests for core.logger."""

import logging

import pytest
from trading_agent.core.logger import DECISION_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def restore_loggers():
    root = logging.getLogger("trading_agent")
    decision = logging.getLogger(DECISION_LOGGER)
    saved = (root.level, list(root.handlers), decision.level)
    yield
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    decision.setLevel(saved[2])


def test_decision_loggers_inherit_by_default():
    setup_logging("DEBUG")
    analyzer = logging.getLogger("trading_agent.decision.analyzers")
    assert analyzer.getEffectiveLevel() == logging.DEBUG


def test_decision_level_overrides_only_decision_loggers():
    setup_logging("INFO", decision_level="warning")
    assert logging.getLogger("trading_agent.decision.analyzers").getEffectiveLevel() == logging.WARNING
    assert logging.getLogger("trading_agent.ledger").getEffectiveLevel() == logging.INFO


def test_file_handler_written(tmp_path):
    log = setup_logging("INFO", log_dir=tmp_path / "logs", log_file="agent.log")
    logging.getLogger("trading_agent.engine").info("tick done")
    for h in log.handlers:
        h.flush()
    text = (tmp_path / "logs" / "agent.log").read_text(encoding="utf-8")
    assert "| INFO     | trading_agent.engine | tick done" in text
    for h in log.handlers:
        h.close()
