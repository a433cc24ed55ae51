import json
import logging

import pytest

from interview_scoring.config import Settings, get_settings
from interview_scoring.generator import MOCK_FEEDBACK, OpenAIFeedbackGenerator
from interview_scoring.logging_utils import setup_logging


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("FEEDBACK_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("FEEDBACK_TEMPERATURE", "0.5")
    monkeypatch.setenv("FEEDBACK_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("MAX_WORKERS", "8")
    monkeypatch.setenv("MOCK_MODE", "1")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.feedback_model == "gpt-4o-mini"
    assert s.feedback_temperature == 0.5
    assert s.feedback_timeout_seconds == 12.5
    assert s.max_workers == 8
    assert s.mock_mode is True
    assert s.log_level == "DEBUG"


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("MAX_WORKERS", "many")
    monkeypatch.setenv("MAX_PROMPT_ANSWERS", "0")
    monkeypatch.setenv("FEEDBACK_TIMEOUT_SECONDS", "-1")
    monkeypatch.setenv("FEEDBACK_TEMPERATURE", "warm")
    s = get_settings()
    assert s.max_workers == 4
    assert s.max_prompt_answers == 10
    assert s.feedback_timeout_seconds == 30.0
    assert s.feedback_temperature == 0.2


def test_mock_generator_is_deterministic():
    gen = OpenAIFeedbackGenerator(Settings(mock_mode=True))
    assert json.loads(gen("anything")) == MOCK_FEEDBACK
    assert gen.generate("a") == gen.generate("b")


def test_generator_requires_key_outside_mock_mode():
    gen = OpenAIFeedbackGenerator(Settings(mock_mode=False, openai_api_key=None))
    with pytest.raises(RuntimeError):
        gen.generate("prompt")


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "scoring.log"
    root = setup_logging("WARNING", str(log_file))
    try:
        logging.getLogger("interview_scoring.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
        assert len(root.handlers) == 2
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
