"""
Scoring engine configuration.

Settings come from the environment (a local .env file is honoured) with the
defaults below.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

# =============================================================================
# DEFAULTS
# =============================================================================

FEEDBACK_MODEL = "gpt-4o"
FEEDBACK_TEMPERATURE = 0.2
FEEDBACK_TIMEOUT_SECONDS = 30.0
MAX_WORKERS = 4
MAX_PROMPT_ANSWERS = 10
LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    feedback_model: str = FEEDBACK_MODEL
    feedback_temperature: float = FEEDBACK_TEMPERATURE
    feedback_timeout_seconds: float = FEEDBACK_TIMEOUT_SECONDS
    max_workers: int = MAX_WORKERS
    max_prompt_answers: int = MAX_PROMPT_ANSWERS
    mock_mode: bool = False
    log_level: str = LOG_LEVEL
    log_file: Optional[str] = None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value < 1:
        logger.warning("Ignoring %s=%r below 1, using %s", name, raw, default)
        return default
    return value


def get_settings() -> Settings:
    """Load settings from the environment."""
    load_dotenv(find_dotenv(usecwd=True))
    key = os.getenv("OPENAI_API_KEY")
    temperature = os.getenv("FEEDBACK_TEMPERATURE")
    try:
        temperature_value = float(temperature) if temperature else FEEDBACK_TEMPERATURE
    except ValueError:
        logger.warning("Ignoring invalid FEEDBACK_TEMPERATURE=%r", temperature)
        temperature_value = FEEDBACK_TEMPERATURE
    return Settings(
        openai_api_key=key.strip() if key else None,
        feedback_model=os.getenv("FEEDBACK_MODEL") or FEEDBACK_MODEL,
        feedback_temperature=temperature_value,
        feedback_timeout_seconds=_env_float("FEEDBACK_TIMEOUT_SECONDS", FEEDBACK_TIMEOUT_SECONDS),
        max_workers=_env_int("MAX_WORKERS", MAX_WORKERS),
        max_prompt_answers=_env_int("MAX_PROMPT_ANSWERS", MAX_PROMPT_ANSWERS),
        mock_mode=os.getenv("MOCK_MODE", "0") == "1",
        log_level=(os.getenv("LOG_LEVEL") or LOG_LEVEL).upper(),
        log_file=os.getenv("LOG_FILE") or None,
    )
