# config/api_config.py
"""Environment-backed settings for the model provider and the dashboard."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_CITY = "Hyderabad"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ModelSettings:
    api_key: str
    model: str
    search_model: str
    request_timeout: float
    city: str
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def _load_env_files() -> None:
    project_root = Path(__file__).resolve().parents[2]
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
    load_dotenv(override=False)


def _timeout_from_env(raw: str) -> float:
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[config] Ignoring non-numeric HYDERAQI_REQUEST_TIMEOUT=%r", raw)
        return DEFAULT_REQUEST_TIMEOUT
    if value <= 0:
        logger.warning("[config] Ignoring non-positive HYDERAQI_REQUEST_TIMEOUT=%r", raw)
        return DEFAULT_REQUEST_TIMEOUT
    return value


def resolve_model_settings() -> ModelSettings:
    """Load the most up-to-date provider settings from the environment."""

    _load_env_files()

    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    model = (os.getenv("OPENAI_MODEL") or DEFAULT_MODEL).strip()
    search_model = (os.getenv("OPENAI_SEARCH_MODEL") or model).strip()
    timeout = _timeout_from_env((os.getenv("HYDERAQI_REQUEST_TIMEOUT") or "").strip())
    city = (os.getenv("HYDERAQI_CITY") or DEFAULT_CITY).strip()
    log_level = (os.getenv("HYDERAQI_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()

    return ModelSettings(
        api_key=api_key,
        model=model,
        search_model=search_model,
        request_timeout=timeout,
        city=city,
        log_level=log_level,
    )
