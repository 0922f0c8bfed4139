from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None
    openai_model: str
    openai_base_url: str | None
    openai_timeout_s: float
    ai_extraction_enabled: bool
    log_level: str
    max_resume_chars: int


def load_settings() -> Settings:
    return Settings(
        openai_api_key=_get_env("OPENAI_API_KEY"),
        openai_model=_get_env("OPENAI_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
        openai_base_url=_get_env("OPENAI_BASE_URL"),
        openai_timeout_s=_get_env_float("OPENAI_TIMEOUT_S", 30.0),
        ai_extraction_enabled=_get_env_bool("AI_EXTRACTION_ENABLED", True),
        log_level=(_get_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        max_resume_chars=_get_env_int("MAX_RESUME_CHARS", 50000),
    )


settings = load_settings()
