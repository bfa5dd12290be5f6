from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from aipm.errors import ConfigError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4000
TRACE_HEADER = "M-TraceId"


@dataclass(frozen=True)
class AIConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    trace_id: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


def validate_config(config: AIConfig) -> bool:
    return bool(config.api_key and config.base_url and config.model)


def missing_settings(config: AIConfig) -> List[str]:
    missing = []
    if not config.api_key:
        missing.append("AIPM_API_KEY")
    if not config.base_url:
        missing.append("AIPM_BASE_URL")
    if not config.model:
        missing.append("AIPM_MODEL")
    return missing


def load_config(base_dir: Optional[Path] = None) -> AIConfig:
    """Build the client configuration once, from ``.env`` and the environment."""
    if base_dir is not None:
        load_dotenv(base_dir / ".env")
    timeout_raw = os.getenv("AIPM_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))
    try:
        timeout = float(timeout_raw)
    except ValueError as exc:
        raise ConfigError(f"AIPM_TIMEOUT must be a number, got {timeout_raw!r}") from exc
    if timeout <= 0:
        raise ConfigError("AIPM_TIMEOUT must be positive.")
    return AIConfig(
        api_key=os.getenv("AIPM_API_KEY", ""),
        base_url=os.getenv("AIPM_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        model=os.getenv("AIPM_MODEL", DEFAULT_MODEL),
        timeout=timeout,
        trace_id=os.getenv("AIPM_TRACE_ID") or None,
    )


def ensure_live_config(config: AIConfig) -> None:
    missing = missing_settings(config)
    if missing:
        raise ConfigError(
            "Missing required settings: "
            f"{', '.join(missing)}. Create a .env file from .env.example and set them."
        )
