"""Environment-driven settings for the completion provider."""

import os
from dataclasses import dataclass

from competitor_scan.logging import get_logger

API_KEY_ENV = "ANTHROPIC_API_KEY"
MODEL_ENV = "COMPETITOR_SCAN_MODEL"
MAX_TOKENS_ENV = "COMPETITOR_SCAN_MAX_TOKENS"
TIMEOUT_ENV = "COMPETITOR_SCAN_TIMEOUT_SECONDS"

log = get_logger("competitor_scan.config")

DEFAULT_MODEL = "claude-sonnet-4-5"
# Five short sections of a few sentences or bullets each fit comfortably.
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TIMEOUT_SECONDS = 60.0


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        log.warning("config.invalid_env_value", env_var=key, value=os.getenv(key), default=default)
        return default


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        log.warning("config.invalid_env_value", env_var=key, value=os.getenv(key), default=default)
        return default


@dataclass(frozen=True)
class GatewaySettings:
    """Provider credential and fixed model parameters."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            api_key=os.getenv(API_KEY_ENV, "").strip(),
            model=os.getenv(MODEL_ENV, "").strip() or DEFAULT_MODEL,
            max_tokens=_env_int(MAX_TOKENS_ENV, DEFAULT_MAX_TOKENS),
            timeout_seconds=_env_float(TIMEOUT_ENV, DEFAULT_TIMEOUT_SECONDS),
        )
