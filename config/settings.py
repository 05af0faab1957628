"""Environment-driven settings for the holdings sync job."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from config.constants import (
    DEFAULT_DB_CONNECTION_STRING,
    FINNHUB_BASE_URL,
    FINNHUB_TIMEOUT_SECONDS,
    LOG_LEVELS,
)


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""

    database_url: str
    finnhub_api_key: Optional[str]
    finnhub_base_url: str
    request_timeout: float
    log_level: str
    log_file: Optional[str]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        raw_timeout = env.get("FINNHUB_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else FINNHUB_TIMEOUT_SECONDS
        except ValueError as exc:
            raise ValueError(f"Invalid FINNHUB_TIMEOUT value: {raw_timeout!r}") from exc

        log_level = env.get("LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL value: {log_level!r}")

        return cls(
            database_url=env.get("DB_CONNECTION_STRING", DEFAULT_DB_CONNECTION_STRING),
            finnhub_api_key=env.get("FINNHUB_API_KEY") or None,
            finnhub_base_url=env.get("FINNHUB_BASE_URL", FINNHUB_BASE_URL).rstrip("/"),
            request_timeout=timeout,
            log_level=log_level,
            log_file=env.get("LOG_FILE") or None,
        )

    def with_overrides(self, **overrides: object) -> "Settings":
        """Return a copy with every non-``None`` override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self
