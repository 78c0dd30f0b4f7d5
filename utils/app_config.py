"""Application configuration resolved once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from utils.errors import ConfigurationError

DEFAULT_APP_NAMESPACE = "default-app-id"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_AUTH_BASE_URL = "https://identitytoolkit.googleapis.com/v1"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class AppConfig:
    """Validated settings for the generation, identity and storage services.

    Attributes:
        gemini_api_key: Credential for the generation endpoint.
        auth_api_key: Web API key for the identity backend.
        database_dir: Directory holding the SQLite document store.
        app_namespace: Namespace segment of every persisted record path.
        initial_auth_token: Optional continuation token tried before anonymous sign-in.
        gemini_model: Model name used in the generateContent URL.
        gemini_base_url: Base URL of the generation API.
        auth_base_url: Base URL of the identity REST API.
        request_timeout: Timeout in seconds for outbound HTTP calls.
        log_level: Root logging level name.
    """

    gemini_api_key: str
    auth_api_key: str
    database_dir: Path
    app_namespace: str = DEFAULT_APP_NAMESPACE
    initial_auth_token: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    auth_base_url: str = DEFAULT_AUTH_BASE_URL
    request_timeout: float = 60.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build the configuration from environment variables.

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid.
        """
        env = os.environ if environ is None else environ

        required = {
            "GEMINI_API_KEY": _clean(env.get("GEMINI_API_KEY")),
            "FIREBASE_API_KEY": _clean(env.get("FIREBASE_API_KEY")),
            "DATABASE_DIR": _clean(env.get("DATABASE_DIR")),
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        raw_timeout = _clean(env.get("REQUEST_TIMEOUT_SECONDS"))
        try:
            timeout = float(raw_timeout) if raw_timeout else 60.0
        except ValueError as exc:
            raise ConfigurationError(f"REQUEST_TIMEOUT_SECONDS={raw_timeout!r} is not a number") from exc
        if timeout <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT_SECONDS must be positive")

        return cls(
            gemini_api_key=required["GEMINI_API_KEY"],
            auth_api_key=required["FIREBASE_API_KEY"],
            database_dir=Path(required["DATABASE_DIR"]).expanduser(),
            app_namespace=_clean(env.get("APP_ID")) or DEFAULT_APP_NAMESPACE,
            initial_auth_token=_clean(env.get("INITIAL_AUTH_TOKEN")),
            gemini_model=_clean(env.get("GEMINI_MODEL")) or DEFAULT_GEMINI_MODEL,
            gemini_base_url=(_clean(env.get("GEMINI_BASE_URL")) or DEFAULT_GEMINI_BASE_URL).rstrip("/"),
            auth_base_url=(_clean(env.get("FIREBASE_AUTH_BASE_URL")) or DEFAULT_AUTH_BASE_URL).rstrip("/"),
            request_timeout=timeout,
            log_level=(_clean(env.get("LOG_LEVEL")) or "INFO").upper(),
        )
