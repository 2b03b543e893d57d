"""Environment-driven settings for the prompt generation job.

Values come from the process environment, optionally seeded from a local
``.env`` file during development. Real environment variables win over the
file.
"""

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from scripts.errors import ConfigError, ConfigMissingError

DEFAULT_GROQ_ENDPOINT = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_GROQ_MODEL = "llama3-70b-8192"
DEFAULT_SCHEDULE_CRON = "0 9 * * *"
DEFAULT_REQUEST_TIMEOUT = 20.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    groq_api_key: str
    backend_api_url: str
    groq_model: str = DEFAULT_GROQ_MODEL
    groq_endpoint: str = DEFAULT_GROQ_ENDPOINT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    schedule_cron: str = DEFAULT_SCHEDULE_CRON
    schedule_tz: ZoneInfo | None = None
    log_level: str = "INFO"


def mask_secret(secret: str, visible: int = 4) -> str:
    """Return a masked representation of a secret for log output."""

    secret = (secret or "").strip()
    if not secret:
        return ""
    if len(secret) <= visible:
        return "*" * len(secret)
    return f"{secret[:visible]}…{'*' * max(len(secret) - visible, 0)}"


def _env(environ, name: str, *, required: bool = False, default: str = "") -> str:
    value = (environ.get(name) or "").strip()
    if required and not value:
        raise ConfigMissingError(name)
    return value or default


def load_settings(environ=None, *, env_file: str | None = ".env") -> Settings:
    """Build ``Settings`` from ``environ`` (defaults to ``os.environ``).

    When reading the real environment, ``env_file`` is loaded first if it
    exists; pass ``env_file=None`` to skip it.
    """
    if environ is None:
        if env_file:
            load_dotenv(env_file, override=False)
        environ = os.environ

    api_key = _env(environ, "GROQ_API_KEY", required=True)
    backend_url = _env(environ, "BACKEND_API_URL", required=True)

    timeout_raw = _env(environ, "REQUEST_TIMEOUT", default=str(DEFAULT_REQUEST_TIMEOUT))
    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise ConfigError(f"REQUEST_TIMEOUT must be a number of seconds, got {timeout_raw!r}")
    if timeout <= 0:
        raise ConfigError(f"REQUEST_TIMEOUT must be positive, got {timeout_raw!r}")

    log_level = _env(environ, "LOG_LEVEL", default="INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    tz_name = _env(environ, "SCHEDULE_TZ")
    tz = None
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown SCHEDULE_TZ {tz_name!r}") from exc

    return Settings(
        groq_api_key=api_key,
        backend_api_url=backend_url,
        groq_model=_env(environ, "GROQ_MODEL", default=DEFAULT_GROQ_MODEL),
        groq_endpoint=_env(environ, "GROQ_ENDPOINT", default=DEFAULT_GROQ_ENDPOINT),
        request_timeout=timeout,
        schedule_cron=_env(environ, "SCHEDULE_CRON", default=DEFAULT_SCHEDULE_CRON),
        schedule_tz=tz,
        log_level=log_level,
    )
