"""Process configuration for the email relay.

Mental model refresher:
- Environment variables are read exactly once, at start-up.
- Everything downstream receives the frozen `RelayConfig` instead of calling
  `os.getenv` itself, so provider selection and `/health` can never disagree
  about what is configured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_CORS_ORIGINS = (
    "https://microservices-ecom.vercel.app",
    "http://localhost:3000",
    "http://localhost:3001",
)


class ConfigError(RuntimeError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class RelayConfig:
    port: int = 4004
    host: str = "0.0.0.0"
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"

    kafka_brokers: tuple[str, ...] = ("localhost:9094",)
    kafka_use_sasl: bool = False
    kafka_username: str | None = None
    kafka_password: str | None = None
    kafka_client_id: str = "email-service"
    kafka_group_id: str = "email-service"
    kafka_poll_timeout_seconds: float = 1.0
    kafka_max_records: int = 50
    kafka_send_timeout_seconds: float = 10.0

    brevo_api_key: str | None = None
    resend_api_key: str | None = None
    email_from_name: str | None = None
    email_from: str | None = None
    email_api_timeout_seconds: float = 10.0

    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_from: str | None = None

    @property
    def sasl_enabled(self) -> bool:
        return bool(self.kafka_use_sasl and self.kafka_username and self.kafka_password)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RelayConfig":
        """Build the configuration from environment variables.

        Blank values are treated as unset. Invalid booleans or numbers raise
        `ConfigError` so a misconfigured process fails at start-up.
        """
        env = os.environ if environ is None else environ

        brokers = _env_csv(env, "KAFKA_BROKERS", default=("localhost:9094",))
        if not brokers:
            raise ConfigError("KAFKA_BROKERS must include at least one host:port")

        poll_timeout = _env_float(env, "KAFKA_POLL_TIMEOUT_SECONDS", 1.0)
        if poll_timeout <= 0:
            raise ConfigError("KAFKA_POLL_TIMEOUT_SECONDS must be > 0")

        return cls(
            port=_env_int(env, "PORT", 4004),
            host=_optional_env(env, "HOST") or "0.0.0.0",
            cors_origins=_env_csv(env, "CORS_ORIGINS", default=DEFAULT_CORS_ORIGINS),
            log_level=(_optional_env(env, "LOG_LEVEL") or "INFO").upper(),
            kafka_brokers=brokers,
            kafka_use_sasl=_env_bool(env, "KAFKA_USE_SASL", default=False),
            kafka_username=_optional_env(env, "KAFKA_USERNAME"),
            kafka_password=_optional_env(env, "KAFKA_PASSWORD"),
            kafka_client_id=_optional_env(env, "KAFKA_CLIENT_ID") or "email-service",
            kafka_group_id=_optional_env(env, "KAFKA_GROUP_ID") or "email-service",
            kafka_poll_timeout_seconds=poll_timeout,
            kafka_max_records=_env_int(env, "KAFKA_MAX_RECORDS_PER_POLL", 50),
            kafka_send_timeout_seconds=_env_float(env, "KAFKA_SEND_TIMEOUT_SECONDS", 10.0),
            brevo_api_key=_optional_env(env, "BREVO_API_KEY"),
            resend_api_key=_optional_env(env, "RESEND_API_KEY"),
            email_from_name=_optional_env(env, "EMAIL_FROM_NAME"),
            email_from=_optional_env(env, "EMAIL_FROM"),
            email_api_timeout_seconds=_env_float(env, "EMAIL_API_TIMEOUT_SECONDS", 10.0),
            smtp_host=_optional_env(env, "SMTP_HOST"),
            smtp_port=_env_int(env, "SMTP_PORT", 587),
            smtp_secure=_env_bool(env, "SMTP_SECURE", default=False),
            smtp_user=_optional_env(env, "SMTP_USER"),
            smtp_pass=_optional_env(env, "SMTP_PASS"),
            smtp_from=_optional_env(env, "SMTP_FROM"),
        )


def load_env_file(path: Path) -> None:
    """Load `KEY=value` lines into `os.environ` without overriding existing keys."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _optional_env(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None:
        return None
    text = value.strip()
    return text or None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _optional_env(env, name)
    if raw is None:
        return default
    normalized = raw.lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value for {name}: {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _optional_env(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from exc


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _optional_env(env, name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid number value for {name}: {raw!r}") from exc


def _env_csv(
    env: Mapping[str, str], name: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    raw = _optional_env(env, name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())
