"""Environment-driven settings consulted once when a session is built."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

_TRUE_VALUES = {"1", "t", "true", "yes", "y", "on"}
_FALSE_VALUES = {"", "0", "f", "false", "no", "n", "off"}


def env_field(default, env_name: str):
    return Field(default, validation_alias=env_name)


class SessionSettings(BaseSettings):
    """Runtime knobs for the gateways and the session logger."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    dial_timeout: Optional[float] = env_field(None, "CF_DIAL_TIMEOUT")
    request_timeout: float = env_field(60.0, "CF_REQUEST_TIMEOUT")
    debug: bool = env_field(False, "CF_DEBUG")
    trace: Optional[str] = env_field(None, "CF_TRACE")
    job_poll_interval_seconds: float = env_field(1.0, "CF_JOB_POLL_INTERVAL")
    async_timeout_seconds: float = env_field(600.0, "CF_ASYNC_TIMEOUT")

    @field_validator("debug", mode="before")
    @classmethod
    def _lenient_bool(cls, value):
        # Unparseable values mean "off" rather than a settings error.
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_VALUES
        return bool(value)

    @field_validator("dial_timeout", mode="before")
    @classmethod
    def _parse_dial_timeout(cls, value):
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return None
            try:
                return float(stripped)
            except ValueError:
                # Same fallback as an unset value: the default dial timeout.
                return None
        return value

    @property
    def connect_timeout(self) -> float:
        if self.dial_timeout is not None and self.dial_timeout > 0:
            return self.dial_timeout
        return 5.0

    @property
    def trace_target(self) -> Optional[str]:
        """Return ``"stdout"``, a file path, or ``None`` when tracing is off."""

        if self.trace is None:
            return None
        value = self.trace.strip()
        lowered = value.lower()
        if lowered in _FALSE_VALUES:
            return None
        if lowered in _TRUE_VALUES:
            return "stdout"
        return value


def load_settings(**overrides) -> SessionSettings:
    """Build settings from the environment, raising ``ConfigurationError`` on bad values."""

    try:
        return SessionSettings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid environment settings: {exc}") from exc
