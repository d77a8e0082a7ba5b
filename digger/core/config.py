"""
Client configuration.

Settings are read from ``DIGGER_*`` environment variables (or a ``.env``
file) with pydantic-settings; ClientConfig is the plain value handed to
DiggerClient once, at construction.
"""

import os
from dataclasses import dataclass
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings

from digger.core.exceptions import ConfigurationError

DEFAULT_FIRST_CHECK_DELAY = 5.0
DEFAULT_POLL_PERIOD = 2.0
DEFAULT_BUILD_TIMEOUT = 60.0
DEFAULT_REQUEST_TIMEOUT = 30.0


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    jenkins_url: str = "http://localhost:8080"
    jenkins_user: str = ""
    jenkins_password: str = ""

    # CSRF protection enabled on the server
    crumb_enabled: bool = False

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Poll timing, seconds
    first_check_delay: float = DEFAULT_FIRST_CHECK_DELAY
    poll_period: float = DEFAULT_POLL_PERIOD
    build_timeout: float = DEFAULT_BUILD_TIMEOUT

    log_level: str = "INFO"

    @field_validator("jenkins_url", mode="before")
    @classmethod
    def _normalize_url(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip().rstrip("/")

    @field_validator("poll_period", "request_timeout")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("first_check_delay", "build_timeout")
    @classmethod
    def _not_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    model_config = {
        "env_prefix": "DIGGER_",
        "env_file": os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@dataclass(frozen=True)
class ClientConfig:
    """Everything DiggerClient needs to talk to one Jenkins server."""

    url: str
    user: str
    password: str
    crumb_enabled: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    first_check_delay: float = DEFAULT_FIRST_CHECK_DELAY
    poll_period: float = DEFAULT_POLL_PERIOD

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        """Create a client config from environment settings."""
        return cls(
            url=settings.jenkins_url,
            user=settings.jenkins_user,
            password=settings.jenkins_password,
            crumb_enabled=settings.crumb_enabled,
            request_timeout=settings.request_timeout,
            first_check_delay=settings.first_check_delay,
            poll_period=settings.poll_period,
        )

    def validate(self) -> None:
        """
        Check the address and credentials without touching the network.

        Raises:
            ConfigurationError: If the URL is not an absolute http(s) URL,
                the user is empty, or the timings make no sense
        """
        parsed = urlparse(self.url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"Invalid jenkins url format: {self.url!r}")
        if not self.user:
            raise ConfigurationError("Jenkins user is not configured")
        if self.password is None:
            raise ConfigurationError("Jenkins password is not configured")
        if self.poll_period <= 0:
            raise ConfigurationError("poll_period must be greater than zero")
        if self.first_check_delay < 0:
            raise ConfigurationError("first_check_delay must not be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be greater than zero")


# Singleton settings instance
settings = Settings()
