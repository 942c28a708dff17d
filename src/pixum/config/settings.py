"""Application settings loaded from the environment.

Hey future me - every knob lives here! Env vars are prefixed with PIXUM_ and nested
sections use a double underscore, e.g.:

    PIXUM_LOG_LEVEL=DEBUG
    PIXUM_CACHE__URL=redis://localhost:6379/0
    PIXUM_ADMISSION__RATE_LIMIT_REQUESTS=50

Defaults mirror the production deployment (Redis reachable as "redis", port 3000).
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# One year. Resolved asset URLs basically never change once published, but the
# upstream does reorganize storage paths now and then.
DEFAULT_CACHE_TTL_SECONDS = 31_536_000

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
)


class UpstreamSettings(BaseModel):
    """Upstream content provider (Pixiv) connection settings."""

    base_url: str = "https://www.pixiv.net"
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "en"
    timeout_seconds: float = Field(default=10.0, gt=0)
    https_only: bool = True
    max_connections: int = Field(default=100, ge=1)
    max_keepalive: int = Field(default=20, ge=0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class CacheSettings(BaseModel):
    """Resolved-URL cache (Redis) settings."""

    url: str = "redis://redis:6379/0"
    ttl_seconds: int = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    max_connections: int = Field(default=50, ge=1)
    socket_timeout_seconds: float = Field(default=2.0, gt=0)


class AdmissionSettings(BaseModel):
    """Inbound request admission control.

    Hey future me - these protect BOTH us and the upstream! With the defaults we
    accept 50 requests per 10 seconds, run at most 100 at once, queue at most 100
    more, and give each request 15 seconds before answering 504.
    """

    max_concurrency: int = Field(default=100, ge=1)
    rate_limit_requests: int = Field(default=50, ge=1)
    rate_limit_window_seconds: float = Field(default=10.0, gt=0)
    buffer_size: int = Field(default=100, ge=1)
    request_timeout_seconds: float = Field(default=15.0, gt=0)


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_json_format: bool = False


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="PIXUM_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "Pixum"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    admission: AdmissionSettings = Field(default_factory=AdmissionSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return level


# Settings are read ONCE per process. Tests that need other values should build
# Settings(...) directly and pass them to create_app() instead of patching env.
@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
