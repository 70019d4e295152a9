from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
)


class MirrorSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str
    base_folder: str = "library"
    cache_folder: str = "cache"
    log_folder: str = "log"

    retry_count: int = Field(default=10, ge=0)
    parallel_count: int = Field(default=10, ge=1)
    # Listing TTL in days.
    cache_expire_days: float = Field(default=30, gt=0)

    user_agent: str = DEFAULT_USER_AGENT
    # None disables the per-request timeout.
    request_timeout_seconds: Optional[float] = Field(default=300.0, gt=0)
    chunk_size_bytes: int = Field(default=64 * 1024, ge=1)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"url must be an absolute http(s) URL, got: {value!r}")
        return value


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 30


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    # "{log_folder}" is replaced with mirror.log_folder.
    path: str = "{log_folder}/maven-mirror.log"
    rotation: FileRotationSettings = FileRotationSettings()


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    console: bool = True
    file: FileLoggingSettings = FileLoggingSettings()


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mirror: MirrorSettings
    logging: LoggingSettings = LoggingSettings()


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """Where a configuration loader reads its inputs from."""

    yaml_path: str = "data/config/config.yaml"
    env_prefix: str = "MAVEN_MIRROR__"
    dotenv_path: Optional[str] = "data/.env"
