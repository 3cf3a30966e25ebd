"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class TimerConfig(BaseModel):
    """Default timer mode and tick source configuration."""

    work_minutes: int = Field(default=50, ge=1, le=120)
    short_break_minutes: int = Field(default=10, ge=1, le=30)
    long_break_minutes: int = Field(default=30, ge=1, le=60)
    sessions_per_cycle: int = Field(default=4, ge=2, le=8)
    tick_interval_seconds: float = Field(default=1.0, gt=0, description="Seconds between ticks")
    autotick: bool = Field(default=True, description="Drive engines from a background task")


class OutboxConfig(BaseModel):
    """Persistence outbox configuration."""

    flush_interval_seconds: float = Field(default=1.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    max_events_per_user: int = Field(default=20, ge=1, description="Buffered completion events")


class StorageConfig(BaseModel):
    """Storage backend selection."""

    backend: str = Field(default="sqlite", pattern="^(sqlite|memory)$")


class AuthConfig(BaseModel):
    """Cookie session and password hashing configuration."""

    session_secret: str = Field(default="change-me-focusflow-dev-secret", min_length=16)
    cookie_name: str = Field(default="focusflow_session")
    https_only: bool = Field(default=False, description="Mark the session cookie Secure")
    max_age_days: int = Field(default=14, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)


class WebConfig(BaseModel):
    """HTTP API configuration."""

    host: str = Field(default="127.0.0.1", description="Bind to localhost only")
    port: int = Field(default=8080, ge=1024, le=65535)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FOCUSFLOW_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/focusflow")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/focusflow")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/focusflow")

    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Sub-configurations
    timer: TimerConfig = Field(default_factory=TimerConfig)
    outbox: OutboxConfig = Field(default_factory=OutboxConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; environment variables win over them
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "focusflow.db"

    @property
    def config_file(self) -> Path:
        """Path to YAML config file."""
        return self.config_dir / "config.yaml"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        # The database holds password hashes
        os.chmod(self.data_dir, 0o700)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from YAML file, environment variables, and defaults.

        Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values
        """
        config_path = config_path or Path.home() / ".config/focusflow/config.yaml"

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        return cls(**yaml_config)

    def save(self, config_path: Path | None = None) -> None:
        """Save current configuration to YAML file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude={"auth": {"session_secret"}}, exclude_none=True)

        for key in ["data_dir", "log_dir", "config_dir"]:
            if key in data:
                data[key] = str(data[key])

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        os.chmod(config_path, 0o600)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
