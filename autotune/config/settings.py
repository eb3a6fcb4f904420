"""
Process-level settings read from the environment using pydantic-settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from autotune.config.manager import ConfigManager
from autotune.config.schemas import AppConfig


class RuntimeSettings(BaseSettings):
    """Server settings (``AUTOTUNE_`` prefixed environment variables)."""

    host: str = "0.0.0.0"
    port: int = 8000
    config_path: str | None = None
    database_url: str | None = None
    log_level: str | None = None

    model_config = SettingsConfigDict(env_prefix="AUTOTUNE_", env_file=".env", extra="ignore")

    def load_app_config(self) -> AppConfig:
        """Load the YAML config if one is configured, then apply env overrides."""
        if self.config_path:
            config = ConfigManager(Path(self.config_path)).load()
        else:
            config = AppConfig()

        overrides: dict[str, str] = {}
        if self.database_url:
            overrides["database_url"] = self.database_url
        if self.log_level:
            overrides["log_level"] = self.log_level.upper()
        if overrides:
            config = AppConfig(**{**config.model_dump(), **overrides})
        return config
