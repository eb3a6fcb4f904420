"""
Configuration Manager with YAML loading, environment substitution and Pydantic validation.
"""

import hashlib
import json
import os
import re
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from autotune.config.schemas import AppConfig
from autotune.utils.logger import LoggerMixin

# ${NAME} or ${NAME:-default}
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env(value: Any) -> Any:
    """Recursively replace ``${VAR}`` references in strings with environment values."""
    if isinstance(value, str):

        def _replace(match: re.Match[str]) -> str:
            name, default = match.group(1), match.group(2)
            resolved = os.environ.get(name, default)
            if resolved is None:
                raise KeyError(f"Environment variable not set: {name}")
            return resolved

        return _ENV_PATTERN.sub(_replace, value)
    if isinstance(value, dict):
        return {key: substitute_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env(item) for item in value]
    return value


class ConfigManager(LoggerMixin):
    """
    Configuration manager.

    Features:
    - Load and validate YAML configuration with Pydantic
    - ``${ENV_VAR}`` / ``${ENV_VAR:-default}`` substitution
    - Configuration versioning with hash tracking
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._config: AppConfig | None = None
        self._config_hash: str | None = None

        self.logger.info("Initializing ConfigManager", path=str(config_path))

    def load(self) -> AppConfig:
        """
        Load and validate configuration from file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            KeyError: If a referenced environment variable is missing
            ValidationError: If config validation fails
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}

            if not isinstance(raw_config, dict):
                raise ValueError("Configuration root must be a mapping")

            raw_config = substitute_env(raw_config)

            config_str = json.dumps(raw_config, sort_keys=True, default=str)
            new_hash = hashlib.sha256(config_str.encode()).hexdigest()[:16]

            config = AppConfig(**raw_config)

            self._config = config
            self._config_hash = new_hash

            self.logger.info(
                "Configuration loaded successfully",
                version_hash=new_hash,
                evaluation_enabled=config.evaluation.enabled,
            )

            return config

        except yaml.YAMLError as e:
            self.logger.error("Failed to parse YAML", error=str(e))
            raise
        except ValidationError as e:
            self.logger.error("Configuration validation failed", error=str(e))
            raise
        except Exception as e:
            self.logger.error("Failed to load configuration", error=str(e))
            raise

    def get_config(self) -> AppConfig:
        """
        Get current configuration.

        Raises:
            RuntimeError: If config not loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def get_config_version(self) -> str:
        """Return the hash of the last loaded configuration."""
        if self._config_hash is None:
            raise RuntimeError("Configuration not loaded")
        return self._config_hash

    @staticmethod
    def create_example_config(path: Path) -> None:
        """Write an example configuration file to ``path``."""
        example_config = {
            "database_url": "${DATABASE_URL:-sqlite+aiosqlite:///autotune.db}",
            "database_pool_size": 5,
            "create_tables": True,
            "log_level": "INFO",
            "log_to_file": True,
            "log_to_console": True,
            "json_logs": False,
            "log_dir": "logs",
            "optimization": {
                "grid_steps": 5,
                "persist_limit": 100,
                "response_limit": 20,
                "max_workers": 4,
                "main_symbols": ["BTCUSDT", "ETHUSDT", "SOLUSDT"],
            },
            "evaluation": {
                "enabled": True,
                "interval_seconds": 3600,
                "run_on_start": True,
                "default_evaluation_positions_count": 25,
                "default_profit_factor_min": 0.5,
            },
        }

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                example_config,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
