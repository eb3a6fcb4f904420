"""Configuration management"""

from autotune.config.manager import ConfigManager
from autotune.config.schemas import (
    AppConfig,
    EvaluationSettings,
    ExchangeOrderBy,
    OptimizationRequest,
    OptimizationSettings,
    SymbolMode,
)
from autotune.config.settings import RuntimeSettings

__all__ = [
    "AppConfig",
    "ConfigManager",
    "EvaluationSettings",
    "ExchangeOrderBy",
    "OptimizationRequest",
    "OptimizationSettings",
    "RuntimeSettings",
    "SymbolMode",
]
