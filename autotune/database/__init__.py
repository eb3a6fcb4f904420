"""Database layer"""

from autotune.database.manager import DatabaseManager
from autotune.database.models import (
    Base,
    OptimizationConfigRecord,
    OptimizationResultRecord,
    PresetSetConnectionRecord,
    PresetSetRecord,
    PseudoPositionRecord,
)
from autotune.database.repositories import (
    OptimizationConfigRepository,
    PositionRepository,
    SetRepository,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "OptimizationConfigRecord",
    "OptimizationConfigRepository",
    "OptimizationResultRecord",
    "PositionRepository",
    "PresetSetConnectionRecord",
    "PresetSetRecord",
    "PseudoPositionRecord",
    "SetRepository",
]
