"""Continuous evaluation of deployed preset configuration Sets"""

from autotune.evaluation.models import (
    AUTO_DISABLE_REASON,
    EvaluationPassSummary,
    PresetSet,
    SetEvaluationResult,
    SetPosition,
    SymbolEvaluation,
)

__all__ = [
    "AUTO_DISABLE_REASON",
    "EvaluationPassSummary",
    "PresetSet",
    "SetEvaluationResult",
    "SetPosition",
    "SymbolEvaluation",
]
