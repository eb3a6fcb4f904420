"""
Data models for continuous Set evaluation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Defaults applied when a Set leaves its thresholds unset
DEFAULT_EVALUATION_POSITIONS_COUNT = 25
DEFAULT_PROFIT_FACTOR_MIN = 0.5

AUTO_DISABLE_REASON = "Profit factor below threshold for one or more symbols"


@dataclass(frozen=True)
class PresetSet:
    """Snapshot of a preset configuration Set."""

    id: str
    name: str
    indication_type: str | None = None
    connection_ids: tuple[str, ...] = ()
    is_active: bool = True
    evaluation_positions_count: int = DEFAULT_EVALUATION_POSITIONS_COUNT
    profit_factor_min: float = DEFAULT_PROFIT_FACTOR_MIN
    last_evaluation_at: datetime | None = None
    auto_disabled_at: datetime | None = None
    auto_disabled_reason: str | None = None


@dataclass(frozen=True)
class SetPosition:
    """A position as the evaluator sees it."""

    symbol: str
    profit_factor: float
    created_at: datetime | None = None
    status: str | None = None


@dataclass
class SymbolEvaluation:
    """Rolling performance of one symbol within a Set."""

    symbol: str
    total_positions: int
    recent_sample_size: int = 0
    avg_profit_factor_all: float = 0.0
    avg_profit_factor_recent: float = 0.0
    should_disable: bool = False
    sufficient_data: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "total_positions": self.total_positions,
            "recent_sample_size": self.recent_sample_size,
            "avg_profit_factor_all": round(self.avg_profit_factor_all, 6),
            "avg_profit_factor_recent": round(self.avg_profit_factor_recent, 6),
            "should_disable": self.should_disable,
            "sufficient_data": self.sufficient_data,
        }


@dataclass
class SetEvaluationResult:
    """Outcome of evaluating one Set."""

    set_id: str
    set_name: str
    evaluated_at: datetime
    symbols: list[SymbolEvaluation] = field(default_factory=list)
    overall_profit_factor: float = 0.0
    total_positions: int = 0
    should_disable_set: bool = False
    is_active: bool = True
    disabled_now: bool = False

    @property
    def judged_symbols(self) -> list[SymbolEvaluation]:
        return [s for s in self.symbols if s.sufficient_data]

    @property
    def failing_symbols(self) -> list[str]:
        return [s.symbol for s in self.symbols if s.should_disable]

    def to_dict(self) -> dict[str, Any]:
        return {
            "set_id": self.set_id,
            "set_name": self.set_name,
            "evaluated_at": self.evaluated_at.isoformat(),
            "overall_profit_factor": round(self.overall_profit_factor, 6),
            "total_positions": self.total_positions,
            "should_disable_set": self.should_disable_set,
            "is_active": self.is_active,
            "disabled_now": self.disabled_now,
            "symbols": [s.to_dict() for s in self.symbols],
        }


@dataclass
class EvaluationPassSummary:
    """Outcome of one pass over every active Set."""

    started_at: datetime
    evaluated: int = 0
    disabled: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    failed_set_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "evaluated": self.evaluated,
            "disabled": self.disabled,
            "failed": self.failed,
            "duration_seconds": round(self.duration_seconds, 3),
            "failed_set_ids": list(self.failed_set_ids),
        }
