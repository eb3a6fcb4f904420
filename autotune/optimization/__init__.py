"""Take-profit / stop-loss parameter optimization"""

from autotune.optimization.grid import generate_candidates, generate_values
from autotune.optimization.models import (
    CandidateScore,
    HistoricalPosition,
    HitKind,
    ParameterCandidate,
    ParameterRange,
    PositionSide,
    SimulatedOutcome,
    StrategyFlags,
)
from autotune.optimization.ranker import (
    AcceptanceCriteria,
    calculate_profit_factor,
    rank_scores,
    score_outcomes,
)
from autotune.optimization.simulator import PositionSimulator

__all__ = [
    "AcceptanceCriteria",
    "CandidateScore",
    "HistoricalPosition",
    "HitKind",
    "ParameterCandidate",
    "ParameterRange",
    "PositionSide",
    "PositionSimulator",
    "SimulatedOutcome",
    "StrategyFlags",
    "calculate_profit_factor",
    "generate_candidates",
    "generate_values",
    "rank_scores",
    "score_outcomes",
]
