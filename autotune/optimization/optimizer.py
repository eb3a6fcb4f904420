"""
ParameterSweep - replays the history under every grid candidate and ranks the survivors.

Runs in-process by default; with ``max_workers > 1`` candidates are scored in
a ProcessPoolExecutor and re-assembled in generation order, so the ranking
never depends on completion order. A ``threading.Event`` cancel signal is
checked once per candidate.
"""

import threading
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from autotune.core.exceptions import SweepCancelledError
from autotune.optimization.models import CandidateScore, HistoricalPosition, ParameterCandidate
from autotune.optimization.ranker import AcceptanceCriteria, filter_and_rank, score_outcomes
from autotune.optimization.simulator import PositionSimulator
from autotune.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class SweepResult:
    """Outcome of one sweep."""

    scores: list[CandidateScore] = field(default_factory=list)
    accepted: list[CandidateScore] = field(default_factory=list)
    candidates_total: int = 0
    positions_total: int = 0
    failed: int = 0
    duration_seconds: float = 0.0

    @property
    def rejected(self) -> int:
        return len(self.scores) - len(self.accepted)

    def top_n(self, n: int) -> list[CandidateScore]:
        return self.accepted[:n]

    def param_impact(self) -> dict[str, float]:
        """Absolute correlation of each parameter with profit factor across all scores."""
        if len(self.scores) < 2:
            return {}

        objectives = np.array([s.profit_factor for s in self.scores], dtype=float)
        impact: dict[str, float] = {}
        for param in ("takeprofit", "stoploss"):
            values = np.array([getattr(s.candidate, param) for s in self.scores], dtype=float)
            if values.std() > 0 and objectives.std() > 0:
                corr = np.corrcoef(values, objectives)[0, 1]
                impact[param] = round(abs(float(corr)), 4)
            else:
                impact[param] = 0.0
        return impact

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidates_total": self.candidates_total,
            "positions_total": self.positions_total,
            "accepted": len(self.accepted),
            "rejected": self.rejected,
            "failed": self.failed,
            "duration_seconds": round(self.duration_seconds, 3),
            "param_impact": self.param_impact(),
        }


# =============================================================================
# Standalone scorer (picklable for ProcessPoolExecutor)
# =============================================================================


def _score_candidate(
    candidate: ParameterCandidate,
    positions: list[HistoricalPosition],
) -> CandidateScore:
    outcomes = PositionSimulator().simulate_all(candidate, positions)
    return score_outcomes(candidate, outcomes)


# =============================================================================
# Sweep
# =============================================================================


class ParameterSweep:
    """Scores every candidate against the same history."""

    def __init__(self, max_workers: int | None = None) -> None:
        self.max_workers = max_workers

    def run(
        self,
        candidates: list[ParameterCandidate],
        positions: list[HistoricalPosition],
        criteria: AcceptanceCriteria,
        cancel_event: threading.Event | None = None,
    ) -> SweepResult:
        """
        Score, filter and rank ``candidates``.

        Raises:
            SweepCancelledError: If ``cancel_event`` is set before all candidates are scored
        """
        start_time = time.perf_counter()
        workers = self.max_workers

        logger.info(
            "sweep_started",
            candidates=len(candidates),
            positions=len(positions),
            max_workers=workers,
        )

        if workers and workers > 1 and len(candidates) > 1:
            scores, failed = self._run_parallel(candidates, positions, workers, cancel_event)
        else:
            scores, failed = self._run_sequential(candidates, positions, cancel_event)

        result = SweepResult(
            scores=scores,
            accepted=filter_and_rank(scores, criteria),
            candidates_total=len(candidates),
            positions_total=len(positions),
            failed=failed,
            duration_seconds=time.perf_counter() - start_time,
        )

        logger.info(
            "sweep_complete",
            accepted=len(result.accepted),
            rejected=result.rejected,
            failed=failed,
            best_profit_factor=round(result.accepted[0].profit_factor, 4) if result.accepted else None,
            duration_s=round(result.duration_seconds, 3),
        )
        return result

    def _run_sequential(
        self,
        candidates: list[ParameterCandidate],
        positions: list[HistoricalPosition],
        cancel_event: threading.Event | None,
    ) -> tuple[list[CandidateScore], int]:
        simulator = PositionSimulator()
        scores = []
        for i, candidate in enumerate(candidates):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("sweep_cancelled", completed=i, total=len(candidates))
                raise SweepCancelledError(completed=i, total=len(candidates))
            outcomes = simulator.simulate_all(candidate, positions)
            scores.append(score_outcomes(candidate, outcomes))
        return scores, 0

    def _run_parallel(
        self,
        candidates: list[ParameterCandidate],
        positions: list[HistoricalPosition],
        max_workers: int,
        cancel_event: threading.Event | None,
    ) -> tuple[list[CandidateScore], int]:
        results_map: dict[int, CandidateScore] = {}
        failed = 0

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            future_to_idx = {
                executor.submit(_score_candidate, candidate, positions): idx
                for idx, candidate in enumerate(candidates)
            }

            for completed, future in enumerate(as_completed(future_to_idx)):
                if cancel_event is not None and cancel_event.is_set():
                    for pending in future_to_idx:
                        pending.cancel()
                    logger.warning("sweep_cancelled", completed=completed, total=len(candidates))
                    raise SweepCancelledError(completed=completed, total=len(candidates))

                idx = future_to_idx[future]
                try:
                    results_map[idx] = future.result()
                except Exception as e:
                    failed += 1
                    logger.error("candidate_failed", candidate_idx=idx, error=str(e))

        return [results_map[i] for i in range(len(candidates)) if i in results_map], failed
