"""
Candidate scoring, acceptance filtering and ranking.
"""

from dataclasses import dataclass
from datetime import datetime

import numpy as np

from autotune.optimization.models import (
    CandidateScore,
    HitKind,
    ParameterCandidate,
    SimulatedOutcome,
)

# Profit factor reported when there are profits but no losses
PROFIT_FACTOR_NO_LOSS = 999.0

# Ranked rows stored per run / returned to the caller
PERSIST_LIMIT = 100
RESPONSE_LIMIT = 20


def calculate_profit_factor(total_profit: float, total_loss: float) -> float:
    """
    Gross profit over gross loss (both non-negative).

    999 when there is profit and no loss, 0 when there is neither.
    """
    if total_loss > 0:
        return total_profit / total_loss
    if total_profit > 0:
        return PROFIT_FACTOR_NO_LOSS
    return 0.0


def _profit_factor_of(pnls: np.ndarray) -> float:
    profit = float(pnls[pnls > 0].sum()) if pnls.size else 0.0
    loss = float(-pnls[pnls < 0].sum()) if pnls.size else 0.0
    return calculate_profit_factor(profit, loss)


def calculate_drawdown_hours(points: list[tuple[datetime, float]]) -> float:
    """
    Longest time in hours that cumulative PnL stayed below its running peak.

    ``points`` are (close time, pnl) pairs in any order. A drawdown starts at
    the first close below the peak and ends at the first close above it; a
    drawdown still open at the last close is measured up to that close.
    """
    if not points:
        return 0.0

    ordered = sorted(points, key=lambda p: p[0])
    cumulative = 0.0
    peak = 0.0
    drawdown_start: datetime | None = None
    longest = 0.0

    for closed_at, pnl in ordered:
        cumulative += pnl
        if cumulative > peak:
            if drawdown_start is not None:
                hours = (closed_at - drawdown_start).total_seconds() / 3600
                longest = max(longest, hours)
                drawdown_start = None
            peak = cumulative
        elif cumulative < peak and drawdown_start is None:
            drawdown_start = closed_at

    if drawdown_start is not None:
        hours = (ordered[-1][0] - drawdown_start).total_seconds() / 3600
        longest = max(longest, hours)

    return longest


def _positions_per_24h(closed_times: list[datetime], total: int) -> float:
    if len(closed_times) < 2:
        return float(total)
    span_hours = (max(closed_times) - min(closed_times)).total_seconds() / 3600
    return total / max(span_hours, 1.0) * 24


def score_outcomes(
    candidate: ParameterCandidate,
    outcomes: list[SimulatedOutcome],
) -> CandidateScore:
    """
    Aggregate one candidate's simulated outcomes.

    Outcomes are expected newest first (the order history is loaded in), which
    is what the ``profit_factor_last_*`` windows rely on.
    """
    total = len(outcomes)
    if total == 0:
        return CandidateScore(candidate=candidate)

    pnls = np.array([o.simulated_pnl for o in outcomes], dtype=float)
    wins = pnls[pnls > 0]
    losses = pnls[pnls < 0]

    total_profit = float(wins.sum())
    total_loss = float(-losses.sum())
    winning = int(wins.size)
    losing = int(losses.size)

    timed = [(o.position.closed_at, o.simulated_pnl) for o in outcomes if o.position.closed_at]

    return CandidateScore(
        candidate=candidate,
        profit_factor=calculate_profit_factor(total_profit, total_loss),
        win_rate=winning / total,
        total_pnl=float(pnls.sum()),
        total_positions=total,
        winning_trades=winning,
        losing_trades=losing,
        drawdown_time_hours=calculate_drawdown_hours(timed),
        total_profit=total_profit,
        total_loss=total_loss,
        avg_profit=total_profit / winning if winning else 0.0,
        avg_loss=total_loss / losing if losing else 0.0,
        max_profit=float(wins.max()) if winning else 0.0,
        max_loss=float(-losses.min()) if losing else 0.0,
        profit_factor_last_25=_profit_factor_of(pnls[:25]),
        profit_factor_last_50=_profit_factor_of(pnls[:50]),
        positions_per_24h=_positions_per_24h([t for t, _ in timed], total),
        takeprofit_hits=sum(1 for o in outcomes if o.hit_kind == HitKind.TAKEPROFIT),
        stoploss_hits=sum(1 for o in outcomes if o.hit_kind == HitKind.STOPLOSS),
    )


@dataclass(frozen=True)
class AcceptanceCriteria:
    """Thresholds a candidate must meet to be kept."""

    min_profit_factor: float = 0.0
    min_positions: int = 0
    max_drawdown_time_hours: float = float("inf")

    def accepts(self, score: CandidateScore) -> bool:
        return (
            score.profit_factor >= self.min_profit_factor
            and score.total_positions >= self.min_positions
            and score.drawdown_time_hours <= self.max_drawdown_time_hours
        )


def rank_scores(scores: list[CandidateScore]) -> list[CandidateScore]:
    """
    Order by profit factor desc, then win rate desc.

    ``sorted`` is stable, so equal scores keep generation order.
    """
    return sorted(scores, key=lambda s: (-s.profit_factor, -s.win_rate))


def filter_and_rank(
    scores: list[CandidateScore],
    criteria: AcceptanceCriteria,
) -> list[CandidateScore]:
    """Drop rejected candidates and rank the rest."""
    return rank_scores([s for s in scores if criteria.accepts(s)])
