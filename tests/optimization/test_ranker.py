"""Tests for candidate scoring, filtering and ranking"""

from datetime import datetime, timedelta, timezone

import pytest

from autotune.optimization.models import (
    CandidateScore,
    HistoricalPosition,
    HitKind,
    ParameterCandidate,
    PositionSide,
    SimulatedOutcome,
)
from autotune.optimization.ranker import (
    PROFIT_FACTOR_NO_LOSS,
    AcceptanceCriteria,
    calculate_drawdown_hours,
    calculate_profit_factor,
    filter_and_rank,
    rank_scores,
    score_outcomes,
)

UTC = timezone.utc
T0 = datetime(2024, 1, 1, tzinfo=UTC)
CANDIDATE = ParameterCandidate(takeprofit=2, stoploss=1)


def _outcomes(pnls, hours_apart=1.0, hit=HitKind.NONE):
    """Outcomes newest first, as history is loaded."""
    outcomes = []
    for i, pnl in enumerate(pnls):
        position = HistoricalPosition(
            symbol="BTCUSDT",
            side=PositionSide.BUY,
            entry_price=100,
            max_price=100,
            min_price=100,
            realized_pnl=pnl,
            closed_at=T0 - timedelta(hours=i * hours_apart),
        )
        outcomes.append(SimulatedOutcome(CANDIDATE, position, pnl, hit))
    return outcomes


def _score(pf, win_rate, tp=2.0, positions=10, drawdown=0.0):
    return CandidateScore(
        candidate=ParameterCandidate(takeprofit=tp, stoploss=1),
        profit_factor=pf,
        win_rate=win_rate,
        total_positions=positions,
        drawdown_time_hours=drawdown,
    )


class TestProfitFactor:
    """Profit factor edge cases"""

    def test_no_trades_is_zero(self):
        assert calculate_profit_factor(0, 0) == 0.0

    def test_profit_without_loss_is_sentinel(self):
        assert calculate_profit_factor(10, 0) == PROFIT_FACTOR_NO_LOSS == 999

    def test_ratio(self):
        assert calculate_profit_factor(10, 5) == 2.0

    def test_only_losses_is_zero(self):
        assert calculate_profit_factor(0, 5) == 0.0


class TestScoreOutcomes:
    """Aggregation of simulated outcomes"""

    def test_empty(self):
        score = score_outcomes(CANDIDATE, [])
        assert score.total_positions == 0
        assert score.profit_factor == 0.0
        assert score.win_rate == 0.0

    def test_counts_and_totals(self):
        score = score_outcomes(CANDIDATE, _outcomes([6, 4, -5, 0]))

        assert score.total_positions == 4
        assert score.winning_trades == 2
        assert score.losing_trades == 1
        assert score.win_rate == 0.5
        assert score.total_pnl == pytest.approx(5.0)
        assert score.profit_factor == pytest.approx(2.0)
        assert score.total_profit == pytest.approx(10.0)
        assert score.total_loss == pytest.approx(5.0)
        assert score.avg_profit == pytest.approx(5.0)
        assert score.avg_loss == pytest.approx(5.0)
        assert score.max_profit == pytest.approx(6.0)
        assert score.max_loss == pytest.approx(5.0)

    def test_all_winners_sentinel(self):
        score = score_outcomes(CANDIDATE, _outcomes([1, 2, 3]))
        assert score.profit_factor == 999
        assert score.win_rate == 1.0

    def test_hit_counters(self):
        outcomes = _outcomes([2, 2], hit=HitKind.TAKEPROFIT) + _outcomes([-1], hit=HitKind.STOPLOSS)
        score = score_outcomes(CANDIDATE, outcomes)
        assert score.takeprofit_hits == 2
        assert score.stoploss_hits == 1

    def test_recent_window_uses_newest_outcomes(self):
        # 25 newest all win, older ones all lose
        pnls = [1.0] * 25 + [-1.0] * 25
        score = score_outcomes(CANDIDATE, _outcomes(pnls))
        assert score.profit_factor_last_25 == 999
        assert score.profit_factor_last_50 == pytest.approx(1.0)
        assert score.profit_factor == pytest.approx(1.0)

    def test_positions_per_24h(self):
        # 25 positions one hour apart span 24 hours
        score = score_outcomes(CANDIDATE, _outcomes([1.0] * 25))
        assert score.positions_per_24h == pytest.approx(25.0)


class TestDrawdownHours:
    """Cumulative PnL drawdown duration"""

    def test_no_points(self):
        assert calculate_drawdown_hours([]) == 0.0

    def test_recovered_drawdown(self):
        points = [
            (T0, 10.0),
            (T0 + timedelta(hours=2), -5.0),
            (T0 + timedelta(hours=5), -2.0),
            (T0 + timedelta(hours=8), 10.0),
        ]
        assert calculate_drawdown_hours(points) == pytest.approx(6.0)

    def test_unordered_input(self):
        points = [
            (T0 + timedelta(hours=8), 10.0),
            (T0, 10.0),
            (T0 + timedelta(hours=2), -5.0),
        ]
        assert calculate_drawdown_hours(points) == pytest.approx(6.0)

    def test_open_drawdown_measured_to_last_close(self):
        points = [
            (T0, 5.0),
            (T0 + timedelta(hours=1), -3.0),
            (T0 + timedelta(hours=4), 1.0),
        ]
        assert calculate_drawdown_hours(points) == pytest.approx(3.0)

    def test_longest_period_reported(self):
        points = [
            (T0, -1.0),
            (T0 + timedelta(hours=1), 2.0),
            (T0 + timedelta(hours=2), -1.0),
            (T0 + timedelta(hours=12), 5.0),
        ]
        assert calculate_drawdown_hours(points) == pytest.approx(10.0)

    def test_monotonic_gains(self):
        points = [(T0 + timedelta(hours=i), 1.0) for i in range(5)]
        assert calculate_drawdown_hours(points) == 0.0


class TestAcceptance:
    """Acceptance thresholds"""

    def test_profit_factor_below_minimum_rejected(self):
        criteria = AcceptanceCriteria(min_profit_factor=0.5)
        assert not criteria.accepts(_score(0.3, 0.5))
        assert criteria.accepts(_score(0.5, 0.5))

    def test_too_few_positions_rejected(self):
        criteria = AcceptanceCriteria(min_positions=20)
        assert not criteria.accepts(_score(2.0, 0.5, positions=19))
        assert criteria.accepts(_score(2.0, 0.5, positions=20))

    def test_drawdown_too_long_rejected(self):
        criteria = AcceptanceCriteria(max_drawdown_time_hours=12)
        assert not criteria.accepts(_score(2.0, 0.5, drawdown=12.5))
        assert criteria.accepts(_score(2.0, 0.5, drawdown=12))


class TestRanking:
    """Ordering of accepted candidates"""

    def test_profit_factor_then_win_rate(self):
        a = _score(2.0, 0.4, tp=1)
        b = _score(2.0, 0.6, tp=2)
        c = _score(3.0, 0.1, tp=3)
        assert rank_scores([a, b, c]) == [c, b, a]

    def test_full_ties_keep_generation_order(self):
        scores = [_score(1.5, 0.5, tp=float(i)) for i in range(5)]
        assert rank_scores(scores) == scores

    def test_filter_and_rank(self):
        criteria = AcceptanceCriteria(min_profit_factor=1.0)
        kept = filter_and_rank(
            [_score(0.9, 0.9, tp=1), _score(1.2, 0.5, tp=2), _score(4.0, 0.2, tp=3)],
            criteria,
        )
        assert [s.candidate.takeprofit for s in kept] == [3, 2]
