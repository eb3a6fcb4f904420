"""
PositionSimulator - replays historical positions under a candidate's TP/SL.

Each position is judged only by its recorded price extremes. When both the
take-profit and the stop-loss boundary were reached during the position's
life the take-profit wins: tick order is not available, so this is an
approximation that favours take-profit.
"""

from autotune.optimization.models import (
    HistoricalPosition,
    HitKind,
    ParameterCandidate,
    PositionSide,
    SimulatedOutcome,
)


def takeprofit_price(position: HistoricalPosition, takeprofit_pct: float) -> float:
    if position.side == PositionSide.SELL:
        return position.entry_price * (1 - takeprofit_pct / 100)
    return position.entry_price * (1 + takeprofit_pct / 100)


def stoploss_price(position: HistoricalPosition, stoploss_pct: float) -> float:
    if position.side == PositionSide.SELL:
        return position.entry_price * (1 + stoploss_pct / 100)
    return position.entry_price * (1 - stoploss_pct / 100)


def _price_move_pnl(position: HistoricalPosition, exit_price: float) -> float:
    if position.side == PositionSide.SELL:
        return (position.entry_price - exit_price) * position.quantity
    return (exit_price - position.entry_price) * position.quantity


class PositionSimulator:
    """Stateless TP/SL replay of closed positions."""

    def simulate(
        self,
        candidate: ParameterCandidate,
        position: HistoricalPosition,
    ) -> SimulatedOutcome:
        """
        Replay one position.

        Long: TP when max_price reaches entry*(1+tp%), SL when min_price falls
        to entry*(1-sl%). Short mirrors both. Neither hit keeps the realized
        PnL. Positions without a usable entry price keep their realized PnL.
        """
        if position.entry_price <= 0:
            return SimulatedOutcome(candidate, position, position.realized_pnl, HitKind.NONE)

        tp_price = takeprofit_price(position, candidate.takeprofit)
        sl_price = stoploss_price(position, candidate.stoploss)

        if position.side == PositionSide.SELL:
            tp_hit = position.min_price <= tp_price
            sl_hit = position.max_price >= sl_price
        else:
            tp_hit = position.max_price >= tp_price
            sl_hit = position.min_price <= sl_price

        if tp_hit:
            return SimulatedOutcome(
                candidate, position, _price_move_pnl(position, tp_price), HitKind.TAKEPROFIT
            )
        if sl_hit:
            return SimulatedOutcome(
                candidate, position, _price_move_pnl(position, sl_price), HitKind.STOPLOSS
            )
        return SimulatedOutcome(candidate, position, position.realized_pnl, HitKind.NONE)

    def simulate_all(
        self,
        candidate: ParameterCandidate,
        positions: list[HistoricalPosition],
    ) -> list[SimulatedOutcome]:
        """One outcome per position, in input order."""
        return [self.simulate(candidate, position) for position in positions]
