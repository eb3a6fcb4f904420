"""
Data models for the parameter sweep.

All models are plain dataclasses so they can be pickled into worker
processes. Candidates and historical positions are frozen.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

from autotune.core.exceptions import InvalidParameterRangeError
from autotune.core.time_provider import ensure_utc

# =============================================================================
# Enums
# =============================================================================


class PositionSide(str, Enum):
    """Direction of a historical position"""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: Any) -> "PositionSide":
        """Map storage values (buy/sell/long/short, any case) to a side; unknown is long."""
        text = str(getattr(value, "value", value) or "").strip().lower()
        if text in ("sell", "short"):
            return cls.SELL
        return cls.BUY


class HitKind(str, Enum):
    """Which boundary, if any, a simulated position hit"""

    TAKEPROFIT = "takeprofit"
    STOPLOSS = "stoploss"
    NONE = "none"


# =============================================================================
# Helpers
# =============================================================================


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Convert a stored numeric (str, Decimal, int, None) to float, ``default`` when unusable."""
    if value is None or isinstance(value, bool):
        return default
    try:
        if isinstance(value, str):
            result = float(Decimal(value.strip()))
        else:
            result = float(value)
    except (TypeError, ValueError, InvalidOperation):
        return default
    if result != result or result in (float("inf"), float("-inf")):
        return default
    return result


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


# =============================================================================
# Grid
# =============================================================================


@dataclass(frozen=True)
class ParameterRange:
    """Inclusive numeric range split into ``steps`` equal intervals."""

    min: float
    max: float
    steps: int = 5

    def __post_init__(self) -> None:
        if self.steps < 1:
            raise InvalidParameterRangeError(f"steps must be >= 1, got {self.steps}")
        if self.max < self.min:
            raise InvalidParameterRangeError(
                f"max ({self.max}) must be >= min ({self.min})"
            )

    @property
    def step_size(self) -> float:
        return (self.max - self.min) / self.steps


@dataclass(frozen=True)
class StrategyFlags:
    """Request-level flags copied onto every candidate."""

    trailing_enabled: bool = False
    trailing_only: bool = False
    use_block: bool = False
    use_dca: bool = False
    additional_strategies_only: bool = False


@dataclass(frozen=True)
class ParameterCandidate:
    """One point of the take-profit / stop-loss grid (percent values)."""

    takeprofit: float
    stoploss: float
    trailing_enabled: bool = False
    trailing_only: bool = False
    use_block: bool = False
    use_dca: bool = False
    additional_strategies_only: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# History and outcomes
# =============================================================================


@dataclass(frozen=True)
class HistoricalPosition:
    """A closed position replayed by the simulator."""

    symbol: str
    side: PositionSide
    entry_price: float
    max_price: float
    min_price: float
    realized_pnl: float
    closed_at: datetime | None = None
    quantity: float = 1.0
    position_id: int | None = None

    @classmethod
    def from_record(cls, record: Any) -> "HistoricalPosition":
        """
        Build from a storage row or mapping.

        Missing or unparseable numerics become 0 (quantity becomes 1), so a
        malformed row degrades instead of failing the whole run.
        """
        quantity = coerce_float(_field(record, "quantity"), default=1.0)
        closed_at = _field(record, "closed_at") or _field(record, "created_at")
        return cls(
            symbol=str(_field(record, "symbol") or ""),
            side=PositionSide.parse(_field(record, "side")),
            entry_price=coerce_float(_field(record, "entry_price")),
            max_price=coerce_float(_field(record, "max_price")),
            min_price=coerce_float(_field(record, "min_price")),
            realized_pnl=coerce_float(_field(record, "pnl")),
            closed_at=ensure_utc(closed_at) if isinstance(closed_at, datetime) else None,
            quantity=quantity if quantity > 0 else 1.0,
            position_id=_field(record, "id"),
        )


@dataclass(frozen=True)
class SimulatedOutcome:
    """Result of replaying one position under one candidate."""

    candidate: ParameterCandidate
    position: HistoricalPosition
    simulated_pnl: float
    hit_kind: HitKind


@dataclass
class CandidateScore:
    """Aggregated performance of one candidate over the replayed history."""

    candidate: ParameterCandidate
    profit_factor: float = 0.0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    total_positions: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    drawdown_time_hours: float = 0.0

    total_profit: float = 0.0
    total_loss: float = 0.0
    avg_profit: float = 0.0
    avg_loss: float = 0.0
    max_profit: float = 0.0
    max_loss: float = 0.0
    profit_factor_last_25: float = 0.0
    profit_factor_last_50: float = 0.0
    positions_per_24h: float = 0.0
    takeprofit_hits: int = 0
    stoploss_hits: int = 0

    config_id: str | None = None
    created_at: datetime | None = None
    id: int | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Flatten candidate parameters and metrics into one row."""
        return {
            **self.candidate.to_dict(),
            "profit_factor": round(self.profit_factor, 6),
            "win_rate": round(self.win_rate, 6),
            "total_pnl": round(self.total_pnl, 8),
            "total_positions": self.total_positions,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "drawdown_time_hours": round(self.drawdown_time_hours, 4),
            "total_profit": round(self.total_profit, 8),
            "total_loss": round(self.total_loss, 8),
            "avg_profit": round(self.avg_profit, 8),
            "avg_loss": round(self.avg_loss, 8),
            "max_profit": round(self.max_profit, 8),
            "max_loss": round(self.max_loss, 8),
            "profit_factor_last_25": round(self.profit_factor_last_25, 6),
            "profit_factor_last_50": round(self.profit_factor_last_50, 6),
            "positions_per_24h": round(self.positions_per_24h, 4),
            "takeprofit_hits": self.takeprofit_hits,
            "stoploss_hits": self.stoploss_hits,
            "config_id": self.config_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
