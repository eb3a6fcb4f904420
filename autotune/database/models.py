"""
SQLAlchemy models for the optimization and evaluation engines.
Defines tables for optimization configs and results, preset configuration
Sets with their connections, and the pseudo positions both engines read.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


class OptimizationConfigRecord(Base):
    """One auto-optimal calculation request, immutable once written"""

    __tablename__ = "auto_optimal_configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    symbol_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="main")
    exchange_order_by: Mapped[str] = mapped_column(String(40), nullable=False, default="volume_24h")
    symbol_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    forced_symbols: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list
    indication_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    indication_params: Mapped[str] = mapped_column(Text, nullable=False, default="{}")  # JSON map

    takeprofit_min: Mapped[float] = mapped_column(Float, nullable=False)
    takeprofit_max: Mapped[float] = mapped_column(Float, nullable=False)
    stoploss_min: Mapped[float] = mapped_column(Float, nullable=False)
    stoploss_max: Mapped[float] = mapped_column(Float, nullable=False)
    steps: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    trailing_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    trailing_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    use_block: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    use_dca: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    additional_strategies_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    min_profit_factor: Mapped[float] = mapped_column(Float, nullable=False)
    min_profit_factor_positions: Mapped[int] = mapped_column(Integer, nullable=False)
    max_drawdown_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    calculation_days: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    max_positions_per_direction: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    max_positions_per_symbol: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    results: Mapped[list["OptimizationResultRecord"]] = relationship(
        "OptimizationResultRecord", back_populates="config", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<OptimizationConfigRecord(id={self.id}, name={self.name})>"


class OptimizationResultRecord(Base):
    """One accepted, ranked candidate of an optimization run"""

    __tablename__ = "auto_optimal_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    config_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("auto_optimal_configs.id"), nullable=False
    )

    # Candidate parameters
    takeprofit: Mapped[float] = mapped_column(Float, nullable=False)
    stoploss: Mapped[float] = mapped_column(Float, nullable=False)
    trailing_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    trailing_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    use_block: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    use_dca: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    additional_strategies_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Metrics
    profit_factor: Mapped[float] = mapped_column(Float, nullable=False)
    win_rate: Mapped[float] = mapped_column(Float, nullable=False)
    total_pnl: Mapped[float] = mapped_column(Float, nullable=False)
    total_positions: Mapped[int] = mapped_column(Integer, nullable=False)
    winning_trades: Mapped[int] = mapped_column(Integer, nullable=False)
    losing_trades: Mapped[int] = mapped_column(Integer, nullable=False)
    drawdown_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    total_profit: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_loss: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    avg_profit: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    avg_loss: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    max_profit: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    max_loss: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    profit_factor_last_25: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    profit_factor_last_50: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    positions_per_24h: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    takeprofit_hits: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stoploss_hits: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    config: Mapped["OptimizationConfigRecord"] = relationship(
        "OptimizationConfigRecord", back_populates="results"
    )

    __table_args__ = (
        Index("idx_auto_optimal_results_ranking", "config_id", "profit_factor", "win_rate"),
    )

    def __repr__(self) -> str:
        return (
            f"<OptimizationResultRecord(id={self.id}, config_id={self.config_id}, "
            f"tp={self.takeprofit}, sl={self.stoploss}, pf={self.profit_factor})>"
        )


class PresetSetRecord(Base):
    """A deployed group of parameter presets under continuous evaluation"""

    __tablename__ = "preset_configuration_sets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    indication_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    evaluation_positions_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    profit_factor_min: Mapped[float | None] = mapped_column(Float, nullable=True)

    last_evaluation_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    auto_disabled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    auto_disabled_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    connections: Mapped[list["PresetSetConnectionRecord"]] = relationship(
        "PresetSetConnectionRecord", back_populates="preset_set", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<PresetSetRecord(id={self.id}, name={self.name}, active={self.is_active})>"


class PresetSetConnectionRecord(Base):
    """Link between a Set and an exchange connection whose positions it owns"""

    __tablename__ = "preset_type_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    set_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("preset_configuration_sets.id"), nullable=False
    )
    connection_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    preset_set: Mapped["PresetSetRecord"] = relationship(
        "PresetSetRecord", back_populates="connections"
    )

    __table_args__ = (UniqueConstraint("set_id", "connection_id", name="uq_preset_set_connection"),)

    def __repr__(self) -> str:
        return f"<PresetSetConnectionRecord(set_id={self.set_id}, connection_id={self.connection_id})>"


class PseudoPositionRecord(Base):
    """A simulated (paper) position produced by the trading engine"""

    __tablename__ = "pseudo_positions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    connection_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    symbol: Mapped[str] = mapped_column(String(30), nullable=False)
    side: Mapped[str] = mapped_column(String(10), nullable=False)
    indication_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")

    entry_price: Mapped[Decimal | None] = mapped_column(DECIMAL(20, 8), nullable=True)
    max_price: Mapped[Decimal | None] = mapped_column(DECIMAL(20, 8), nullable=True)
    min_price: Mapped[Decimal | None] = mapped_column(DECIMAL(20, 8), nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(DECIMAL(20, 8), nullable=True)
    pnl: Mapped[Decimal | None] = mapped_column(DECIMAL(20, 8), nullable=True)
    profit_factor: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_pseudo_positions_status_created", "status", "created_at"),
        Index("idx_pseudo_positions_connection", "connection_id", "indication_type", "created_at"),
        Index("idx_pseudo_positions_symbol", "symbol"),
    )

    def __repr__(self) -> str:
        return (
            f"<PseudoPositionRecord(id={self.id}, symbol={self.symbol}, "
            f"side={self.side}, status={self.status})>"
        )
