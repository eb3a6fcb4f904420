"""
Repositories over the async DatabaseManager.

Rows are converted to engine dataclasses here; JSON text columns are
encoded and decoded only in this module.
"""

import json
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import selectinload

from autotune.config.schemas import OptimizationRequest
from autotune.core.time_provider import ensure_utc
from autotune.database.manager import DatabaseManager
from autotune.database.models import (
    OptimizationConfigRecord,
    PresetSetRecord,
    PseudoPositionRecord,
)
from autotune.evaluation.models import (
    DEFAULT_EVALUATION_POSITIONS_COUNT,
    DEFAULT_PROFIT_FACTOR_MIN,
    PresetSet,
    SetPosition,
)
from autotune.optimization.models import HistoricalPosition, coerce_float
from autotune.utils.logger import LoggerMixin

CLOSED_STATUS = "closed"


class PositionRepository(LoggerMixin):
    """Read access to pseudo positions."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def get_closed_positions(
        self,
        since: datetime,
        symbols: list[str] | None = None,
        indication_type: str | None = None,
    ) -> list[HistoricalPosition]:
        """Closed positions created at or after ``since``, newest first."""
        query = select(PseudoPositionRecord).where(
            PseudoPositionRecord.status == CLOSED_STATUS,
            PseudoPositionRecord.created_at >= since,
        )
        if symbols:
            # Stored symbols are not guaranteed to be upper case
            query = query.where(
                func.upper(PseudoPositionRecord.symbol).in_([s.upper() for s in symbols])
            )
        if indication_type:
            query = query.where(PseudoPositionRecord.indication_type == indication_type)
        query = query.order_by(PseudoPositionRecord.created_at.desc(), PseudoPositionRecord.id.desc())

        async with self.db.session() as session:
            result = await session.execute(query)
            records = list(result.scalars().all())

        return [HistoricalPosition.from_record(record) for record in records]

    async def rank_symbols_by_activity(
        self,
        since: datetime,
        limit: int,
        indication_type: str | None = None,
    ) -> list[str]:
        """Symbols with the most closed positions since ``since``."""
        count = func.count(PseudoPositionRecord.id)
        query = select(PseudoPositionRecord.symbol, count).where(
            PseudoPositionRecord.status == CLOSED_STATUS,
            PseudoPositionRecord.created_at >= since,
        )
        if indication_type:
            query = query.where(PseudoPositionRecord.indication_type == indication_type)
        query = (
            query.group_by(PseudoPositionRecord.symbol)
            .order_by(count.desc(), PseudoPositionRecord.symbol)
            .limit(limit)
        )

        async with self.db.session() as session:
            result = await session.execute(query)
            return [row[0] for row in result.all()]

    async def get_set_positions(
        self,
        connection_ids: tuple[str, ...] | list[str],
        indication_type: str | None,
    ) -> list[SetPosition]:
        """Positions of a Set's connections, newest first. No indication type matches all."""
        if not connection_ids:
            return []

        query = select(PseudoPositionRecord).where(
            PseudoPositionRecord.connection_id.in_(list(connection_ids))
        )
        if indication_type:
            query = query.where(PseudoPositionRecord.indication_type == indication_type)
        query = query.order_by(PseudoPositionRecord.created_at.desc(), PseudoPositionRecord.id.desc())

        async with self.db.session() as session:
            result = await session.execute(query)
            records = list(result.scalars().all())

        return [
            SetPosition(
                symbol=record.symbol,
                profit_factor=coerce_float(record.profit_factor),
                created_at=ensure_utc(record.created_at),
                status=record.status,
            )
            for record in records
        ]


class SetRepository(LoggerMixin):
    """Read and update access to preset configuration Sets."""

    def __init__(
        self,
        db: DatabaseManager,
        default_evaluation_positions_count: int = DEFAULT_EVALUATION_POSITIONS_COUNT,
        default_profit_factor_min: float = DEFAULT_PROFIT_FACTOR_MIN,
    ) -> None:
        self.db = db
        self.default_evaluation_positions_count = default_evaluation_positions_count
        self.default_profit_factor_min = default_profit_factor_min

    def _to_snapshot(self, record: PresetSetRecord) -> PresetSet:
        # Unset or zero thresholds fall back to the defaults
        return PresetSet(
            id=record.id,
            name=record.name,
            indication_type=record.indication_type,
            connection_ids=tuple(c.connection_id for c in record.connections),
            is_active=record.is_active,
            evaluation_positions_count=(
                record.evaluation_positions_count or self.default_evaluation_positions_count
            ),
            profit_factor_min=(
                record.profit_factor_min
                if record.profit_factor_min
                else self.default_profit_factor_min
            ),
            last_evaluation_at=ensure_utc(record.last_evaluation_at),
            auto_disabled_at=ensure_utc(record.auto_disabled_at),
            auto_disabled_reason=record.auto_disabled_reason,
        )

    async def get(self, set_id: str) -> PresetSet | None:
        async with self.db.session() as session:
            result = await session.execute(
                select(PresetSetRecord)
                .options(selectinload(PresetSetRecord.connections))
                .where(PresetSetRecord.id == set_id)
            )
            record = result.scalar_one_or_none()
            return self._to_snapshot(record) if record else None

    async def list_active(self) -> list[PresetSet]:
        async with self.db.session() as session:
            result = await session.execute(
                select(PresetSetRecord)
                .options(selectinload(PresetSetRecord.connections))
                .where(PresetSetRecord.is_active.is_(True))
                .order_by(PresetSetRecord.created_at, PresetSetRecord.id)
            )
            return [self._to_snapshot(record) for record in result.scalars().all()]

    async def mark_evaluated(self, set_id: str, evaluated_at: datetime) -> None:
        async with self.db.session() as session:
            await session.execute(
                update(PresetSetRecord)
                .where(PresetSetRecord.id == set_id)
                .values(last_evaluation_at=evaluated_at, updated_at=evaluated_at)
            )

    async def auto_disable(self, set_id: str, disabled_at: datetime, reason: str) -> None:
        async with self.db.session() as session:
            await session.execute(
                update(PresetSetRecord)
                .where(PresetSetRecord.id == set_id)
                .values(
                    is_active=False,
                    auto_disabled_at=disabled_at,
                    auto_disabled_reason=reason,
                    last_evaluation_at=disabled_at,
                    updated_at=disabled_at,
                )
            )
        self.logger.warning("preset_set_auto_disabled", set_id=set_id, reason=reason)


class OptimizationConfigRepository(LoggerMixin):
    """Stores optimization requests under a fresh config id."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def create(
        self,
        request: OptimizationRequest,
        steps: int,
        created_at: datetime,
    ) -> str:
        config_id = str(uuid.uuid4())
        record = OptimizationConfigRecord(
            id=config_id,
            name=f"Auto Config {created_at.isoformat()}",
            symbol_mode=request.symbol_mode.value,
            exchange_order_by=request.exchange_order_by.value,
            symbol_limit=request.symbol_limit,
            forced_symbols=json.dumps(request.forced_symbols),
            indication_type=request.indication_type,
            indication_params=json.dumps(request.indication_params, sort_keys=True, default=str),
            takeprofit_min=request.takeprofit_min,
            takeprofit_max=request.takeprofit_max,
            stoploss_min=request.stoploss_min,
            stoploss_max=request.stoploss_max,
            steps=steps,
            trailing_enabled=request.trailing_enabled,
            trailing_only=request.trailing_only,
            use_block=request.use_block,
            use_dca=request.use_dca,
            additional_strategies_only=request.additional_strategies_only,
            min_profit_factor=request.min_profit_factor,
            min_profit_factor_positions=request.min_profit_factor_positions,
            max_drawdown_time_hours=request.max_drawdown_time_hours,
            calculation_days=request.calculation_days,
            max_positions_per_direction=request.max_positions_per_direction,
            max_positions_per_symbol=request.max_positions_per_symbol,
            created_at=created_at,
        )
        async with self.db.session() as session:
            session.add(record)

        self.logger.info("optimization_config_created", config_id=config_id, name=record.name)
        return config_id

    async def get(self, config_id: str) -> dict[str, Any] | None:
        """Decoded config row, or None."""
        async with self.db.session() as session:
            record = await session.get(OptimizationConfigRecord, config_id)
            if record is None:
                return None
            data = {
                column.name: getattr(record, column.name)
                for column in OptimizationConfigRecord.__table__.columns
            }

        data["forced_symbols"] = json.loads(data["forced_symbols"] or "[]")
        data["indication_params"] = json.loads(data["indication_params"] or "{}")
        data["created_at"] = ensure_utc(data["created_at"])
        return data
