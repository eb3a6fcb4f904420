"""
OptimizationResultStore - persists ranked candidates under their config id.
"""

from datetime import datetime

from sqlalchemy import func, select

from autotune.core.time_provider import LiveTimeProvider, TimeProvider, ensure_utc
from autotune.database.manager import DatabaseManager
from autotune.database.models import OptimizationResultRecord
from autotune.optimization.models import CandidateScore, ParameterCandidate
from autotune.optimization.ranker import PERSIST_LIMIT, RESPONSE_LIMIT
from autotune.utils.logger import LoggerMixin


def _to_record(config_id: str, score: CandidateScore, created_at: datetime) -> OptimizationResultRecord:
    candidate = score.candidate
    return OptimizationResultRecord(
        config_id=config_id,
        takeprofit=candidate.takeprofit,
        stoploss=candidate.stoploss,
        trailing_enabled=candidate.trailing_enabled,
        trailing_only=candidate.trailing_only,
        use_block=candidate.use_block,
        use_dca=candidate.use_dca,
        additional_strategies_only=candidate.additional_strategies_only,
        profit_factor=score.profit_factor,
        win_rate=score.win_rate,
        total_pnl=score.total_pnl,
        total_positions=score.total_positions,
        winning_trades=score.winning_trades,
        losing_trades=score.losing_trades,
        drawdown_time_hours=score.drawdown_time_hours,
        total_profit=score.total_profit,
        total_loss=score.total_loss,
        avg_profit=score.avg_profit,
        avg_loss=score.avg_loss,
        max_profit=score.max_profit,
        max_loss=score.max_loss,
        profit_factor_last_25=score.profit_factor_last_25,
        profit_factor_last_50=score.profit_factor_last_50,
        positions_per_24h=score.positions_per_24h,
        takeprofit_hits=score.takeprofit_hits,
        stoploss_hits=score.stoploss_hits,
        created_at=created_at,
    )


def _from_record(record: OptimizationResultRecord) -> CandidateScore:
    return CandidateScore(
        candidate=ParameterCandidate(
            takeprofit=record.takeprofit,
            stoploss=record.stoploss,
            trailing_enabled=record.trailing_enabled,
            trailing_only=record.trailing_only,
            use_block=record.use_block,
            use_dca=record.use_dca,
            additional_strategies_only=record.additional_strategies_only,
        ),
        profit_factor=record.profit_factor,
        win_rate=record.win_rate,
        total_pnl=record.total_pnl,
        total_positions=record.total_positions,
        winning_trades=record.winning_trades,
        losing_trades=record.losing_trades,
        drawdown_time_hours=record.drawdown_time_hours,
        total_profit=record.total_profit,
        total_loss=record.total_loss,
        avg_profit=record.avg_profit,
        avg_loss=record.avg_loss,
        max_profit=record.max_profit,
        max_loss=record.max_loss,
        profit_factor_last_25=record.profit_factor_last_25,
        profit_factor_last_50=record.profit_factor_last_50,
        positions_per_24h=record.positions_per_24h,
        takeprofit_hits=record.takeprofit_hits,
        stoploss_hits=record.stoploss_hits,
        config_id=record.config_id,
        created_at=ensure_utc(record.created_at),
        id=record.id,
    )


class OptimizationResultStore(LoggerMixin):
    """Append-only storage of ranked candidate scores."""

    def __init__(
        self,
        db: DatabaseManager,
        time_provider: TimeProvider | None = None,
        persist_limit: int = PERSIST_LIMIT,
    ) -> None:
        self.db = db
        self.time_provider = time_provider or LiveTimeProvider()
        self.persist_limit = persist_limit

    async def save(self, config_id: str, ranked: list[CandidateScore]) -> int:
        """
        Store up to ``persist_limit`` rows of an already ranked list.

        Each row is written in its own transaction; a failing row is logged
        and skipped. Returns the number of rows stored.
        """
        created_at = self.time_provider.now()
        saved = 0

        for rank, score in enumerate(ranked[: self.persist_limit]):
            try:
                async with self.db.session() as session:
                    session.add(_to_record(config_id, score, created_at))
                saved += 1
            except Exception as e:
                self.logger.error(
                    "result_row_save_failed",
                    config_id=config_id,
                    rank=rank,
                    takeprofit=score.candidate.takeprofit,
                    stoploss=score.candidate.stoploss,
                    error=str(e),
                )

        self.logger.info(
            "optimization_results_saved",
            config_id=config_id,
            saved=saved,
            offered=len(ranked),
        )
        return saved

    async def load_top(self, config_id: str, n: int = RESPONSE_LIMIT) -> list[CandidateScore]:
        """Best ``n`` rows by profit factor desc, win rate desc, insertion order."""
        async with self.db.session() as session:
            result = await session.execute(
                select(OptimizationResultRecord)
                .where(OptimizationResultRecord.config_id == config_id)
                .order_by(
                    OptimizationResultRecord.profit_factor.desc(),
                    OptimizationResultRecord.win_rate.desc(),
                    OptimizationResultRecord.id.asc(),
                )
                .limit(n)
            )
            return [_from_record(record) for record in result.scalars().all()]

    async def count(self, config_id: str) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(OptimizationResultRecord.id)).where(
                    OptimizationResultRecord.config_id == config_id
                )
            )
            return int(result.scalar_one())
