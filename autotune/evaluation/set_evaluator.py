"""
PresetSetEvaluator - re-scores deployed Sets against their live positions.

For each Set the positions of its connections are grouped by symbol. A
symbol with at least ``evaluation_positions_count`` positions is judged on
the mean profit factor of its newest ``evaluation_positions_count``
positions; if that mean is below ``profit_factor_min`` the symbol fails, and
a single failing symbol disables the whole Set. Symbols with fewer positions
are reported but not judged.
"""

import time
from collections import OrderedDict

import numpy as np

from autotune.core.exceptions import SetNotFoundError
from autotune.core.time_provider import LiveTimeProvider, TimeProvider
from autotune.database.repositories import PositionRepository, SetRepository
from autotune.evaluation.models import (
    AUTO_DISABLE_REASON,
    EvaluationPassSummary,
    PresetSet,
    SetEvaluationResult,
    SetPosition,
    SymbolEvaluation,
)
from autotune.utils.logger import LoggerMixin, log_context


def _mean(values: list[float]) -> float:
    return float(np.mean(values)) if values else 0.0


def evaluate_symbols(
    positions: list[SetPosition],
    evaluation_positions_count: int,
    profit_factor_min: float,
) -> list[SymbolEvaluation]:
    """
    Per-symbol rolling evaluation.

    ``positions`` must be newest first; symbols are reported in order of
    first appearance.
    """
    grouped: OrderedDict[str, list[float]] = OrderedDict()
    for position in positions:
        grouped.setdefault(position.symbol, []).append(position.profit_factor)

    evaluations = []
    for symbol, profit_factors in grouped.items():
        if len(profit_factors) < evaluation_positions_count:
            evaluations.append(
                SymbolEvaluation(
                    symbol=symbol,
                    total_positions=len(profit_factors),
                    avg_profit_factor_all=_mean(profit_factors),
                    sufficient_data=False,
                )
            )
            continue

        recent = profit_factors[:evaluation_positions_count]
        avg_recent = _mean(recent)
        evaluations.append(
            SymbolEvaluation(
                symbol=symbol,
                total_positions=len(profit_factors),
                recent_sample_size=len(recent),
                avg_profit_factor_all=_mean(profit_factors),
                avg_profit_factor_recent=avg_recent,
                should_disable=avg_recent < profit_factor_min,
            )
        )
    return evaluations


class PresetSetEvaluator(LoggerMixin):
    """Evaluates Sets and applies the auto-disable decision."""

    def __init__(
        self,
        sets: SetRepository,
        positions: PositionRepository,
        time_provider: TimeProvider | None = None,
    ) -> None:
        self.sets = sets
        self.positions = positions
        self.time_provider = time_provider or LiveTimeProvider()

    async def evaluate_set(self, preset_set: PresetSet) -> SetEvaluationResult:
        """Evaluate one Set and write the outcome back."""
        positions = await self.positions.get_set_positions(
            preset_set.connection_ids, preset_set.indication_type
        )
        symbols = evaluate_symbols(
            positions,
            preset_set.evaluation_positions_count,
            preset_set.profit_factor_min,
        )
        now = self.time_provider.now()
        should_disable = any(s.should_disable for s in symbols)

        result = SetEvaluationResult(
            set_id=preset_set.id,
            set_name=preset_set.name,
            evaluated_at=now,
            symbols=symbols,
            overall_profit_factor=_mean([p.profit_factor for p in positions]),
            total_positions=len(positions),
            should_disable_set=should_disable,
            is_active=preset_set.is_active,
        )

        # Only active Sets transition; an inactive Set is scored and stamped
        if should_disable and preset_set.is_active:
            await self.sets.auto_disable(preset_set.id, now, AUTO_DISABLE_REASON)
            result.is_active = False
            result.disabled_now = True
            self.logger.warning(
                "preset_set_disabled",
                set_id=preset_set.id,
                set_name=preset_set.name,
                failing_symbols=result.failing_symbols,
                threshold=preset_set.profit_factor_min,
            )
        else:
            await self.sets.mark_evaluated(preset_set.id, now)

        self.logger.info(
            "preset_set_evaluated",
            set_id=preset_set.id,
            positions=len(positions),
            symbols=len(symbols),
            judged=len(result.judged_symbols),
            overall_profit_factor=round(result.overall_profit_factor, 4),
            should_disable=should_disable,
        )
        return result

    async def evaluate_set_by_id(self, set_id: str) -> SetEvaluationResult:
        """
        Evaluate one Set regardless of its active flag.

        Raises:
            SetNotFoundError: If the Set does not exist
        """
        preset_set = await self.sets.get(set_id)
        if preset_set is None:
            raise SetNotFoundError(set_id)
        with log_context(set_id=set_id, trigger="manual"):
            return await self.evaluate_set(preset_set)

    async def evaluate_all(self) -> EvaluationPassSummary:
        """Evaluate every active Set; one Set's failure does not stop the pass."""
        summary = EvaluationPassSummary(started_at=self.time_provider.now())
        started = time.perf_counter()

        active_sets = await self.sets.list_active()
        self.logger.info("evaluation_pass_started", sets=len(active_sets))

        for preset_set in active_sets:
            with log_context(set_id=preset_set.id, trigger="scheduled"):
                try:
                    result = await self.evaluate_set(preset_set)
                except Exception as e:
                    summary.failed += 1
                    summary.failed_set_ids.append(preset_set.id)
                    self.logger.error("preset_set_evaluation_failed", error=str(e), exc_info=True)
                    continue

            summary.evaluated += 1
            if result.disabled_now:
                summary.disabled += 1

        summary.duration_seconds = time.perf_counter() - started
        self.logger.info("evaluation_pass_complete", **summary.to_dict())
        return summary
