"""
OptimizationService - request to ranked, persisted results.

Flow: persist config -> select symbols -> load history -> generate grid ->
sweep (worker thread) -> store top rows -> return the top slice.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from autotune.config.schemas import OptimizationRequest, OptimizationSettings
from autotune.core.exceptions import OptimizationError
from autotune.core.time_provider import TimeProvider
from autotune.database.repositories import OptimizationConfigRepository, PositionRepository
from autotune.optimization.grid import generate_candidates
from autotune.optimization.models import CandidateScore, ParameterRange, StrategyFlags
from autotune.optimization.optimizer import ParameterSweep, SweepResult
from autotune.optimization.ranker import AcceptanceCriteria
from autotune.optimization.result_store import OptimizationResultStore
from autotune.optimization.symbols import SymbolSelector
from autotune.utils.logger import LoggerMixin, log_context


@dataclass
class OptimizationResponse:
    """What a completed calculation returns."""

    config_id: str
    results: list[CandidateScore] = field(default_factory=list)
    saved: int = 0
    symbols: list[str] = field(default_factory=list)
    sweep: SweepResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "configId": self.config_id,
            "results": [score.to_dict() for score in self.results],
        }


class OptimizationService(LoggerMixin):
    """Runs auto-optimal calculations."""

    def __init__(
        self,
        configs: OptimizationConfigRepository,
        positions: PositionRepository,
        result_store: OptimizationResultStore,
        symbol_selector: SymbolSelector,
        time_provider: TimeProvider,
        settings: OptimizationSettings | None = None,
    ) -> None:
        self.configs = configs
        self.positions = positions
        self.result_store = result_store
        self.symbol_selector = symbol_selector
        self.time_provider = time_provider
        self.settings = settings or OptimizationSettings()
        self.sweep = ParameterSweep(max_workers=self.settings.max_workers)

    async def calculate(
        self,
        request: OptimizationRequest,
        cancel_event: threading.Event | None = None,
    ) -> OptimizationResponse:
        """
        Run one calculation end to end.

        Raises:
            SweepCancelledError: If cancelled or timed out; nothing is stored
            OptimizationError: If the config, history or results cannot be read or written
        """
        cancel_event = cancel_event or threading.Event()
        now = self.time_provider.now()
        steps = request.steps or self.settings.grid_steps

        try:
            config_id = await self.configs.create(request, steps=steps, created_at=now)
        except SQLAlchemyError as e:
            self.logger.error("optimization_config_save_failed", error=str(e))
            raise OptimizationError("Failed to store optimization config") from e

        with log_context(config_id=config_id):
            since = now - timedelta(days=request.calculation_days)
            try:
                symbols = await self.symbol_selector.select(request, since=since)
                positions = await self.positions.get_closed_positions(
                    since=since,
                    symbols=symbols or None,
                    indication_type=request.indication_type,
                )
            except SQLAlchemyError as e:
                self.logger.error("position_history_load_failed", error=str(e))
                raise OptimizationError("Failed to load position history", config_id) from e

            candidates = generate_candidates(
                ParameterRange(request.takeprofit_min, request.takeprofit_max, steps),
                ParameterRange(request.stoploss_min, request.stoploss_max, steps),
                StrategyFlags(
                    trailing_enabled=request.trailing_enabled,
                    trailing_only=request.trailing_only,
                    use_block=request.use_block,
                    use_dca=request.use_dca,
                    additional_strategies_only=request.additional_strategies_only,
                ),
            )
            criteria = AcceptanceCriteria(
                min_profit_factor=request.min_profit_factor,
                min_positions=request.min_profit_factor_positions,
                max_drawdown_time_hours=request.max_drawdown_time_hours,
            )

            self.logger.info(
                "optimization_started",
                symbols=len(symbols),
                positions=len(positions),
                candidates=len(candidates),
            )

            sweep_result = await self._run_sweep(candidates, positions, criteria, cancel_event)

            try:
                saved = await self.result_store.save(
                    config_id, sweep_result.top_n(self.settings.persist_limit)
                )
                results = await self.result_store.load_top(config_id, self.settings.response_limit)
            except SQLAlchemyError as e:
                self.logger.error("optimization_results_unavailable", error=str(e))
                raise OptimizationError("Failed to store optimization results", config_id) from e

            self.logger.info(
                "optimization_complete",
                accepted=len(sweep_result.accepted),
                saved=saved,
                returned=len(results),
                **sweep_result.param_impact(),
            )

        return OptimizationResponse(
            config_id=config_id,
            results=results,
            saved=saved,
            symbols=symbols,
            sweep=sweep_result,
        )

    async def _run_sweep(self, candidates, positions, criteria, cancel_event) -> SweepResult:
        work = asyncio.ensure_future(
            asyncio.to_thread(self.sweep.run, candidates, positions, criteria, cancel_event)
        )
        timeout = self.settings.sweep_timeout_seconds
        try:
            return await asyncio.wait_for(asyncio.shield(work), timeout=timeout)
        except asyncio.TimeoutError:
            cancel_event.set()
            self.logger.warning("sweep_timed_out", timeout_s=timeout)
        except asyncio.CancelledError:
            cancel_event.set()
            raise

        # The worker raises SweepCancelledError with its real progress at the next
        # candidate check; a sweep that finished meanwhile is returned as is
        return await work

    async def get_results(self, config_id: str, limit: int | None = None) -> list[CandidateScore] | None:
        """Stored top rows of a config, or None when the config does not exist."""
        if await self.configs.get(config_id) is None:
            return None
        return await self.result_store.load_top(config_id, limit or self.settings.response_limit)

    async def get_config(self, config_id: str) -> dict[str, Any] | None:
        return await self.configs.get(config_id)
