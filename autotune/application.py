"""
AutotuneApplication - explicitly constructed container for the engine's services.

Built once per process (or per test) from an AppConfig; everything that needs
the database, the clock or settings receives them from here.
"""

from pathlib import Path

from autotune.config.schemas import AppConfig
from autotune.core.time_provider import LiveTimeProvider, TimeProvider
from autotune.database.manager import DatabaseManager
from autotune.database.repositories import (
    OptimizationConfigRepository,
    PositionRepository,
    SetRepository,
)
from autotune.evaluation.scheduler import EvaluationScheduler
from autotune.evaluation.set_evaluator import PresetSetEvaluator
from autotune.optimization.result_store import OptimizationResultStore
from autotune.optimization.service import OptimizationService
from autotune.optimization.symbols import PositionActivityRanker, SymbolRanker, SymbolSelector
from autotune.utils.logger import LoggerMixin, setup_logging


class AutotuneApplication(LoggerMixin):
    """Wires repositories, services and the scheduler together."""

    def __init__(
        self,
        config: AppConfig,
        time_provider: TimeProvider | None = None,
        db_manager: DatabaseManager | None = None,
        symbol_ranker: SymbolRanker | None = None,
    ) -> None:
        self.config = config
        self.time_provider = time_provider or LiveTimeProvider()
        self.db = db_manager or DatabaseManager(
            config.database_url, pool_size=config.database_pool_size
        )

        self.positions = PositionRepository(self.db)
        self.sets = SetRepository(
            self.db,
            default_evaluation_positions_count=config.evaluation.default_evaluation_positions_count,
            default_profit_factor_min=config.evaluation.default_profit_factor_min,
        )
        self.configs = OptimizationConfigRepository(self.db)
        self.result_store = OptimizationResultStore(
            self.db,
            time_provider=self.time_provider,
            persist_limit=config.optimization.persist_limit,
        )
        self.optimization = OptimizationService(
            configs=self.configs,
            positions=self.positions,
            result_store=self.result_store,
            symbol_selector=SymbolSelector(
                symbol_ranker or PositionActivityRanker(self.positions),
                main_symbols=config.optimization.main_symbols,
            ),
            time_provider=self.time_provider,
            settings=config.optimization,
        )
        self.evaluator = PresetSetEvaluator(self.sets, self.positions, self.time_provider)
        self.scheduler = EvaluationScheduler(
            self.evaluator,
            interval_seconds=config.evaluation.interval_seconds,
            run_on_start=config.evaluation.run_on_start,
        )
        self._initialized = False

    def configure_logging(self) -> None:
        setup_logging(
            log_level=self.config.log_level,
            log_dir=Path(self.config.log_dir),
            log_to_console=self.config.log_to_console,
            log_to_file=self.config.log_to_file,
            json_logs=self.config.json_logs,
        )

    async def initialize(self) -> None:
        """Open the database and create missing tables when configured."""
        if self._initialized:
            return
        await self.db.initialize()
        if self.config.create_tables:
            await self.db.create_all_tables()
        self._initialized = True
        self.logger.info("Autotune application initialized")

    async def start(self) -> None:
        """Initialize, then start the recurring evaluation when enabled."""
        await self.initialize()
        if self.config.evaluation.enabled:
            await self.scheduler.start()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        await self.db.close()
        self._initialized = False
        self.logger.info("Autotune application stopped")
