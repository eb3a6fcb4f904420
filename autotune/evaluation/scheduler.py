"""
EvaluationScheduler - recurring and on-demand Set evaluation.

A single asyncio.Lock guards every pass. The recurring tick skips when a pass
is already running; manual runs wait for the lock. Passes never overlap.
"""

import asyncio
from typing import Any

from autotune.evaluation.models import EvaluationPassSummary, SetEvaluationResult
from autotune.evaluation.set_evaluator import PresetSetEvaluator
from autotune.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 3600.0


class EvaluationScheduler:
    """Owns the evaluation timer."""

    def __init__(
        self,
        evaluator: PresetSetEvaluator,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        run_on_start: bool = True,
    ):
        """
        Args:
            evaluator: Set evaluator to drive.
            interval_seconds: Seconds between recurring passes.
            run_on_start: Run the first pass immediately instead of after one interval.
        """
        self._evaluator = evaluator
        self._interval = interval_seconds
        self._run_on_start = run_on_start

        self._lock = asyncio.Lock()
        self._running = False
        self._task: asyncio.Task | None = None
        self._last_summary: EvaluationPassSummary | None = None
        self._passes = 0
        self._skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def last_summary(self) -> EvaluationPassSummary | None:
        return self._last_summary

    async def start(self, interval_seconds: float | None = None) -> None:
        """Start the recurring pass."""
        if self._running:
            logger.warning("evaluation_scheduler_already_running")
            return

        if interval_seconds is not None:
            if interval_seconds <= 0:
                raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
            self._interval = interval_seconds

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "evaluation_scheduler_started",
            interval=self._interval,
            run_on_start=self._run_on_start,
        )

    async def stop(self) -> None:
        """Stop the recurring pass; a pass in flight is cancelled."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("evaluation_scheduler_stopped")

    async def tick(self) -> EvaluationPassSummary | None:
        """Run a scheduled pass unless one is already in progress."""
        if self._lock.locked():
            self._skipped_ticks += 1
            logger.info("evaluation_tick_skipped", reason="pass_in_progress")
            return None
        async with self._lock:
            return await self._run_pass()

    async def run_once(
        self, set_id: str | None = None
    ) -> EvaluationPassSummary | SetEvaluationResult:
        """
        Manual trigger: one Set when ``set_id`` is given, otherwise a full pass.

        Waits for any pass in progress.

        Raises:
            SetNotFoundError: If ``set_id`` does not exist
        """
        async with self._lock:
            if set_id is not None:
                return await self._evaluator.evaluate_set_by_id(set_id)
            return await self._run_pass()

    async def _run_pass(self) -> EvaluationPassSummary:
        summary = await self._evaluator.evaluate_all()
        self._last_summary = summary
        self._passes += 1
        return summary

    async def _loop(self) -> None:
        if not self._run_on_start:
            await asyncio.sleep(self._interval)
        while self._running:
            try:
                await self.tick()
            except Exception as e:
                logger.error("evaluation_pass_error", error=str(e), exc_info=True)
            await asyncio.sleep(self._interval)

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "interval_seconds": self._interval,
            "in_progress": self.in_progress,
            "passes": self._passes,
            "skipped_ticks": self._skipped_ticks,
            "last_pass": self._last_summary.to_dict() if self._last_summary else None,
        }
