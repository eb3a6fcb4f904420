"""End-to-end tests for OptimizationService"""

import threading
import time
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from autotune.config.schemas import OptimizationRequest
from autotune.core.exceptions import OptimizationError, SweepCancelledError


def _history(now, count=50, symbol="BTCUSDT"):
    rows = []
    for i in range(count):
        created = now - timedelta(minutes=30 * (i + 1))
        rows.append(
            {
                "symbol": symbol,
                "side": "buy" if i % 2 == 0 else "sell",
                "entry_price": Decimal("100"),
                "max_price": Decimal(100 + (i % 7)),
                "min_price": Decimal(100 - (i % 5)),
                "pnl": Decimal(str((i % 3 - 1) * 1.5)),
                "indication_type": "direction",
                "created_at": created,
                "closed_at": created + timedelta(minutes=20),
            }
        )
    return rows


def _request(**overrides):
    values = {
        "symbol_mode": "exchange",
        "takeprofit_min": 2,
        "takeprofit_max": 4,
        "stoploss_min": 1,
        "stoploss_max": 2,
        "min_profit_factor": 0,
        "min_profit_factor_positions": 0,
        "max_drawdown_time_hours": 1000,
        "calculation_days": 3,
    }
    values.update(overrides)
    return OptimizationRequest(**values)


class SlowSweep:
    """Sweep stand-in that takes ``delay`` seconds per candidate and honours cancellation."""

    def __init__(self, delay: float) -> None:
        self.delay = delay

    def run(self, candidates, positions, criteria, cancel_event=None):
        for i, _ in enumerate(candidates):
            if cancel_event is not None and cancel_event.is_set():
                raise SweepCancelledError(completed=i, total=len(candidates))
            time.sleep(self.delay)
        raise AssertionError("sweep was not cancelled")


@pytest.mark.asyncio
class TestOptimizationService:
    """Request to stored, ranked results"""

    async def test_end_to_end(self, application, add_positions, clock):
        await add_positions(_history(clock.now()))

        response = await application.optimization.calculate(_request())

        assert response.config_id
        assert 0 < len(response.results) <= 20
        assert all(r.total_positions == 50 for r in response.results)
        pfs = [r.profit_factor for r in response.results]
        assert pfs == sorted(pfs, reverse=True)
        assert response.saved == 36
        assert await application.result_store.count(response.config_id) == 36

        body = response.to_dict()
        assert body["success"] is True
        assert body["configId"] == response.config_id
        assert body["results"][0]["config_id"] == response.config_id

    async def test_window_and_status_filter(self, application, add_positions, clock):
        now = clock.now()
        await add_positions(
            _history(now, count=10)
            + [{"status": "open", "created_at": now - timedelta(hours=2)}] * 4
            + [{"created_at": now - timedelta(days=5)}] * 4
        )

        response = await application.optimization.calculate(_request())

        assert {r.total_positions for r in response.results} == {10}

    async def test_indication_type_filter(self, application, add_positions, clock):
        now = clock.now()
        await add_positions(
            _history(now, count=12)
            + [{"indication_type": "move", "created_at": now - timedelta(hours=1)}] * 5
        )

        response = await application.optimization.calculate(_request(indication_type="direction"))

        assert {r.total_positions for r in response.results} == {12}

    async def test_forced_symbols_restrict_history(self, application, add_positions, clock):
        now = clock.now()
        await add_positions(_history(now, count=8) + _history(now, count=30, symbol="ETHUSDT"))

        response = await application.optimization.calculate(
            _request(symbol_limit=1, forced_symbols=["BTCUSDT"])
        )

        # Forced BTCUSDT plus the single most active symbol (ETHUSDT)
        assert response.symbols == ["BTCUSDT", "ETHUSDT"]
        assert {r.total_positions for r in response.results} == {38}

    async def test_nothing_accepted(self, application, add_positions, clock):
        await add_positions(_history(clock.now()))

        response = await application.optimization.calculate(
            _request(min_profit_factor_positions=51)
        )

        assert response.results == []
        assert response.saved == 0
        assert response.to_dict()["results"] == []

    async def test_custom_steps(self, application, add_positions, clock):
        await add_positions(_history(clock.now()))
        response = await application.optimization.calculate(_request(steps=2))
        assert response.saved == 9

    async def test_config_persisted(self, application, clock):
        response = await application.optimization.calculate(
            _request(indication_params={"range": 3}, forced_symbols=["BTCUSDT"], use_dca=True)
        )

        config = await application.optimization.get_config(response.config_id)
        assert config["name"] == f"Auto Config {clock.now().isoformat()}"
        assert config["indication_params"] == {"range": 3}
        assert config["forced_symbols"] == ["BTCUSDT"]
        assert config["use_dca"] is True
        assert config["steps"] == 5

    async def test_history_failure_raises_without_results(self, application, monkeypatch):
        async def fail(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(application.positions, "get_closed_positions", fail)

        with pytest.raises(OptimizationError) as exc_info:
            await application.optimization.calculate(_request())

        config_id = exc_info.value.config_id
        assert config_id is not None
        assert await application.result_store.count(config_id) == 0

    async def test_cancelled_sweep_stores_nothing(self, application, add_positions, clock):
        await add_positions(_history(clock.now()))
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(SweepCancelledError):
            await application.optimization.calculate(_request(), cancel_event=cancel)

    async def test_get_results_unknown_config(self, application):
        assert await application.optimization.get_results("missing") is None

    async def test_default_thresholds_scenario(self, application, add_positions, clock):
        await add_positions(_history(clock.now()))

        response = await application.optimization.calculate(
            _request(min_profit_factor=0.5, min_profit_factor_positions=10, max_drawdown_time_hours=12)
        )

        assert 0 <= response.saved <= 36
        assert len(response.results) <= 20
        assert all(r.total_positions == 50 for r in response.results)
        assert all(r.profit_factor >= 0.5 for r in response.results)
        assert all(r.drawdown_time_hours <= 12 for r in response.results)
        pfs = [r.profit_factor for r in response.results]
        assert pfs == sorted(pfs, reverse=True)

    async def test_lowercase_stored_symbols(self, application, add_positions, clock):
        await add_positions(_history(clock.now(), count=20, symbol="btcusdt"))

        response = await application.optimization.calculate(_request(symbol_mode="exchange"))

        assert response.symbols == ["btcusdt"]
        assert response.sweep.positions_total == 20
        assert {r.total_positions for r in response.results} == {20}

    async def test_forced_symbol_matches_lowercase_rows(self, application, add_positions, clock):
        await add_positions(_history(clock.now(), count=6, symbol="ethusdt"))

        response = await application.optimization.calculate(
            _request(symbol_mode="main", forced_symbols=["ETHUSDT"])
        )

        assert response.sweep.positions_total == 6

    async def test_timeout_reports_worker_progress(self, application, add_positions, clock):
        await add_positions(_history(clock.now(), count=5))
        application.optimization.sweep = SlowSweep(delay=0.01)
        application.optimization.settings.sweep_timeout_seconds = 0.2

        with pytest.raises(SweepCancelledError) as exc_info:
            await application.optimization.calculate(_request())

        assert exc_info.value.total == 36
        assert 0 < exc_info.value.completed < 36
