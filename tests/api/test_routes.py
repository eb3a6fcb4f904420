"""Tests for the HTTP API"""

from collections.abc import AsyncGenerator
from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from autotune.api import create_app
from autotune.core.exceptions import OptimizationError, SweepCancelledError

CALCULATE_BODY = {
    "symbol_mode": "exchange",
    "takeprofit_min": 2,
    "takeprofit_max": 4,
    "stoploss_min": 1,
    "stoploss_max": 2,
    "min_profit_factor": 0,
    "min_profit_factor_positions": 0,
    "max_drawdown_time_hours": 1000,
}


@pytest_asyncio.fixture
async def client(application) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an already initialized application."""
    app = create_app(application)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def history(add_positions, clock):
    now = clock.now()
    await add_positions(
        [
            {
                "side": "buy" if i % 2 == 0 else "sell",
                "max_price": Decimal(100 + (i % 6)),
                "min_price": Decimal(100 - (i % 4)),
                "pnl": Decimal(i % 3 - 1),
                "created_at": now - timedelta(hours=i + 1),
                "closed_at": now - timedelta(hours=i),
            }
            for i in range(20)
        ]
    )


@pytest.mark.asyncio
class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] is True
        assert body["evaluator_running"] is False


@pytest.mark.asyncio
class TestOptimizationRoutes:
    """POST /api/auto-optimal/calculate and stored lookups"""

    async def test_calculate(self, client, history):
        response = await client.post("/api/auto-optimal/calculate", json=CALCULATE_BODY)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["configId"]
        assert 0 < len(body["results"]) <= 20
        first = body["results"][0]
        assert first["config_id"] == body["configId"]
        assert first["total_positions"] == 20
        assert {"takeprofit", "stoploss", "profit_factor", "win_rate"} <= set(first)

    async def test_calculate_then_read_back(self, client, history):
        created = (await client.post("/api/auto-optimal/calculate", json=CALCULATE_BODY)).json()
        config_id = created["configId"]

        config = await client.get(f"/api/auto-optimal/{config_id}")
        assert config.status_code == 200
        assert config.json()["symbol_mode"] == "exchange"
        assert config.json()["takeprofit_max"] == 4

        results = await client.get(f"/api/auto-optimal/{config_id}/results", params={"limit": 3})
        assert results.status_code == 200
        assert len(results.json()["results"]) == 3
        assert results.json()["results"] == created["results"][:3]

    async def test_invalid_body(self, client):
        body = {**CALCULATE_BODY, "takeprofit_min": 5, "takeprofit_max": 1}
        response = await client.post("/api/auto-optimal/calculate", json=body)
        assert response.status_code == 422

    async def test_calculation_failure(self, client, application, monkeypatch):
        async def fail(request, cancel_event=None):
            raise OptimizationError("history unavailable", config_id="abc")

        monkeypatch.setattr(application.optimization, "calculate", fail)

        response = await client.post("/api/auto-optimal/calculate", json=CALCULATE_BODY)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to calculate optimal configurations",
        }

    async def test_unexpected_failure(self, client, application, monkeypatch):
        async def fail(request, cancel_event=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(application.optimization, "calculate", fail)

        response = await client.post("/api/auto-optimal/calculate", json=CALCULATE_BODY)
        assert response.status_code == 500
        assert response.json()["success"] is False

    async def test_cancelled_sweep(self, client, application, monkeypatch):
        async def cancelled(request, cancel_event=None):
            raise SweepCancelledError(completed=3, total=36)

        monkeypatch.setattr(application.optimization, "calculate", cancelled)

        response = await client.post("/api/auto-optimal/calculate", json=CALCULATE_BODY)
        assert response.status_code == 409
        assert response.json()["success"] is False

    async def test_unknown_config(self, client):
        assert (await client.get("/api/auto-optimal/missing")).status_code == 404
        assert (await client.get("/api/auto-optimal/missing/results")).status_code == 404

    async def test_results_limit_bounds(self, client):
        response = await client.get("/api/auto-optimal/any/results", params={"limit": 101})
        assert response.status_code == 422


@pytest.mark.asyncio
class TestEvaluationRoutes:
    """Manual Set evaluation and scheduler status"""

    async def test_evaluate_set(self, client, add_preset_set, add_positions, clock):
        await add_preset_set("set-1", ["conn-a"])
        await add_positions(
            [
                {"connection_id": "conn-a", "profit_factor": 0.2, "created_at": clock.now()}
                for _ in range(25)
            ]
        )

        response = await client.post("/api/preset-sets/set-1/evaluate")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["setId"] == "set-1"
        assert body["shouldDisableSet"] is True
        assert body["isActive"] is False
        assert body["symbols"][0]["symbol"] == "BTCUSDT"
        assert body["symbols"][0]["should_disable"] is True

    async def test_evaluate_missing_set(self, client):
        response = await client.post("/api/preset-sets/nope/evaluate")
        assert response.status_code == 404

    async def test_evaluate_all(self, client, add_preset_set):
        await add_preset_set("set-1", ["conn-a"])
        await add_preset_set("set-2", ["conn-b"], is_active=False)

        response = await client.post("/api/preset-sets/evaluate")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["evaluated"] == 1
        assert body["failed"] == 0

    async def test_status(self, client):
        await client.post("/api/preset-sets/evaluate")

        response = await client.get("/api/preset-sets/evaluator/status")

        assert response.status_code == 200
        body = response.json()
        assert body["running"] is False
        assert body["passes"] == 1
        assert body["last_pass"]["evaluated"] == 0
