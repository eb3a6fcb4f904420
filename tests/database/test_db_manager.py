"""Tests for DatabaseManager and the repositories"""

from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy import inspect, select

from autotune.config.schemas import OptimizationRequest
from autotune.database.manager import DatabaseManager
from autotune.database.models import OptimizationConfigRecord


@pytest.mark.asyncio
class TestDatabaseManager:
    async def test_session_before_initialize(self):
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
        with pytest.raises(RuntimeError):
            async with manager.session():
                pass

    async def test_health_check(self, tmp_path: Path):
        manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'health.db'}")
        await manager.initialize()
        try:
            assert manager.is_sqlite
            assert await manager.health_check() is True
        finally:
            await manager.close()

        assert await manager.health_check() is False

    async def test_create_and_drop_tables(self, tmp_path: Path):
        manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'tables.db'}")
        await manager.initialize()
        try:
            await manager.create_all_tables()
            async with manager.engine.connect() as conn:
                created = await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
            assert "pseudo_positions" in created

            await manager.drop_all_tables()
            async with manager.engine.connect() as conn:
                remaining = await conn.run_sync(lambda c: inspect(c).get_table_names())
            assert remaining == []
        finally:
            await manager.close()

    async def test_rollback_on_error(self, db):
        with pytest.raises(ValueError):
            async with db.session() as session:
                session.add(
                    OptimizationConfigRecord(
                        id="rolled-back",
                        name="x",
                        symbol_mode="main",
                        exchange_order_by="volume_24h",
                        symbol_limit=5,
                        forced_symbols="[]",
                        indication_params="{}",
                        takeprofit_min=1,
                        takeprofit_max=2,
                        stoploss_min=1,
                        stoploss_max=2,
                        steps=5,
                        min_profit_factor=0.5,
                        min_profit_factor_positions=10,
                        max_drawdown_time_hours=12,
                    )
                )
                await session.flush()
                raise ValueError("abort")

        async with db.session() as session:
            result = await session.execute(select(OptimizationConfigRecord))
            assert result.scalars().all() == []


@pytest.mark.asyncio
class TestRepositories:
    async def test_config_round_trip(self, application, clock):
        request = OptimizationRequest(
            takeprofit_min=1,
            takeprofit_max=3,
            stoploss_min=0.5,
            stoploss_max=1,
            indication_type="direction",
            indication_params={"range": 3, "interval": "1m"},
            forced_symbols=["BTCUSDT"],
        )

        config_id = await application.configs.create(request, steps=4, created_at=clock.now())
        config = await application.configs.get(config_id)

        assert config["id"] == config_id
        assert config["indication_params"] == {"interval": "1m", "range": 3}
        assert config["forced_symbols"] == ["BTCUSDT"]
        assert config["steps"] == 4
        assert config["created_at"] == clock.now()

    async def test_unknown_config(self, application):
        assert await application.configs.get("missing") is None

    async def test_closed_positions_newest_first(self, application, add_positions, clock):
        now = clock.now()
        await add_positions(
            [
                {"symbol": "BTCUSDT", "created_at": now - timedelta(hours=3)},
                {"symbol": "ETHUSDT", "created_at": now - timedelta(hours=1)},
                {"symbol": "SOLUSDT", "created_at": now - timedelta(hours=2)},
            ]
        )

        positions = await application.positions.get_closed_positions(
            since=now - timedelta(days=1)
        )
        assert [p.symbol for p in positions] == ["ETHUSDT", "SOLUSDT", "BTCUSDT"]

        only_btc = await application.positions.get_closed_positions(
            since=now - timedelta(days=1), symbols=["BTCUSDT"]
        )
        assert [p.symbol for p in only_btc] == ["BTCUSDT"]

    async def test_list_active_sets(self, application, add_preset_set, clock):
        now = clock.now()
        await add_preset_set("late", ["c1"], created_at=now - timedelta(days=1))
        await add_preset_set("early", ["c2", "c3"], created_at=now - timedelta(days=2))
        await add_preset_set("off", ["c4"], is_active=False)

        sets = await application.sets.list_active()

        assert [s.id for s in sets] == ["early", "late"]
        assert sorted(sets[0].connection_ids) == ["c2", "c3"]
