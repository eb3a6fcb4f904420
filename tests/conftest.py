"""Pytest configuration and shared fixtures"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from autotune.application import AutotuneApplication
from autotune.config.schemas import AppConfig, EvaluationSettings, OptimizationSettings
from autotune.core.time_provider import SimulatedTimeProvider
from autotune.database.manager import DatabaseManager
from autotune.database.models import (
    PresetSetConnectionRecord,
    PresetSetRecord,
    PseudoPositionRecord,
)

UTC = timezone.utc
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> SimulatedTimeProvider:
    """Clock pinned to 2024-06-01 12:00 UTC."""
    return SimulatedTimeProvider(start=NOW)


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """File-backed SQLite config with the recurring evaluation disabled."""
    return AppConfig(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'autotune_test.db'}",
        log_to_file=False,
        optimization=OptimizationSettings(main_symbols=[]),
        evaluation=EvaluationSettings(enabled=False),
    )


@pytest_asyncio.fixture
async def application(
    app_config: AppConfig, clock: SimulatedTimeProvider
) -> AsyncGenerator[AutotuneApplication, None]:
    """Initialized application container with fresh tables."""
    app = AutotuneApplication(app_config, time_provider=clock)
    await app.initialize()
    yield app
    await app.shutdown()


@pytest.fixture
def db(application: AutotuneApplication) -> DatabaseManager:
    return application.db


@pytest.fixture
def add_positions(db: DatabaseManager) -> Callable[..., Awaitable[None]]:
    """Insert pseudo positions; each dict overrides the defaults below."""

    async def _add(rows: list[dict[str, Any]]) -> None:
        async with db.session() as session:
            for row in rows:
                values: dict[str, Any] = {
                    "symbol": "BTCUSDT",
                    "side": "buy",
                    "status": "closed",
                    "entry_price": Decimal("100"),
                    "max_price": Decimal("100"),
                    "min_price": Decimal("100"),
                    "quantity": Decimal("1"),
                    "pnl": Decimal("0"),
                    "created_at": NOW - timedelta(hours=1),
                }
                values.update(row)
                session.add(PseudoPositionRecord(**values))

    return _add


@pytest.fixture
def add_preset_set(db: DatabaseManager) -> Callable[..., Awaitable[str]]:
    """Insert a preset Set with its connections; returns the Set id."""

    async def _add(
        set_id: str,
        connection_ids: list[str],
        indication_type: str | None = None,
        is_active: bool = True,
        evaluation_positions_count: int | None = 25,
        profit_factor_min: float | None = 0.5,
        created_at: datetime = NOW - timedelta(days=10),
    ) -> str:
        async with db.session() as session:
            preset_set = PresetSetRecord(
                id=set_id,
                name=f"Set {set_id}",
                indication_type=indication_type,
                is_active=is_active,
                evaluation_positions_count=evaluation_positions_count,
                profit_factor_min=profit_factor_min,
                created_at=created_at,
                updated_at=created_at,
            )
            preset_set.connections = [
                PresetSetConnectionRecord(connection_id=cid) for cid in connection_ids
            ]
            session.add(preset_set)
        return set_id

    return _add
