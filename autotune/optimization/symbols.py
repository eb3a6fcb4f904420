"""
Symbol selection for an optimization run.
"""

from datetime import datetime
from typing import Protocol

from autotune.config.schemas import ExchangeOrderBy, OptimizationRequest, SymbolMode
from autotune.database.repositories import PositionRepository
from autotune.utils.logger import get_logger

logger = get_logger(__name__)


def _normalize(symbol: str) -> str:
    return symbol.strip().upper()


class SymbolRanker(Protocol):
    """Ranks tradable symbols for exchange symbol mode."""

    async def rank(
        self,
        order_by: ExchangeOrderBy,
        limit: int,
        since: datetime,
        indication_type: str | None,
    ) -> list[str]: ...


class PositionActivityRanker:
    """
    Ranks symbols by how many closed positions they produced in the window.

    Stands in for live market data; ``order_by`` is accepted for interface
    compatibility but every key ranks by activity.
    """

    def __init__(self, positions: PositionRepository) -> None:
        self.positions = positions

    async def rank(
        self,
        order_by: ExchangeOrderBy,
        limit: int,
        since: datetime,
        indication_type: str | None,
    ) -> list[str]:
        return await self.positions.rank_symbols_by_activity(
            since=since, limit=limit, indication_type=indication_type
        )


class SymbolSelector:
    """Resolves a request's symbol options into the list of symbols to replay."""

    def __init__(self, ranker: SymbolRanker, main_symbols: list[str] | None = None) -> None:
        self.ranker = ranker
        self.main_symbols = list(main_symbols or [])

    async def select(self, request: OptimizationRequest, since: datetime) -> list[str]:
        """
        Forced symbols first, then ranked symbols up to ``symbol_limit``.

        Main mode uses the configured main symbols and falls back to the
        exchange ranking when none are configured.
        """
        configured = [_normalize(s) for s in request.forced_symbols]
        if request.symbol_mode == SymbolMode.MAIN and self.main_symbols:
            configured += [_normalize(s) for s in self.main_symbols[: request.symbol_limit]]
            ranked: list[str] = []
        else:
            # Ranked symbols come from stored rows and are kept as stored
            ranked = await self.ranker.rank(
                order_by=request.exchange_order_by,
                limit=request.symbol_limit,
                since=since,
                indication_type=request.indication_type,
            )

        selected: list[str] = []
        seen: set[str] = set()
        for symbol in [*configured, *ranked]:
            key = _normalize(symbol)
            if key and key not in seen:
                seen.add(key)
                selected.append(symbol)

        logger.info(
            "symbols_selected",
            mode=request.symbol_mode.value,
            forced=len(request.forced_symbols),
            symbols=selected,
        )
        return selected
