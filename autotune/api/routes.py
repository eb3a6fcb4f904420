"""
API routes.

Endpoints:
- POST /api/auto-optimal/calculate - run an optimization, return the top results
- GET  /api/auto-optimal/{config_id} - stored optimization config
- GET  /api/auto-optimal/{config_id}/results - stored top results
- POST /api/preset-sets/{set_id}/evaluate - evaluate one Set now
- POST /api/preset-sets/evaluate - evaluate every active Set now
- GET  /api/preset-sets/evaluator/status - scheduler status
- GET  /health - health check
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from autotune import __version__
from autotune.api.dependencies import get_application, get_optimization_service, get_scheduler
from autotune.application import AutotuneApplication
from autotune.config.schemas import OptimizationRequest
from autotune.core.exceptions import OptimizationError, SetNotFoundError, SweepCancelledError
from autotune.evaluation.scheduler import EvaluationScheduler
from autotune.optimization.service import OptimizationService
from autotune.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

CALCULATION_FAILED = "Failed to calculate optimal configurations"


# =============================================================================
# Health
# =============================================================================


@router.get("/health")
async def health_check(
    application: Annotated[AutotuneApplication, Depends(get_application)],
) -> dict[str, Any]:
    """Health check endpoint."""
    database_ok = await application.db.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": "autotune",
        "version": __version__,
        "database": database_ok,
        "evaluator_running": application.scheduler.is_running,
    }


# =============================================================================
# Optimization
# =============================================================================


@router.post("/api/auto-optimal/calculate")
async def calculate_optimal(
    req: OptimizationRequest,
    service: Annotated[OptimizationService, Depends(get_optimization_service)],
) -> Any:
    """Run a take-profit / stop-loss sweep and return the best candidates."""
    try:
        response = await service.calculate(req)
    except SweepCancelledError as e:
        logger.warning("calculation_cancelled", completed=e.completed, total=e.total)
        return JSONResponse(status_code=409, content={"success": False, "error": str(e)})
    except OptimizationError as e:
        logger.error("calculation_failed", config_id=e.config_id, error=str(e))
        return JSONResponse(status_code=500, content={"success": False, "error": CALCULATION_FAILED})
    except Exception as e:
        logger.error("calculation_failed", error=str(e), exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": CALCULATION_FAILED})

    return response.to_dict()


@router.get("/api/auto-optimal/{config_id}")
async def get_optimization_config(
    config_id: str,
    service: Annotated[OptimizationService, Depends(get_optimization_service)],
) -> dict[str, Any]:
    """Get a stored optimization config."""
    config = await service.get_config(config_id)
    if config is None:
        raise HTTPException(status_code=404, detail="Config not found")
    config["created_at"] = config["created_at"].isoformat() if config["created_at"] else None
    return config


@router.get("/api/auto-optimal/{config_id}/results")
async def get_optimization_results(
    config_id: str,
    service: Annotated[OptimizationService, Depends(get_optimization_service)],
    limit: int = Query(default=20, ge=1, le=100),
) -> dict[str, Any]:
    """Get the stored top results of a config."""
    results = await service.get_results(config_id, limit)
    if results is None:
        raise HTTPException(status_code=404, detail="Config not found")
    return {
        "success": True,
        "configId": config_id,
        "results": [score.to_dict() for score in results],
    }


# =============================================================================
# Set evaluation
# =============================================================================


@router.get("/api/preset-sets/evaluator/status")
async def evaluator_status(
    scheduler: Annotated[EvaluationScheduler, Depends(get_scheduler)],
) -> dict[str, Any]:
    """Recurring evaluation status."""
    return scheduler.status()


@router.post("/api/preset-sets/evaluate")
async def evaluate_all_sets(
    scheduler: Annotated[EvaluationScheduler, Depends(get_scheduler)],
) -> dict[str, Any]:
    """Evaluate every active Set now (waits for a running pass)."""
    summary = await scheduler.run_once()
    return {"success": True, **summary.to_dict()}


@router.post("/api/preset-sets/{set_id}/evaluate")
async def evaluate_set(
    set_id: str,
    scheduler: Annotated[EvaluationScheduler, Depends(get_scheduler)],
) -> dict[str, Any]:
    """Evaluate one Set now and return its per-symbol summary."""
    try:
        result = await scheduler.run_once(set_id)
    except SetNotFoundError:
        raise HTTPException(status_code=404, detail="Preset set not found")

    return {
        "success": True,
        "setId": result.set_id,
        "isActive": result.is_active,
        "shouldDisableSet": result.should_disable_set,
        "overallProfitFactor": round(result.overall_profit_factor, 6),
        "evaluatedAt": result.evaluated_at.isoformat(),
        "symbols": [symbol.to_dict() for symbol in result.symbols],
    }
