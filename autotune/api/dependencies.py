"""
FastAPI dependency injection.
"""

from fastapi import Request

from autotune.application import AutotuneApplication
from autotune.evaluation.scheduler import EvaluationScheduler
from autotune.optimization.service import OptimizationService


def get_application(request: Request) -> AutotuneApplication:
    """Get the application container from app state."""
    return request.app.state.application


def get_optimization_service(request: Request) -> OptimizationService:
    return request.app.state.application.optimization


def get_scheduler(request: Request) -> EvaluationScheduler:
    return request.app.state.application.scheduler
