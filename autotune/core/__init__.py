"""Core primitives shared by the optimization and evaluation engines"""

from autotune.core.exceptions import (
    AutotuneError,
    InvalidParameterRangeError,
    OptimizationError,
    SetNotFoundError,
    SweepCancelledError,
)
from autotune.core.time_provider import LiveTimeProvider, SimulatedTimeProvider, TimeProvider

__all__ = [
    "AutotuneError",
    "InvalidParameterRangeError",
    "OptimizationError",
    "SetNotFoundError",
    "SweepCancelledError",
    "TimeProvider",
    "LiveTimeProvider",
    "SimulatedTimeProvider",
]
