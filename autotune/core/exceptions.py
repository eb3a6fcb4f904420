"""Exceptions raised by the optimization and evaluation engines"""


class AutotuneError(Exception):
    """Base exception for all engine errors"""

    pass


class InvalidParameterRangeError(AutotuneError, ValueError):
    """Raised when a parameter range has max < min or a non-positive step count"""

    pass


class SweepCancelledError(AutotuneError):
    """Raised when a sweep is cancelled between candidates"""

    def __init__(self, completed: int, total: int) -> None:
        super().__init__(f"Sweep cancelled after {completed}/{total} candidates")
        self.completed = completed
        self.total = total


class OptimizationError(AutotuneError):
    """Raised when an optimization request fails before results are stored"""

    def __init__(self, message: str, config_id: str | None = None) -> None:
        super().__init__(message)
        self.config_id = config_id


class SetNotFoundError(AutotuneError):
    """Raised when a preset configuration Set does not exist"""

    def __init__(self, set_id: str) -> None:
        super().__init__(f"Preset set not found: {set_id}")
        self.set_id = set_id
