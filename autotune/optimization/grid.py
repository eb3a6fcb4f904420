"""
Parameter grid generation for the take-profit / stop-loss sweep.
"""

import itertools

from autotune.optimization.models import ParameterCandidate, ParameterRange, StrategyFlags

# Rounding applied to generated values to strip float accumulation noise
VALUE_PRECISION = 8


def generate_values(param_range: ParameterRange) -> list[float]:
    """
    Values from ``min`` to ``max`` in ``steps`` equal increments, both ends included.

    The last value is clamped to ``max``. A degenerate range (min == max)
    collapses to a single value.
    """
    if param_range.max == param_range.min:
        return [round(param_range.min, VALUE_PRECISION)]

    step = param_range.step_size
    values = []
    for i in range(param_range.steps + 1):
        value = min(param_range.min + i * step, param_range.max)
        values.append(round(value, VALUE_PRECISION))
    values[-1] = round(param_range.max, VALUE_PRECISION)
    return values


def generate_candidates(
    takeprofit_range: ParameterRange,
    stoploss_range: ParameterRange,
    flags: StrategyFlags | None = None,
) -> list[ParameterCandidate]:
    """
    Cartesian product of take-profit and stop-loss values.

    Ordering is take-profit major, stop-loss minor; the flags are copied
    onto every candidate unchanged.
    """
    flags = flags or StrategyFlags()
    return [
        ParameterCandidate(
            takeprofit=tp,
            stoploss=sl,
            trailing_enabled=flags.trailing_enabled,
            trailing_only=flags.trailing_only,
            use_block=flags.use_block,
            use_dca=flags.use_dca,
            additional_strategies_only=flags.additional_strategies_only,
        )
        for tp, sl in itertools.product(
            generate_values(takeprofit_range), generate_values(stoploss_range)
        )
    ]
