"""
Time-based schedules for chiller inputs.

Supports:
- Constant values
- Repeating hourly profiles (24 h day or 8760 h year)
"""

from typing import Sequence

import numpy as np

from chiller_plant.core.context import SimulationContext


class Schedule:
    """Base schedule; subclasses implement value()."""

    def value(self, ctx: SimulationContext) -> float:
        raise NotImplementedError


class ConstantSchedule(Schedule):
    """
    Schedule returning the same value at every timestep.

    Example:
        limit = ConstantSchedule(45.0)
        limit.value(ctx)  # 45.0
    """

    def __init__(self, constant: float):
        self.constant = float(constant)

    def value(self, ctx: SimulationContext) -> float:
        return self.constant

    def __repr__(self) -> str:
        return f"ConstantSchedule({self.constant})"


class HourlySchedule(Schedule):
    """
    Repeating hourly profile indexed by the integer simulation hour.

    Example:
        occupancy = HourlySchedule([0.0] * 8 + [1.0] * 10 + [0.0] * 6)
        occupancy.value(SimulationContext(time_hours=9.5))  # 1.0
    """

    def __init__(self, values: Sequence[float]):
        if len(values) == 0:
            raise ValueError("HourlySchedule needs at least one value")
        self.values = np.asarray(values, dtype=np.float64)

    def value(self, ctx: SimulationContext) -> float:
        hour = int(np.floor(ctx.time_hours)) % self.values.size
        return float(self.values[hour])


def schedule_from_config(raw) -> Schedule:
    """Build a schedule from a scalar or a list of hourly values."""
    if isinstance(raw, Schedule):
        return raw
    if isinstance(raw, (list, tuple, np.ndarray)):
        return HourlySchedule(raw)
    return ConstantSchedule(float(raw))
