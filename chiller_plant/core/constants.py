"""
Physical constants and numerical tolerances for the chiller model.
"""

from typing import Final


class FlowConstants:
    """Mass-flow and load thresholds."""
    MASS_FLOW_TOLERANCE: Final[float] = 1.0e-6  # kg/s, below this a branch is dry
    SMALL_LOAD: Final[float] = 1.0              # W, false loads below this are dropped
    DELTA_TEMP_TOL: Final[float] = 1.0e-4       # K, minimum inlet-to-limit margin


class ChillerDefaults:
    """Fallbacks used when reference data is degenerate."""
    FALLBACK_COP: Final[float] = 5.5
    # Lift between 35 C condenser and 6.67 C evaporator leaving temperatures
    FALLBACK_REFERENCE_LIFT: Final[float] = 35.0 - 6.67
    REFERENCE_CURVE_LOW: Final[float] = 0.9
    REFERENCE_CURVE_HIGH: Final[float] = 1.1
    MAX_PLR_DOMAIN_UPPER: Final[float] = 1.1


class SolverConstants:
    """Condenser-temperature fixed point search settings."""
    TOLERANCE: Final[float] = 1.0e-4
    MAX_ITERATIONS: Final[int] = 500


class TimeConstants:
    SECONDS_PER_HOUR: Final[float] = 3600.0


# Flag value for "no setpoint assigned" on a plant node
SENSED_NODE_FLAG_VALUE: Final[float] = -999.0

# Convenience exports
MASS_FLOW_TOLERANCE = FlowConstants.MASS_FLOW_TOLERANCE
SMALL_LOAD = FlowConstants.SMALL_LOAD
DELTA_TEMP_TOL = FlowConstants.DELTA_TEMP_TOL
