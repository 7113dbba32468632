"""
Integer-based enumerations for the chiller simulation.

All enums use IntEnum for:
- NumPy array compatibility (dtype=np.int32)
- Numba JIT compilation support
- Fast comparisons when stored in state records
"""

from enum import IntEnum


class PartLoadCurveType(IntEnum):
    """
    Independent-variable set of the part-load EIR curve.

    Examples:
        if spec.part_load_curve_type == PartLoadCurveType.LIFT:
            eir_fplr = curves.value(curve_id, lift, plr, t_dev)
    """
    LEAVING_CONDENSER_TEMPERATURE = 0  # curve(T_cond_out, PLR)
    LIFT = 1                           # curve(lift/lift_ref, PLR, T_dev/lift_ref)


class FlowMode(IntEnum):
    """
    Evaporator flow control of the chiller.

    Examples:
        if spec.flow_mode == FlowMode.LEAVING_SETPOINT_MODULATED:
            mass_flow = q_evap / (cp * delta_t)
    """
    CONSTANT_FLOW = 0               # Always request design flow
    NOT_MODULATED = 1               # Design flow, no setpoint tracking
    LEAVING_SETPOINT_MODULATED = 2  # Vary flow to hold leaving setpoint


class DemandCalcScheme(IntEnum):
    """Loop demand calculation scheme (which setpoint drives cooling)."""
    SINGLE_SETPOINT = 0
    DUAL_SETPOINT_DEADBAND = 1


class OperationSchemeType(IntEnum):
    """Plant operation scheme owning the chiller branch."""
    LOAD_RANGE_BASED = 0
    COMPONENT_SETPOINT_BASED = 1


class EquipFlowControl(IntEnum):
    """Branch flow control type reported by the plant loop."""
    ACTIVE = 0
    SERIES_ACTIVE = 1
    PASSIVE = 2
    BYPASS = 3


class SolverStatus(IntEnum):
    """
    Outcome of a bracketed root search.

    Examples:
        result = solve_root(residual, t_min, t_max)
        if result.status == SolverStatus.ITERATION_LIMIT:
            diagnostics.iteration_limit.increment()
    """
    CONVERGED = 0
    ITERATION_LIMIT = 1
    NO_BRACKET = 2


class SolverPath(IntEnum):
    """Branch of the condenser-temperature state machine that produced the result."""
    IDLE = 0
    SOLVED = 1
    DEGENERATE = 2
    NO_BRACKET_FALLBACK = 3
