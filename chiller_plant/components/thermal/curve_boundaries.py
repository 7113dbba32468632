"""
Curve domain checks on a converged chiller operating point.

The curves clamp their inputs, so an operating point outside a curve's
declared range is still computed, just with an extrapolation the curve
author never validated. This module reports such excursions, and negative
curve outputs, without touching the operating point.

Each check has its own counter. The first violation is logged in detail
with the offending value and the curve's range; later violations only feed
a recurring summary.
"""

from dataclasses import dataclass
from typing import List
import logging

from chiller_plant.core.constants import ChillerDefaults
from chiller_plant.core.enums import PartLoadCurveType
from chiller_plant.components.thermal.eir_performance import EvaluationContext, evaporator_setpoint
from chiller_plant.reporting.diagnostics import DiagnosticCounter, report_throttled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundaryViolation:
    """One failed check: which check, the value, and the allowed range."""
    check: str
    value: float
    lower: float
    upper: float


def _range_check(
    ctx: EvaluationContext,
    found: List[BoundaryViolation],
    check: str,
    counter: DiagnosticCounter,
    label: str,
    curve_id: str,
    value: float,
    lower: float,
    upper: float
) -> None:
    if lower <= value <= upper:
        return
    name = ctx.spec.name
    found.append(BoundaryViolation(check, value, lower, upper))
    report_throttled(
        ctx.sink,
        counter,
        f"{name}:{check}",
        f"{name}: {label} ({value:.2f}) is out of range of curve '{curve_id}' "
        f"[{lower:.2f}, {upper:.2f}]; the simulation continues with the clamped curve value",
        f"{name}: {label} out of range of curve '{curve_id}' continues",
        value,
    )


def _negative_check(
    ctx: EvaluationContext,
    found: List[BoundaryViolation],
    check: str,
    counter: DiagnosticCounter,
    curve_id: str,
    output: float,
    inputs: str
) -> None:
    if output >= 0.0:
        return
    name = ctx.spec.name
    found.append(BoundaryViolation(check, output, 0.0, float("inf")))
    report_throttled(
        ctx.sink,
        counter,
        f"{name}:{check}",
        f"{name}: curve '{curve_id}' output is negative ({output:.3f}) at {inputs}; "
        f"the output is reset to zero for the energy calculation",
        f"{name}: curve '{curve_id}' output is negative continues",
        output,
    )


def check_curve_boundaries(ctx: EvaluationContext) -> List[BoundaryViolation]:
    """
    Check the converged operating point against the curve domains.

    Skipped during warm-up, on the first plant iteration, and while the
    chilled water flow is still unlocked.

    Args:
        ctx: Evaluation context holding the converged state.

    Returns:
        Violations found, in check order. ctx.state is never modified.
    """
    if ctx.first_iteration or ctx.sim.warmup or not ctx.evap.flow_locked:
        return []

    spec = ctx.spec
    state = ctx.state
    curves = ctx.curves
    diag = ctx.diagnostics
    found: List[BoundaryViolation] = []

    evap_out = state.evap_outlet_temp
    cond_out = state.cond_outlet_temp
    plr = state.part_load_ratio

    cap = curves.domain(spec.cap_ft_curve)
    eir = curves.domain(spec.eir_ft_curve)
    fplr = curves.domain(spec.eir_fplr_curve)

    _range_check(ctx, found, "cap_ft_x", diag.cap_ft_x, "evaporator outlet temperature",
                 spec.cap_ft_curve, evap_out, cap.x_min, cap.x_max)
    _range_check(ctx, found, "eir_ft_x", diag.eir_ft_x, "evaporator outlet temperature",
                 spec.eir_ft_curve, evap_out, eir.x_min, eir.x_max)
    _range_check(ctx, found, "cap_ft_y", diag.cap_ft_y, "condenser outlet temperature",
                 spec.cap_ft_curve, cond_out, cap.y_min, cap.y_max)
    _range_check(ctx, found, "eir_ft_y", diag.eir_ft_y, "condenser outlet temperature",
                 spec.eir_ft_curve, cond_out, eir.y_min, eir.y_max)
    if spec.part_load_curve_type == PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE:
        _range_check(ctx, found, "eir_fplr_temp", diag.eir_fplr_temp, "condenser outlet temperature",
                     spec.eir_fplr_curve, cond_out, fplr.x_min, fplr.x_max)
    _range_check(ctx, found, "eir_fplr_plr", diag.eir_fplr_plr, "part load ratio",
                 spec.eir_fplr_curve, plr, fplr.y_min, fplr.y_max)

    setpoint = evaporator_setpoint(ctx)
    cap_ft = curves.value(spec.cap_ft_curve, setpoint, cond_out)
    _negative_check(ctx, found, "cap_ft_negative", diag.cap_ft_negative, spec.cap_ft_curve, cap_ft,
                    f"evaporator setpoint {setpoint:.2f} C, condenser outlet {cond_out:.2f} C")

    eir_ft = curves.value(spec.eir_ft_curve, evap_out, cond_out)
    _negative_check(ctx, found, "eir_ft_negative", diag.eir_ft_negative, spec.eir_ft_curve, eir_ft,
                    f"evaporator outlet {evap_out:.2f} C, condenser outlet {cond_out:.2f} C")

    if spec.part_load_curve_type == PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE:
        eir_fplr = curves.value(spec.eir_fplr_curve, cond_out, plr)
        inputs = f"condenser outlet {cond_out:.2f} C, PLR {plr:.3f}"
    else:
        lift_ref = spec.reference_lift_c
        if lift_ref <= 0.0:
            lift_ref = ChillerDefaults.FALLBACK_REFERENCE_LIFT
        lift_nom = (cond_out - evap_out) / lift_ref
        t_dev_nom = abs(evap_out - spec.reference_evap_outlet_temp_c) / lift_ref
        eir_fplr = curves.value(spec.eir_fplr_curve, lift_nom, plr, t_dev_nom)
        inputs = f"normalized lift {lift_nom:.3f}, PLR {plr:.3f}, normalized deviation {t_dev_nom:.3f}"
    _negative_check(ctx, found, "eir_fplr_negative", diag.eir_fplr_negative, spec.eir_fplr_curve,
                    eir_fplr, inputs)

    if found:
        logger.debug(f"{spec.name}: {len(found)} curve boundary violation(s)")
    return found
