"""
Condenser Leaving Temperature Solver.

The reformulated-EIR curves take the condenser *leaving* water temperature
as input, but that temperature is itself a result of the heat the chiller
rejects. The solver looks for the fixed point

    **T = T_cond_out(T)**

by false position on the residual r(T) = T - T_cond_out(T) inside the
widest condenser temperature range the curves declare.

Search Paths:
    1. Idle: a single evaluation at the condenser inlet temperature.
    2. Solved: probes at T_min and T_max bracket the fixed point, the root
       finder converges (or runs out of iterations and keeps its last
       estimate).
    3. Degenerate: the probes do not bracket; evaluate at the midpoint of
       [T_min, T_max] and relax once more at the temperature it produced.
    4. No-bracket fallback: the root finder rejects the bracket; evaluate
       at the condenser inlet temperature.

The boundary validator runs after every non-idle search.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging

from chiller_plant.core.constants import SolverConstants
from chiller_plant.core.enums import PartLoadCurveType, SolverPath, SolverStatus
from chiller_plant.core.types import RootSolver
from chiller_plant.components.thermal.eir_performance import EvaluationContext, evaluate_performance
from chiller_plant.components.thermal.curve_boundaries import check_curve_boundaries
from chiller_plant.models.root_finder import solve_root
from chiller_plant.reporting.diagnostics import report_throttled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverOutcome:
    """
    How the condenser temperature search ended.

    Attributes:
        path: Branch of the search that produced the final state.
        cond_outlet_temp: Final condenser leaving temperature (C).
        root_status: Root finder status, None when it was not called.
        iterations: Root finder iterations (0 when not called).
        t_min: Lower curve-domain bound used for probing (C).
        t_max: Upper curve-domain bound used for probing (C).
    """
    path: SolverPath
    cond_outlet_temp: float
    root_status: Optional[SolverStatus] = None
    iterations: int = 0
    t_min: Optional[float] = None
    t_max: Optional[float] = None


def condenser_temperature_bounds(ctx: EvaluationContext) -> Tuple[float, float]:
    """
    Widest condenser leaving temperature range declared by the curves.

    CAPFT and EIRFT carry the condenser temperature on their y axis; the
    part-load curve carries it on x only in the leaving-condenser form.
    """
    spec = ctx.spec
    cap_domain = ctx.curves.domain(spec.cap_ft_curve)
    eir_domain = ctx.curves.domain(spec.eir_ft_curve)
    t_min = min(cap_domain.y_min, eir_domain.y_min)
    t_max = max(cap_domain.y_max, eir_domain.y_max)
    if spec.part_load_curve_type == PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE:
        plr_domain = ctx.curves.domain(spec.eir_fplr_curve)
        t_min = min(t_min, plr_domain.x_min)
        t_max = max(t_max, plr_domain.x_max)
    return t_min, t_max


def solve_condenser_temperature(
    ctx: EvaluationContext,
    root_finder: RootSolver = solve_root,
    tol: float = SolverConstants.TOLERANCE,
    max_iter: int = SolverConstants.MAX_ITERATIONS
) -> SolverOutcome:
    """
    Drive the performance evaluator to a self-consistent condenser temperature.

    Args:
        ctx: Evaluation context for this plant call. ctx.state holds the
            final operating point on return.
        root_finder: Bracketed root finder (false position by default).
        tol: Residual tolerance in K.
        max_iter: Root finder iteration limit.

    Returns:
        SolverOutcome describing the path taken.

    Raises:
        CondenserFlowError: If the chiller runs with no condenser flow.
    """
    spec = ctx.spec
    state = ctx.state
    cond_inlet_temp = ctx.cond.inlet_node.temp

    if not ctx.running:
        evaluate_performance(ctx, cond_inlet_temp)
        return SolverOutcome(path=SolverPath.IDLE, cond_outlet_temp=state.cond_outlet_temp)

    t_min, t_max = condenser_temperature_bounds(ctx)

    evaluate_performance(ctx, t_min)
    cond_temp_at_min = state.cond_outlet_temp
    evaluate_performance(ctx, t_max)
    cond_temp_at_max = state.cond_outlet_temp

    if cond_temp_at_min > t_min and cond_temp_at_max < t_max:

        def residual(assumed: float) -> float:
            evaluate_performance(ctx, assumed)
            return assumed - ctx.state.cond_outlet_temp

        result = root_finder(residual, t_min, t_max, tol, max_iter)
        path = SolverPath.SOLVED

        if result.status == SolverStatus.ITERATION_LIMIT:
            if not ctx.sim.warmup:
                report_throttled(
                    ctx.sink,
                    ctx.diagnostics.iteration_limit,
                    f"{spec.name}:iteration_limit",
                    f"{spec.name}: iteration limit ({max_iter}) exceeded calculating the "
                    f"condenser outlet temperature; last estimate {result.value:.3f} C is used",
                    f"{spec.name}: condenser outlet temperature iteration limit exceeded continues",
                    result.value,
                )
        elif result.status == SolverStatus.NO_BRACKET:
            if not ctx.sim.warmup:
                report_throttled(
                    ctx.sink,
                    ctx.diagnostics.no_bracket,
                    f"{spec.name}:no_bracket",
                    f"{spec.name}: no root bracketed for the condenser outlet temperature in "
                    f"[{t_min:.2f}, {t_max:.2f}] C; evaluating at the condenser inlet temperature",
                    f"{spec.name}: condenser outlet temperature not bracketed continues",
                    cond_inlet_temp,
                )
            evaluate_performance(ctx, cond_inlet_temp)
            path = SolverPath.NO_BRACKET_FALLBACK

        outcome = SolverOutcome(
            path=path,
            cond_outlet_temp=state.cond_outlet_temp,
            root_status=result.status,
            iterations=result.iterations,
            t_min=t_min,
            t_max=t_max,
        )
    else:
        ctx.diagnostics.degenerate_bracket.increment()
        logger.debug(
            f"{spec.name}: probes do not bracket the fixed point "
            f"(T_min={t_min:.2f} -> {cond_temp_at_min:.2f}, T_max={t_max:.2f} -> {cond_temp_at_max:.2f})"
        )
        evaluate_performance(ctx, 0.5 * (t_min + t_max))
        evaluate_performance(ctx, state.cond_outlet_temp)
        outcome = SolverOutcome(
            path=SolverPath.DEGENERATE,
            cond_outlet_temp=state.cond_outlet_temp,
            t_min=t_min,
            t_max=t_max,
        )

    check_curve_boundaries(ctx)
    return outcome
