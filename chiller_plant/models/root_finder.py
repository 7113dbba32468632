"""
Bracketed false-position root finder.

Regula falsi with the Illinois modification: when the same bracket end is
retained twice in a row its residual is halved, which avoids the one-sided
stagnation of plain false position on convex residuals.

The residual is always evaluated last at the returned value, so callers
whose residual mutates shared state (the chiller evaluator) can rely on that
state reflecting the returned value.
"""

from dataclasses import dataclass
import logging

from chiller_plant.core.constants import SolverConstants
from chiller_plant.core.enums import SolverStatus
from chiller_plant.core.types import Residual

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RootResult:
    """Outcome of a root search."""
    value: float
    status: SolverStatus
    iterations: int

    @property
    def converged(self) -> bool:
        return self.status == SolverStatus.CONVERGED


def solve_root(
    residual: Residual,
    lower: float,
    upper: float,
    tol: float = SolverConstants.TOLERANCE,
    max_iter: int = SolverConstants.MAX_ITERATIONS
) -> RootResult:
    """
    Find x in [lower, upper] with |residual(x)| <= tol.

    Args:
        residual: Function of one variable.
        lower: Lower bracket end.
        upper: Upper bracket end.
        tol: Absolute residual tolerance.
        max_iter: Maximum number of interior evaluations.

    Returns:
        RootResult. NO_BRACKET when the residual has the same strict sign at
        both ends, ITERATION_LIMIT with the last interior estimate when
        max_iter is exhausted.

    Example:
        >>> result = solve_root(lambda x: x * x - 2.0, 0.0, 2.0)
        >>> round(result.value, 3)
        1.414
    """
    x0, x1 = lower, upper
    y0 = residual(x0)
    y1 = residual(x1)

    if y0 * y1 > 0.0:
        logger.debug(f"No root bracketed in [{x0}, {x1}]: f={y0}, {y1}")
        return RootResult(value=x1, status=SolverStatus.NO_BRACKET, iterations=0)

    x_t = x1
    side = 0
    for iteration in range(1, max_iter + 1):
        if y1 != y0:
            x_t = x1 - y1 * (x1 - x0) / (y1 - y0)
        else:
            x_t = 0.5 * (x0 + x1)
        y_t = residual(x_t)

        if abs(y_t) <= tol:
            return RootResult(value=x_t, status=SolverStatus.CONVERGED, iterations=iteration)

        if y_t * y1 > 0.0:
            x1, y1 = x_t, y_t
            if side == -1:
                y0 *= 0.5
            side = -1
        else:
            x0, y0 = x_t, y_t
            if side == 1:
                y1 *= 0.5
            side = 1

    logger.debug(f"Root search hit {max_iter} iterations, last estimate {x_t}")
    return RootResult(value=x_t, status=SolverStatus.ITERATION_LIMIT, iterations=max_iter)
