"""
Type aliases and protocols for static type checking.

The performance core only talks to its curve library and root finder
through these narrow interfaces.
"""

from typing import Protocol, Callable, Optional, TypeAlias, TYPE_CHECKING

if TYPE_CHECKING:
    from chiller_plant.models.curves import CurveDomain
    from chiller_plant.models.root_finder import RootResult

# Residual used by the bracketed root finder
Residual: TypeAlias = Callable[[float], float]


class CurveEvaluator(Protocol):
    """Dimensionless performance-curve lookup."""
    def value(self, curve_id: str, x: float, y: float, z: Optional[float] = None) -> float: ...
    def domain(self, curve_id: str) -> 'CurveDomain': ...
    def dimensions(self, curve_id: str) -> int: ...


class RootSolver(Protocol):
    def __call__(
        self,
        residual: Residual,
        lower: float,
        upper: float,
        tol: float = ...,
        max_iter: int = ...,
    ) -> 'RootResult': ...
