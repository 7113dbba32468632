"""
Performance curve library and lookup manager.

Curves are dimensionless polynomial multipliers with a declared valid input
domain. Evaluation clamps each independent variable into that domain before
calling the JIT kernel, so callers never extrapolate; detecting excursions
is left to the chiller boundary validator.

Supported forms:
    - ``biquadratic``: f(x, y), six coefficients.
    - ``bicubic``: f(x, y), ten coefficients.
    - ``chiller_part_load_with_lift``: f(x, y, z), twelve coefficients.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import logging

import numpy as np

from chiller_plant.core.exceptions import ConfigurationError, CurveNotFoundError
from chiller_plant.optimization.numba_ops import (
    clamp,
    biquadratic,
    bicubic,
    chiller_part_load_with_lift,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurveDomain:
    """Valid input range of a performance curve."""
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    z_min: Optional[float] = None
    z_max: Optional[float] = None


class PerformanceCurve:
    """
    Base class for polynomial performance curves.

    Attributes:
        name: Curve identifier.
        coefficients: float64 coefficient array.
        domain: Valid input domain.
        output_min: Optional lower bound on the returned value.
        output_max: Optional upper bound on the returned value.
    """

    n_coefficients: int = 0
    n_dims: int = 2

    def __init__(
        self,
        name: str,
        coefficients: Sequence[float],
        domain: CurveDomain,
        output_min: Optional[float] = None,
        output_max: Optional[float] = None
    ):
        coeffs = np.asarray(coefficients, dtype=np.float64)
        if coeffs.shape != (self.n_coefficients,):
            raise ConfigurationError(
                f"Curve '{name}' ({type(self).__name__}) needs {self.n_coefficients} "
                f"coefficients, got {coeffs.size}"
            )
        if domain.x_min > domain.x_max or domain.y_min > domain.y_max:
            raise ConfigurationError(f"Curve '{name}' has an inverted domain: {domain}")
        if self.n_dims == 3 and (domain.z_min is None or domain.z_max is None):
            raise ConfigurationError(f"Curve '{name}' needs a z domain")

        self.name = name
        self.coefficients = coeffs
        self.domain = domain
        self.output_min = output_min
        self.output_max = output_max

    def _kernel(self, x: float, y: float, z: float) -> float:
        raise NotImplementedError

    def value(self, x: float, y: float, z: Optional[float] = None) -> float:
        """
        Evaluate the curve with inputs clamped into its domain.

        Args:
            x: First independent variable.
            y: Second independent variable.
            z: Third independent variable (three-dimensional curves only).

        Returns:
            Curve output, limited to [output_min, output_max] when set.
        """
        d = self.domain
        xc = clamp(float(x), d.x_min, d.x_max)
        yc = clamp(float(y), d.y_min, d.y_max)
        zc = 0.0
        if self.n_dims == 3:
            zc = clamp(float(z if z is not None else 0.0), d.z_min, d.z_max)

        result = float(self._kernel(xc, yc, zc))
        if self.output_min is not None and result < self.output_min:
            result = self.output_min
        if self.output_max is not None and result > self.output_max:
            result = self.output_max
        return result


class BiquadraticCurve(PerformanceCurve):
    n_coefficients = 6

    def _kernel(self, x: float, y: float, z: float) -> float:
        return biquadratic(self.coefficients, x, y)


class BicubicCurve(PerformanceCurve):
    n_coefficients = 10

    def _kernel(self, x: float, y: float, z: float) -> float:
        return bicubic(self.coefficients, x, y)


class ChillerPartLoadWithLiftCurve(PerformanceCurve):
    n_coefficients = 12
    n_dims = 3

    def _kernel(self, x: float, y: float, z: float) -> float:
        return chiller_part_load_with_lift(self.coefficients, x, y, z)


CURVE_TYPES = {
    'biquadratic': BiquadraticCurve,
    'bicubic': BicubicCurve,
    'chiller_part_load_with_lift': ChillerPartLoadWithLiftCurve,
}


def build_curve(
    name: str,
    curve_type: str,
    coefficients: Sequence[float],
    domain: CurveDomain,
    output_min: Optional[float] = None,
    output_max: Optional[float] = None
) -> PerformanceCurve:
    """
    Instantiate a curve by its type name.

    Raises:
        ConfigurationError: If the type is unknown or coefficients mismatch.
    """
    key = curve_type.lower()
    if key not in CURVE_TYPES:
        raise ConfigurationError(
            f"Unknown curve type '{curve_type}' for curve '{name}'. "
            f"Supported: {sorted(CURVE_TYPES)}"
        )
    return CURVE_TYPES[key](name, coefficients, domain, output_min, output_max)


class CurveManager:
    """
    Registry of performance curves addressed by id.

    Implements the curve-evaluator interface consumed by the chiller core.

    Example:
        curves = CurveManager()
        curves.register(BiquadraticCurve("cap_ft", coeffs, domain))
        cap_ft = curves.value("cap_ft", 6.67, 35.0)
    """

    def __init__(self) -> None:
        self._curves: Dict[str, PerformanceCurve] = {}

    def register(self, curve: PerformanceCurve) -> None:
        if curve.name in self._curves:
            raise ConfigurationError(f"Curve '{curve.name}' already defined")
        self._curves[curve.name] = curve
        logger.debug(f"Registered curve '{curve.name}' ({type(curve).__name__})")

    def get(self, curve_id: str) -> PerformanceCurve:
        try:
            return self._curves[curve_id]
        except KeyError:
            raise CurveNotFoundError(
                f"Curve '{curve_id}' not found. Available: {list(self._curves)}"
            ) from None

    def dimensions(self, curve_id: str) -> int:
        return self.get(curve_id).n_dims

    def value(self, curve_id: str, x: float, y: float, z: Optional[float] = None) -> float:
        return self.get(curve_id).value(x, y, z)

    def domain(self, curve_id: str) -> CurveDomain:
        return self.get(curve_id).domain

    def ids(self) -> List[str]:
        return list(self._curves)
