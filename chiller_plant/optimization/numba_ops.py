"""
Numba JIT-Compiled Operations for Chiller Performance Hot Paths.

The condenser-temperature search evaluates the performance curves several
hundred times per plant call in the worst case, so the polynomial kernels
and water property correlations are compiled to native code.

Performance Characteristics:
    - @njit decorated functions compile on first call (~100-500ms).
    - Subsequent calls execute at native speed.
    - cache=True persists compiled kernels between runs.

Usage Guidelines:
    - All inputs must be NumPy arrays or Python primitives.
    - No Python objects (lists, dicts) allowed inside JIT functions.
    - Coefficient arrays are float64 and indexed from 0 (c[0] = constant term).

Curve Forms:
    - Biquadratic: c0 + c1*x + c2*x^2 + c3*y + c4*y^2 + c5*x*y
    - Bicubic: biquadratic + c6*x^3 + c7*y^3 + c8*x^2*y + c9*x*y^2
    - Chiller part load with lift: bicubic + c10*x^2*y^2 + c11*z*y^3
"""

import numpy as np
from numba import njit


@njit(cache=True)
def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    if value < lower:
        return lower
    if value > upper:
        return upper
    return value


@njit(cache=True)
def biquadratic(c: np.ndarray, x: float, y: float) -> float:
    """
    Evaluate a biquadratic curve.

    Args:
        c: Six coefficients.
        x: First independent variable.
        y: Second independent variable.

    Returns:
        Curve output.
    """
    return c[0] + c[1] * x + c[2] * x * x + c[3] * y + c[4] * y * y + c[5] * x * y


@njit(cache=True)
def bicubic(c: np.ndarray, x: float, y: float) -> float:
    """
    Evaluate a bicubic curve (ten coefficients).
    """
    return (
        c[0] + c[1] * x + c[2] * x * x + c[3] * y + c[4] * y * y + c[5] * x * y
        + c[6] * x * x * x + c[7] * y * y * y + c[8] * x * x * y + c[9] * x * y * y
    )


@njit(cache=True)
def chiller_part_load_with_lift(c: np.ndarray, x: float, y: float, z: float) -> float:
    """
    Evaluate the part-load EIR curve used by the lift formulation.

    Args:
        c: Twelve coefficients.
        x: Normalized lift (lift / reference lift).
        y: Part-load ratio.
        z: Normalized evaporator temperature deviation.

    Returns:
        Curve output.
    """
    return (
        c[0] + c[1] * x + c[2] * x * x + c[3] * y + c[4] * y * y + c[5] * x * y
        + c[6] * x * x * x + c[7] * y * y * y + c[8] * x * x * y + c[9] * x * y * y
        + c[10] * x * x * y * y + c[11] * z * y * y * y
    )


@njit(cache=True)
def water_specific_heat(temp_c: float) -> float:
    """
    Specific heat of liquid water in J/(kg*K).

    Fourth order fit valid between 0 and 100 C; inputs outside that range
    are clamped.

    Args:
        temp_c: Water temperature in C.

    Returns:
        cp in J/(kg*K).
    """
    t = clamp(temp_c, 0.0, 100.0)
    return 4217.4 - 3.720283 * t + 0.1412855 * t ** 2 - 2.654387e-3 * t ** 3 + 2.093236e-5 * t ** 4


@njit(cache=True)
def water_density(temp_c: float) -> float:
    """
    Density of liquid water in kg/m3 (Kell correlation, 0-100 C).
    """
    t = clamp(temp_c, 0.0, 100.0)
    num = (
        999.83952 + 16.945176 * t - 7.9870401e-3 * t ** 2
        - 46.170461e-6 * t ** 3 + 105.56302e-9 * t ** 4 - 280.54253e-12 * t ** 5
    )
    return num / (1.0 + 16.879850e-3 * t)


@njit(cache=True)
def weighted_mix_temperature(
    m1: float, cp1: float, t1: float,
    m2: float, cp2: float, t2: float
) -> float:
    """
    Heat-capacity-rate weighted mean of two stream temperatures.

    Returns t2 when both streams are dry.
    """
    c1 = m1 * cp1
    c2 = m2 * cp2
    total = c1 + c2
    if total <= 0.0:
        return t2
    return (c1 * t1 + c2 * t2) / total
