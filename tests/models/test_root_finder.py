"""
Unit tests for the bracketed false-position root finder.
"""

import math

import pytest

from chiller_plant.core.enums import SolverStatus
from chiller_plant.models.root_finder import solve_root


def test_finds_square_root():
    result = solve_root(lambda x: x * x - 2.0, 0.0, 2.0, tol=1.0e-8)

    assert result.converged
    assert result.value == pytest.approx(math.sqrt(2.0), abs=1.0e-6)
    assert 0 < result.iterations < 100


def test_linear_residual_converges_in_one_step():
    result = solve_root(lambda x: 3.0 * x - 6.0, 0.0, 10.0)

    assert result.status == SolverStatus.CONVERGED
    assert result.value == pytest.approx(2.0)
    assert result.iterations == 1


def test_convex_residual_does_not_stagnate():
    """Plain regula falsi needs hundreds of steps here."""
    result = solve_root(lambda x: math.exp(x) - 10.0, 0.0, 10.0, tol=1.0e-8, max_iter=200)

    assert result.converged
    assert result.value == pytest.approx(math.log(10.0), abs=1.0e-6)


def test_no_bracket():
    result = solve_root(lambda x: x * x + 1.0, -1.0, 1.0)

    assert result.status == SolverStatus.NO_BRACKET
    assert result.iterations == 0
    assert not result.converged


def test_iteration_limit_returns_last_estimate():
    calls = []

    def residual(x):
        calls.append(x)
        return x * x - 2.0

    result = solve_root(residual, 0.0, 2.0, tol=1.0e-12, max_iter=3)

    assert result.status == SolverStatus.ITERATION_LIMIT
    assert result.iterations == 3
    assert calls[-1] == result.value
    assert 1.0 < result.value < 2.0


def test_last_evaluation_is_returned_value():
    calls = []

    def residual(x):
        calls.append(x)
        return x - 0.3

    result = solve_root(residual, 0.0, 1.0)

    assert calls[-1] == result.value


def test_root_at_bracket_end():
    result = solve_root(lambda x: x - 1.0, 0.0, 1.0)

    assert result.converged
    assert result.value == pytest.approx(1.0)
