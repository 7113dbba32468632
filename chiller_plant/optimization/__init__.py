"""Numba-compiled numerical kernels."""
