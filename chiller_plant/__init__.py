"""
Chiller Plant - Reformulated-EIR Chiller Simulation Package

This package models water-cooled electric chillers with:
- Component-based architecture
- Leaving-condenser-temperature performance curves (numba kernels)
- Condenser temperature fixed-point solver
- Curve domain diagnostics
- Configuration-driven deployment
"""

__version__ = "1.0.0"
__author__ = "Chiller Plant Team"
