"""
Thermal components for the chiller plant simulation.

Components:
- ReformulatedEIRChiller: Water-cooled chiller with leaving-condenser-temperature curves
"""

from chiller_plant.components.thermal.chiller import ReformulatedEIRChiller

__all__ = [
    'ReformulatedEIRChiller',
]
