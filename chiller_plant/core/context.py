"""
Simulation context shared by all components during one plant call.
"""

from dataclasses import dataclass


@dataclass
class SimulationContext:
    """
    Flags describing where the simulation currently is.

    Fault adapters and the boundary validator read these to decide whether
    they apply. The driver owns the instance and mutates it between calls.

    Attributes:
        time_hours: Simulation time in hours.
        dt_hours: System timestep in hours.
        warmup: True while the driver is running warm-up days.
        sizing: True during a sizing pass.
    """
    time_hours: float = 0.0
    dt_hours: float = 1.0
    warmup: bool = False
    sizing: bool = False

    @property
    def faults_suppressed(self) -> bool:
        """Faults never apply during warm-up or sizing."""
        return self.warmup or self.sizing
