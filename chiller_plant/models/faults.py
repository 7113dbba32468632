"""
Chiller fault adapters.

Two faults can be attached to a chiller:

Condenser/evaporator fouling:
    Reduces the reference capacity and reference COP by a common factor
    **F = 1 - severity * (1 - fouling_factor)** while the availability
    schedule is positive.

Supply water temperature sensor offset:
    The chiller controls to a biased leaving water temperature reading.
    The adapter reports the offset and, once the chiller has computed its
    fault-free operating point, returns the actual outlet temperature,
    flow and evaporator load that result from chasing the biased setpoint.

Both faults are inactive during warm-up and sizing.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from chiller_plant.core.context import SimulationContext
from chiller_plant.models.schedules import Schedule, ConstantSchedule


@dataclass
class FoulingFault:
    """
    Capacity and efficiency degradation from heat exchanger fouling.

    Attributes:
        name: Fault identifier.
        fouling_factor: Degraded-to-clean performance ratio in (0, 1].
        availability: Fault active while value > 0.
        severity: Scales the degradation between 0 (none) and 1 (full).
    """
    name: str
    fouling_factor: float
    availability: Schedule = field(default_factory=lambda: ConstantSchedule(1.0))
    severity: Schedule = field(default_factory=lambda: ConstantSchedule(1.0))

    def factor(self, ctx: SimulationContext) -> float:
        """Multiplier applied to reference capacity and COP (1.0 when inactive)."""
        if ctx.faults_suppressed or self.availability.value(ctx) <= 0.0:
            return 1.0
        ff = min(max(self.fouling_factor, 0.0), 1.0)
        severity = self.severity.value(ctx)
        return max(0.0, 1.0 - severity * (1.0 - ff))


@dataclass
class SupplyTempSensorFault:
    """
    Bias on the chilled water supply temperature sensor.

    A positive offset means the sensor reads high, so the chiller drives the
    actual leaving water colder than intended.

    Attributes:
        name: Fault identifier.
        offset_schedule: Sensor offset in K.
        availability: Fault active while value > 0.
        severity: Multiplier on the offset.
    """
    name: str
    offset_schedule: Schedule
    availability: Schedule = field(default_factory=lambda: ConstantSchedule(1.0))
    severity: Schedule = field(default_factory=lambda: ConstantSchedule(1.0))

    def offset(self, ctx: SimulationContext) -> float:
        """Sensor offset in K (0.0 when inactive)."""
        if ctx.faults_suppressed or self.availability.value(ctx) <= 0.0:
            return 0.0
        return self.offset_schedule.value(ctx) * self.severity.value(ctx)

    def apply(
        self,
        offset: float,
        inlet_temp: float,
        outlet_temp: float,
        mass_flow: float,
        cp: float,
        variable_flow: bool,
        max_mass_flow: Optional[float] = None
    ) -> Tuple[float, float, float]:
        """
        Operating point reached when the controller chases the biased reading.

        Args:
            offset: Offset returned by offset() for this call.
            inlet_temp: Evaporator inlet temperature (C).
            outlet_temp: Fault-free outlet temperature (C).
            mass_flow: Fault-free evaporator mass flow (kg/s).
            cp: Evaporator fluid specific heat (J/kg/K).
            variable_flow: True when the chiller modulates flow to its setpoint.
            max_mass_flow: Design flow cap for variable-flow chillers.

        Returns:
            Tuple of (outlet_temp, mass_flow, evaporator_heat) in C, kg/s, W.
        """
        faulty_outlet = outlet_temp - offset
        if mass_flow <= 0.0 or inlet_temp <= faulty_outlet:
            return inlet_temp, (mass_flow if not variable_flow else 0.0), 0.0

        if variable_flow:
            # Heat delivered is unchanged, flow adjusts to the new ΔT
            new_flow = mass_flow * (inlet_temp - outlet_temp) / (inlet_temp - faulty_outlet)
            if max_mass_flow is not None:
                new_flow = min(new_flow, max_mass_flow)
            new_flow = max(0.0, new_flow)
            return faulty_outlet, new_flow, new_flow * cp * (inlet_temp - faulty_outlet)

        return faulty_outlet, mass_flow, mass_flow * cp * (inlet_temp - faulty_outlet)
