"""
Mutable per-chiller records.

ChillerState holds the physical operating point and is overwritten on every
evaluation. ChillerDiagnostics holds the counters used to throttle repeated
warnings and is kept out of the physical record. LaggedCondenserTemps carries
the previous call's condenser and heat-recovery results into the next call.
"""

from dataclasses import dataclass, field, fields, asdict
from typing import Dict, Any

from chiller_plant.reporting.diagnostics import DiagnosticCounter


@dataclass
class ChillerState:
    """
    Operating point of one chiller for the current evaluation.

    All temperatures in C, heat rates and power in W, mass flows in kg/s.
    """
    evap_inlet_temp: float = 0.0
    evap_outlet_temp: float = 0.0
    cond_inlet_temp: float = 0.0
    cond_outlet_temp: float = 0.0
    evap_mass_flow: float = 0.0
    cond_mass_flow: float = 0.0

    power: float = 0.0
    q_evaporator: float = 0.0
    q_condenser: float = 0.0
    q_heat_recovery: float = 0.0
    heat_rec_inlet_temp: float = 0.0
    heat_rec_outlet_temp: float = 0.0
    heat_rec_mass_flow: float = 0.0

    part_load_ratio: float = 0.0
    cycling_ratio: float = 0.0
    false_load_rate: float = 0.0

    cap_ft: float = 0.0
    eir_ft: float = 0.0
    eir_fplr: float = 0.0
    cond_temp_for_curves: float = 0.0
    evap_setpoint: float = 0.0

    possible_subcooling: bool = False
    fouling_factor: float = 1.0
    sensor_offset: float = 0.0

    def reset_outputs(self) -> None:
        """Zero the per-call outputs, keeping inlet temperatures and subcooling flag."""
        self.part_load_ratio = 0.0
        self.cycling_ratio = 0.0
        self.false_load_rate = 0.0
        self.evap_mass_flow = 0.0
        self.cond_mass_flow = 0.0
        self.power = 0.0
        self.q_evaporator = 0.0
        self.q_condenser = 0.0
        self.q_heat_recovery = 0.0
        self.cap_ft = 0.0
        self.eir_ft = 0.0
        self.eir_fplr = 0.0
        self.cond_temp_for_curves = 0.0
        self.evap_setpoint = 0.0
        self.fouling_factor = 1.0
        self.sensor_offset = 0.0

    def snapshot(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LaggedCondenserTemps:
    """
    Condenser and heat-recovery results of the previous call.

    With heat recovery active the curves see a blend of the two leaving
    temperatures, which are only known after the curves have been evaluated,
    so the previous call's values are used.
    """
    q_heat_recovery: float = 0.0
    q_condenser: float = 0.0
    heat_rec_outlet_temp: float = 0.0
    cond_outlet_temp: float = 0.0

    @classmethod
    def from_state(cls, state: ChillerState) -> 'LaggedCondenserTemps':
        return cls(
            q_heat_recovery=state.q_heat_recovery,
            q_condenser=state.q_condenser,
            heat_rec_outlet_temp=state.heat_rec_outlet_temp,
            cond_outlet_temp=state.cond_outlet_temp,
        )

    def blended_temp(self, fallback: float) -> float:
        """Heat-weighted leaving temperature, or fallback when nothing was rejected."""
        total = self.q_heat_recovery + self.q_condenser
        if total <= 0.0:
            return fallback
        return (
            self.q_heat_recovery * self.heat_rec_outlet_temp
            + self.q_condenser * self.cond_outlet_temp
        ) / total


@dataclass
class ChillerDiagnostics:
    """Warning counters of one chiller, one per diagnostic class."""
    iteration_limit: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    no_bracket: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    degenerate_bracket: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    delta_temp_zero: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    cap_ft_x: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    cap_ft_y: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    eir_ft_x: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    eir_ft_y: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    eir_fplr_temp: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    eir_fplr_plr: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    cap_ft_negative: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    eir_ft_negative: DiagnosticCounter = field(default_factory=DiagnosticCounter)
    eir_fplr_negative: DiagnosticCounter = field(default_factory=DiagnosticCounter)

    def counts(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name).count for f in fields(self)}


@dataclass
class ChillerRecords:
    """
    Reporting values derived from the final state of a call.

    Energies in J over the system timestep.
    """
    power: float = 0.0
    energy: float = 0.0
    q_evaporator: float = 0.0
    evap_energy: float = 0.0
    q_condenser: float = 0.0
    cond_energy: float = 0.0
    false_load_rate: float = 0.0
    false_load_energy: float = 0.0
    q_heat_recovery: float = 0.0
    heat_rec_energy: float = 0.0
    actual_cop: float = 0.0
    evap_inlet_temp: float = 0.0
    evap_outlet_temp: float = 0.0
    cond_inlet_temp: float = 0.0
    cond_outlet_temp: float = 0.0
    heat_rec_inlet_temp: float = 0.0
    heat_rec_outlet_temp: float = 0.0
    heat_rec_mass_flow: float = 0.0
    part_load_ratio: float = 0.0
    cycling_ratio: float = 0.0

    def snapshot(self) -> Dict[str, Any]:
        return asdict(self)
