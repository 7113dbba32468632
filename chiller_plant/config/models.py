from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Dict, Optional, Any, Union
import logging

from chiller_plant.core.enums import PartLoadCurveType, FlowMode, DemandCalcScheme, OperationSchemeType

logger = logging.getLogger(__name__)

ScheduleValue = Union[float, List[float]]


def _normalize(raw: str) -> str:
    return raw.replace("_", "").replace("-", "").replace(" ", "").lower()


_FLOW_MODES = {
    "constantflow": FlowMode.CONSTANT_FLOW,
    "notmodulated": FlowMode.NOT_MODULATED,
    "leavingsetpointmodulated": FlowMode.LEAVING_SETPOINT_MODULATED,
}

_PART_LOAD_TYPES = {
    "leavingcondenserwatertemperature": PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE,
    "leavingcondensertemperature": PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE,
    "lct": PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE,
    "lift": PartLoadCurveType.LIFT,
}

_DEMAND_SCHEMES = {
    "singlesetpoint": DemandCalcScheme.SINGLE_SETPOINT,
    "dualsetpointdeadband": DemandCalcScheme.DUAL_SETPOINT_DEADBAND,
}

_OPERATION_SCHEMES = {
    "loadrangebased": OperationSchemeType.LOAD_RANGE_BASED,
    "componentsetpointbased": OperationSchemeType.COMPONENT_SETPOINT_BASED,
}


# --- CURVES ---

class CurveConfig(BaseModel):
    name: str
    type: str = "biquadratic"
    coefficients: List[float]
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    z_min: Optional[float] = None
    z_max: Optional[float] = None
    output_min: Optional[float] = None
    output_max: Optional[float] = None


# --- EQUIPMENT ---

class HeatRecoverySpec(BaseModel):
    """Heat recovery condenser bundle. Active only with a positive design flow."""
    model_config = ConfigDict(frozen=True)

    design_mass_flow_kg_s: float = Field(0.0, ge=0.0)
    capacity_fraction: float = Field(1.0, gt=0.0)
    inlet_high_limit_c: Optional[ScheduleValue] = None
    setpoint_node: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.design_mass_flow_kg_s > 0.0


class ChillerSpec(BaseModel):
    """
    Reference data of a reformulated-EIR chiller.

    Built once from configuration and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    reference_capacity_w: float = Field(gt=0.0)
    reference_cop: float = Field(gt=0.0)
    reference_evap_outlet_temp_c: float = 6.67
    reference_cond_outlet_temp_c: float = 35.0
    cap_ft_curve: str
    eir_ft_curve: str
    eir_fplr_curve: str
    part_load_curve_type: PartLoadCurveType = PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE
    flow_mode: FlowMode = FlowMode.NOT_MODULATED
    min_part_load_ratio: float = Field(0.1, ge=0.0)
    max_part_load_ratio: float = Field(1.0, gt=0.0)
    optimum_part_load_ratio: float = Field(1.0, gt=0.0)
    min_unloading_ratio: float = Field(0.2, ge=0.0)
    comp_power_to_condenser_frac: float = 1.0
    evap_outlet_temp_low_limit_c: float = 2.0
    design_evap_mass_flow_kg_s: float = Field(0.0, ge=0.0)
    design_cond_mass_flow_kg_s: float = Field(0.0, ge=0.0)
    heat_recovery: Optional[HeatRecoverySpec] = None
    fouling_fault: Optional[str] = None
    sensor_fault: Optional[str] = None

    @field_validator("flow_mode", mode="before")
    @classmethod
    def _parse_flow_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            mode = _FLOW_MODES.get(_normalize(v))
            if mode is None:
                logger.warning(f"Unknown chiller flow mode '{v}', using NotModulated")
                return FlowMode.NOT_MODULATED
            return mode
        return v

    @field_validator("part_load_curve_type", mode="before")
    @classmethod
    def _parse_part_load_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            kind = _PART_LOAD_TYPES.get(_normalize(v))
            if kind is None:
                raise ValueError(f"Unknown part load curve type '{v}'")
            return kind
        return v

    @model_validator(mode="after")
    def _check_reference_data(self) -> "ChillerSpec":
        if self.reference_evap_outlet_temp_c >= self.reference_cond_outlet_temp_c:
            raise ValueError(
                f"{self.name}: reference evaporator outlet temperature "
                f"({self.reference_evap_outlet_temp_c} C) must be below the reference "
                f"condenser outlet temperature ({self.reference_cond_outlet_temp_c} C)"
            )
        if self.min_part_load_ratio > self.max_part_load_ratio:
            raise ValueError(
                f"{self.name}: minimum part load ratio {self.min_part_load_ratio} "
                f"exceeds maximum {self.max_part_load_ratio}"
            )
        if not self.min_part_load_ratio <= self.min_unloading_ratio <= self.max_part_load_ratio:
            raise ValueError(
                f"{self.name}: minimum unloading ratio {self.min_unloading_ratio} must lie in "
                f"[{self.min_part_load_ratio}, {self.max_part_load_ratio}]"
            )
        if not self.min_part_load_ratio <= self.optimum_part_load_ratio <= self.max_part_load_ratio:
            raise ValueError(
                f"{self.name}: optimum part load ratio {self.optimum_part_load_ratio} must lie in "
                f"[{self.min_part_load_ratio}, {self.max_part_load_ratio}]"
            )
        if not 0.0 <= self.comp_power_to_condenser_frac <= 1.0:
            raise ValueError(
                f"{self.name}: compressor power fraction to condenser "
                f"{self.comp_power_to_condenser_frac} must be within [0, 1]"
            )
        return self

    @property
    def heat_recovery_active(self) -> bool:
        return self.heat_recovery is not None and self.heat_recovery.active

    @property
    def heat_recovery_capacity_limit_w(self) -> float:
        """capacity_fraction * (ref_cap + ref_cap / ref_cop)."""
        if self.heat_recovery is None:
            return 0.0
        return self.heat_recovery.capacity_fraction * (
            self.reference_capacity_w + self.reference_capacity_w / self.reference_cop
        )

    @property
    def reference_lift_c(self) -> float:
        return self.reference_cond_outlet_temp_c - self.reference_evap_outlet_temp_c


# --- PLANT ---

class LoopConfig(BaseModel):
    name: str
    demand_calc_scheme: DemandCalcScheme = DemandCalcScheme.SINGLE_SETPOINT
    setpoint_c: Optional[float] = None
    setpoint_hi_c: Optional[float] = None
    setpoint_lo_c: Optional[float] = None

    @field_validator("demand_calc_scheme", mode="before")
    @classmethod
    def _parse_scheme(cls, v: Any) -> Any:
        if isinstance(v, str):
            scheme = _DEMAND_SCHEMES.get(_normalize(v))
            if scheme is None:
                raise ValueError(f"Unknown demand calculation scheme '{v}'")
            return scheme
        return v


class FaultConfig(BaseModel):
    name: str
    type: str
    fouling_factor: float = 1.0
    offset_c: ScheduleValue = 0.0
    availability: ScheduleValue = 1.0
    severity: ScheduleValue = 1.0

    @field_validator("type")
    @classmethod
    def _check_type(cls, v: str) -> str:
        if v not in ("fouling", "sensor_offset"):
            raise ValueError(f"Unknown fault type '{v}' (expected 'fouling' or 'sensor_offset')")
        return v


class ChillerConfig(BaseModel):
    spec: ChillerSpec
    chilled_water_loop: str
    condenser_loop: str
    heat_recovery_loop: Optional[str] = None
    evap_outlet_setpoint_c: Optional[float] = None
    operation_scheme: OperationSchemeType = OperationSchemeType.LOAD_RANGE_BASED

    @field_validator("operation_scheme", mode="before")
    @classmethod
    def _parse_operation_scheme(cls, v: Any) -> Any:
        if isinstance(v, str):
            scheme = _OPERATION_SCHEMES.get(_normalize(v))
            if scheme is None:
                raise ValueError(f"Unknown operation scheme '{v}'")
            return scheme
        return v


class OperatingPointConfig(BaseModel):
    """Boundary conditions for one chiller call driven from the CLI."""
    chiller: str
    load_w: float
    run: bool = True
    evap_inlet_temp_c: float = 12.0
    cond_inlet_temp_c: float = 29.4
    heat_rec_inlet_temp_c: Optional[float] = None
    evap_flow_max_kg_s: Optional[float] = None
    cond_flow_max_kg_s: Optional[float] = None
    flow_locked: bool = False
    first_iteration: bool = False
    time_hours: float = 0.0


class PlantConfig(BaseModel):
    name: str
    version: str = "1.0"
    timestep_hours: float = Field(1.0, gt=0.0)
    curves: List[CurveConfig]
    loops: List[LoopConfig]
    faults: List[FaultConfig] = []
    chillers: List[ChillerConfig]
    operating_points: List[OperatingPointConfig] = []
    metadata: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _check_references(self) -> "PlantConfig":
        curve_names = {c.name for c in self.curves}
        loop_names = {lp.name for lp in self.loops}
        fault_names = {f.name for f in self.faults}
        chiller_names = set()
        for ch in self.chillers:
            spec = ch.spec
            if spec.name in chiller_names:
                raise ValueError(f"Duplicate chiller name '{spec.name}'")
            chiller_names.add(spec.name)
            for curve_id in (spec.cap_ft_curve, spec.eir_ft_curve, spec.eir_fplr_curve):
                if curve_id not in curve_names:
                    raise ValueError(f"{spec.name}: unknown curve '{curve_id}'")
            for loop_name in (ch.chilled_water_loop, ch.condenser_loop, ch.heat_recovery_loop):
                if loop_name is not None and loop_name not in loop_names:
                    raise ValueError(f"{spec.name}: unknown loop '{loop_name}'")
            if spec.heat_recovery_active and ch.heat_recovery_loop is None:
                raise ValueError(f"{spec.name}: heat recovery is active but no heat_recovery_loop is set")
            for fault_name in (spec.fouling_fault, spec.sensor_fault):
                if fault_name is not None and fault_name not in fault_names:
                    raise ValueError(f"{spec.name}: unknown fault '{fault_name}'")
        for point in self.operating_points:
            if point.chiller not in chiller_names:
                raise ValueError(f"Operating point references unknown chiller '{point.chiller}'")
        return self
