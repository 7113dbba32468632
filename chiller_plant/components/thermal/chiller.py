"""
Reformulated-EIR Water-Cooled Chiller Component.

This module wraps the reformulated electric-input-ratio chiller model in
the Component lifecycle. The model's curves are functions of the condenser
*leaving* water temperature, so each plant call solves for a consistent
condenser temperature before reporting.

Performance Model:
    **Q_avail = Q_ref * CAPFT(T_evap_sp, T_cond_out)**

    **P = Q_avail / COP_ref * EIRFT(T_evap_out, T_cond_out) * EIRFPLR(T_cond_out, PLR)**

    **Q_cond = P * f_comp + Q_evap + Q_false - Q_heat_recovery**

Architecture:
    Implements the Component Lifecycle Contract (Layer 1):
    - `initialize()`: Resolves curves/faults, checks reference curve values.
    - `step()`: Runs one plant call with the demand set by `set_demand()`.
    - `get_state()`: Returns operating point, records and diagnostics.

    The numerical work lives in three modules:
    - `eir_performance`: single evaluation at an assumed condenser temperature.
    - `condenser_solver`: fixed-point search over the condenser temperature.
    - `curve_boundaries`: post-convergence curve domain diagnostics.
"""

from typing import Dict, Any, Optional, Tuple
import logging

from chiller_plant.config.models import ChillerSpec
from chiller_plant.core.component import Component
from chiller_plant.core.component_registry import ComponentRegistry
from chiller_plant.core.constants import ChillerDefaults, TimeConstants, SENSED_NODE_FLAG_VALUE
from chiller_plant.core.context import SimulationContext
from chiller_plant.core.enums import EquipFlowControl, FlowMode, PartLoadCurveType
from chiller_plant.core.exceptions import ConfigurationError
from chiller_plant.core.node import LoopConnection, PlantNode
from chiller_plant.core.types import CurveEvaluator
from chiller_plant.components.thermal.chiller_state import (
    ChillerState,
    ChillerDiagnostics,
    ChillerRecords,
    LaggedCondenserTemps,
)
from chiller_plant.components.thermal.condenser_solver import SolverOutcome, solve_condenser_temperature
from chiller_plant.components.thermal.eir_performance import EvaluationContext
from chiller_plant.models.faults import FoulingFault, SupplyTempSensorFault
from chiller_plant.models.schedules import Schedule, schedule_from_config
from chiller_plant.reporting.diagnostics import DiagnosticsSink


class ReformulatedEIRChiller(Component):
    """
    Water-cooled vapor-compression chiller with leaving-condenser-temperature curves.

    This component fulfills the Component Lifecycle Contract (Layer 1):
        - `initialize()`: Resolves shared resources and validates curves.
        - `step()`: Solves the condenser temperature and updates records.
        - `get_state()`: Returns state, records and warning counters.

    Attributes:
        spec (ChillerSpec): Reference data, never mutated.
        state (ChillerState): Operating point of the last call.
        records (ChillerRecords): Energies and outlet temperatures of the last call.
        diagnostics (ChillerDiagnostics): Warning counters.
        last_outcome (SolverOutcome): How the last condenser search ended.

    Example:
        >>> chiller = ReformulatedEIRChiller(spec, evap=chw, cond=cw, curves=curves)
        >>> chiller.initialize(dt=1.0, registry=None)
        >>> chiller.set_demand(load=-300000.0, run_flag=True)
        >>> chiller.step(t=0.0)
        >>> chiller.state.power
    """

    def __init__(
        self,
        spec: ChillerSpec,
        evap: LoopConnection,
        cond: LoopConnection,
        heat_rec: Optional[LoopConnection] = None,
        heat_rec_setpoint_node: Optional[PlantNode] = None,
        curves: Optional[CurveEvaluator] = None,
        fouling_fault: Optional[FoulingFault] = None,
        sensor_fault: Optional[SupplyTempSensorFault] = None,
        sink: Optional[DiagnosticsSink] = None,
        sim: Optional[SimulationContext] = None,
        component_id: Optional[str] = None
    ):
        """
        Initialize the chiller.

        Args:
            spec (ChillerSpec): Chiller reference data.
            evap (LoopConnection): Chilled water loop connection.
            cond (LoopConnection): Condenser water loop connection.
            heat_rec (LoopConnection, optional): Heat-recovery loop connection.
            heat_rec_setpoint_node (PlantNode, optional): Setpoint tracked by
                the recovery bundle. Temperature blending is used when None.
            curves (CurveEvaluator, optional): Curve lookup. Taken from the
                registry resource 'curves' when None.
            fouling_fault (FoulingFault, optional): Fouling fault adapter.
            sensor_fault (SupplyTempSensorFault, optional): Sensor offset adapter.
            sink (DiagnosticsSink, optional): Warning sink. Registry resource
                'diagnostics' or a private sink when None.
            sim (SimulationContext, optional): Simulation flags. Registry
                resource 'simulation_context' or a private context when None.
            component_id (str, optional): Registry handle. Default: spec.name.
        """
        super().__init__(config=spec, component_id=component_id or spec.name)
        self.spec = spec
        self.evap = evap
        self.cond = cond
        self.heat_rec = heat_rec
        self.heat_rec_setpoint_node = heat_rec_setpoint_node
        self.curves = curves
        self.fouling_fault = fouling_fault
        self.sensor_fault = sensor_fault
        self.sink = sink
        self.sim = sim
        self.heat_rec_inlet_limit: Optional[Schedule] = None

        self.logger = logging.getLogger(f"chiller.{self.component_id}")

        self.state = ChillerState()
        self.records = ChillerRecords()
        self.diagnostics = ChillerDiagnostics()
        self.lagged = LaggedCondenserTemps()
        self.last_outcome: Optional[SolverOutcome] = None

        # Demand for the next step()
        self.load: float = 0.0
        self.run_flag: bool = False
        self.first_iteration: bool = False
        self.equip_flow_control: EquipFlowControl = EquipFlowControl.ACTIVE
        # Load after the last plant call clamped it
        self.delivered_load: float = 0.0

    def initialize(self, dt: float, registry: Optional[ComponentRegistry]) -> None:
        """
        Resolve shared resources and validate the performance curves.

        Raises:
            ConfigurationError: If curves are missing, have the wrong form or
                an invalid part-load range, or the part-load curve goes
                negative along the reference operating line.
        """
        super().initialize(dt, registry)

        if self.curves is None:
            if registry is None:
                raise ConfigurationError(f"{self.spec.name}: no curve evaluator available")
            self.curves = registry.get_resource("curves")
        if self.sink is None:
            if registry is not None and registry.has_resource("diagnostics"):
                self.sink = registry.get_resource("diagnostics")
            else:
                self.sink = DiagnosticsSink(self.spec.name)
        if self.sim is None:
            if registry is not None and registry.has_resource("simulation_context"):
                self.sim = registry.get_resource("simulation_context")
            else:
                self.sim = SimulationContext(dt_hours=dt)
        if registry is not None and registry.has_resource("faults"):
            faults = registry.get_resource("faults")
            if self.fouling_fault is None and self.spec.fouling_fault is not None:
                self.fouling_fault = faults[self.spec.fouling_fault]
            if self.sensor_fault is None and self.spec.sensor_fault is not None:
                self.sensor_fault = faults[self.spec.sensor_fault]

        if self.spec.heat_recovery_active:
            if self.heat_rec is None:
                raise ConfigurationError(
                    f"{self.spec.name}: heat recovery is active but no heat-recovery loop is connected"
                )
            limit = self.spec.heat_recovery.inlet_high_limit_c
            if limit is not None:
                self.heat_rec_inlet_limit = schedule_from_config(limit)

        self._check_curve_forms()
        if self.spec.flow_mode == FlowMode.LEAVING_SETPOINT_MODULATED:
            scheme = self.evap.loop.demand_calc_scheme
            if not self.evap.outlet_node.has_setpoint(scheme) and self.evap.loop.loop_setpoint() == SENSED_NODE_FLAG_VALUE:
                self.logger.warning(
                    f"{self.spec.name}: leaving setpoint modulated flow mode but no evaporator "
                    f"outlet setpoint is available; the reference evaporator outlet temperature is used"
                )
        self.check_reference_curves()

        self.state.evap_inlet_temp = self.evap.inlet_node.temp
        self.state.cond_inlet_temp = self.cond.inlet_node.temp
        self.logger.debug(
            f"Initialized: Q_ref={self.spec.reference_capacity_w:.0f} W, COP_ref={self.spec.reference_cop}"
        )

    def _check_curve_forms(self) -> None:
        spec = self.spec
        expected_plr_dims = 2 if spec.part_load_curve_type == PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE else 3
        for curve_id, dims in (
            (spec.cap_ft_curve, 2),
            (spec.eir_ft_curve, 2),
            (spec.eir_fplr_curve, expected_plr_dims),
        ):
            actual = self.curves.dimensions(curve_id)
            if actual != dims:
                raise ConfigurationError(
                    f"{spec.name}: curve '{curve_id}' has {actual} independent variables, "
                    f"expected {dims} for part load curve type {spec.part_load_curve_type.name}"
                )

    def check_reference_curves(self) -> None:
        """
        Check curve outputs at reference conditions and the part-load range.

        CAPFT, EIRFT and EIRFPLR should be 1.0 (+/- 10%) at reference
        conditions; a larger deviation is logged as a warning.

        Raises:
            ConfigurationError: If the EIRFPLR part-load range is invalid or
                the curve is negative along the reference operating line.
        """
        spec = self.spec
        curves = self.curves
        if spec.design_cond_mass_flow_kg_s <= 0.0:
            return

        ref_evap = spec.reference_evap_outlet_temp_c
        ref_cond = spec.reference_cond_outlet_temp_c
        if spec.part_load_curve_type == PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE:
            fplr_ref = curves.value(spec.eir_fplr_curve, ref_cond, 1.0)
        else:
            fplr_ref = curves.value(spec.eir_fplr_curve, 1.0, 1.0, 0.0)

        for label, curve_id, value in (
            ("Capacity ratio as a function of temperature", spec.cap_ft_curve,
             curves.value(spec.cap_ft_curve, ref_evap, ref_cond)),
            ("Energy input ratio as a function of temperature", spec.eir_ft_curve,
             curves.value(spec.eir_ft_curve, ref_evap, ref_cond)),
            ("Energy input ratio as a function of part-load ratio", spec.eir_fplr_curve, fplr_ref),
        ):
            if value > ChillerDefaults.REFERENCE_CURVE_HIGH or value < ChillerDefaults.REFERENCE_CURVE_LOW:
                self.logger.warning(
                    f"{spec.name}: {label} curve '{curve_id}' output is not equal to 1.0 "
                    f"(+ or - 10%) at reference conditions: {value:.3f}"
                )

        plr_domain = curves.domain(spec.eir_fplr_curve)
        plr_min, plr_max = plr_domain.y_min, plr_domain.y_max
        if plr_min < 0.0 or plr_min >= plr_max or plr_min > 1.0:
            raise ConfigurationError(
                f"{spec.name}: invalid minimum value of PLR = {plr_min:.3f} in curve "
                f"'{spec.eir_fplr_curve}'; it must be >= 0, < 1 and below the maximum"
            )
        if plr_max > ChillerDefaults.MAX_PLR_DOMAIN_UPPER or plr_max <= plr_min or plr_max < 0.0:
            raise ConfigurationError(
                f"{spec.name}: invalid maximum value of PLR = {plr_max:.3f} in curve "
                f"'{spec.eir_fplr_curve}'; it must be > 0, <= 1.1 and above the minimum"
            )

        if spec.part_load_curve_type != PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE:
            return

        # Condenser temperature rises linearly with PLR from the reference inlet
        cp = self.cond.loop.specific_heat(ref_cond)
        ref_cond_in = ref_cond - spec.reference_capacity_w * (
            1.0 + spec.comp_power_to_condenser_frac / spec.reference_cop
        ) / (spec.design_cond_mass_flow_kg_s * cp)
        delta_t_cond = ref_cond - ref_cond_in

        negative = []
        for step in range(11):
            plr = step / 10.0
            cond_temp = ref_cond_in + delta_t_cond * plr
            cond_temp = min(max(cond_temp, plr_domain.x_min), plr_domain.x_max)
            value = curves.value(spec.eir_fplr_curve, cond_temp, plr)
            if value < 0.0:
                negative.append((plr, cond_temp, value))

        if negative:
            detail = ", ".join(f"PLR={p:.1f} T={t:.2f} C -> {v:.4f}" for p, t, v in negative)
            raise ConfigurationError(
                f"{spec.name}: energy input ratio as a function of part-load ratio curve "
                f"'{spec.eir_fplr_curve}' is negative along the reference operating line: {detail}"
            )

    def set_demand(
        self,
        load: float,
        run_flag: bool = True,
        first_iteration: bool = False,
        equip_flow_control: EquipFlowControl = EquipFlowControl.ACTIVE
    ) -> None:
        """
        Set the demand used by the next step().

        Args:
            load: Requested load in W (negative for cooling).
            run_flag: Chiller commanded on.
            first_iteration: First plant iteration of the timestep.
            equip_flow_control: Flow control of the chiller's branch.
        """
        self.load = load
        self.run_flag = run_flag
        self.first_iteration = first_iteration
        self.equip_flow_control = equip_flow_control

    def get_load_range(self) -> Tuple[float, float, float]:
        """Return (minimum, maximum, optimum) capacity in W."""
        ref_cap = self.spec.reference_capacity_w
        return (
            ref_cap * self.spec.min_part_load_ratio,
            ref_cap * self.spec.max_part_load_ratio,
            ref_cap * self.spec.optimum_part_load_ratio,
        )

    def _request_design_flows(self, load: float, run_flag: bool) -> None:
        running = abs(load) > 0.0 and run_flag
        self.evap.request_flow(self.spec.design_evap_mass_flow_kg_s if running else 0.0)
        self.cond.request_flow(self.spec.design_cond_mass_flow_kg_s if running else 0.0)
        if self.spec.heat_recovery_active:
            design_hr = self.spec.heat_recovery.design_mass_flow_kg_s
            self.heat_rec.request_flow(design_hr if run_flag else 0.0)

    def simulate(
        self,
        load: float,
        run_flag: bool,
        first_iteration: bool = False,
        equip_flow_control: EquipFlowControl = EquipFlowControl.ACTIVE
    ) -> float:
        """
        Run one plant call.

        Args:
            load: Requested load in W (negative for cooling).
            run_flag: Chiller commanded on.
            first_iteration: First plant iteration of the timestep.
            equip_flow_control: Flow control of the chiller's branch.

        Returns:
            The load after clamping to what the chiller and water loop allow.

        Raises:
            CondenserFlowError: If the chiller runs with no condenser flow.
        """
        self.validate_initialized()
        self._request_design_flows(load, run_flag)

        ctx = EvaluationContext(
            spec=self.spec,
            state=self.state,
            curves=self.curves,
            evap=self.evap,
            cond=self.cond,
            load=load,
            run_flag=run_flag,
            sim=self.sim,
            diagnostics=self.diagnostics,
            sink=self.sink,
            heat_rec=self.heat_rec,
            heat_rec_setpoint_node=self.heat_rec_setpoint_node,
            heat_rec_inlet_limit=self.heat_rec_inlet_limit,
            equip_flow_control=equip_flow_control,
            first_iteration=first_iteration,
            lagged=self.lagged,
            fouling_fault=self.fouling_fault,
            sensor_fault=self.sensor_fault,
        )
        self.last_outcome = solve_condenser_temperature(ctx)
        self.lagged = LaggedCondenserTemps.from_state(self.state)
        self.update_records(ctx.load, run_flag)
        self.delivered_load = ctx.load
        return ctx.load

    def step(self, t: float) -> None:
        """
        Execute one plant call with the demand from set_demand().

        Args:
            t (float): Current simulation time in hours.
        """
        super().step(t)
        self.sim.time_hours = t
        self.simulate(self.load, self.run_flag, self.first_iteration, self.equip_flow_control)

    def update_records(self, load: float, run_flag: bool) -> None:
        """
        Write outlet node temperatures and derive energies for reporting.

        An idle chiller passes inlet temperatures straight through.
        """
        state = self.state
        rec = self.records
        seconds = self.sim.dt_hours * TimeConstants.SECONDS_PER_HOUR

        rec.evap_inlet_temp = self.evap.inlet_node.temp
        rec.cond_inlet_temp = self.cond.inlet_node.temp
        if self.heat_rec is not None:
            rec.heat_rec_inlet_temp = self.heat_rec.inlet_node.temp

        if load >= 0.0 or not run_flag:
            self.evap.outlet_node.temp = self.evap.inlet_node.temp
            self.cond.outlet_node.temp = self.cond.inlet_node.temp
            rec.evap_outlet_temp = rec.evap_inlet_temp
            rec.cond_outlet_temp = rec.cond_inlet_temp
            rec.power = rec.energy = 0.0
            rec.q_evaporator = rec.evap_energy = 0.0
            rec.q_condenser = rec.cond_energy = 0.0
            rec.false_load_rate = rec.false_load_energy = 0.0
            rec.q_heat_recovery = rec.heat_rec_energy = 0.0
            rec.actual_cop = 0.0
            rec.part_load_ratio = 0.0
            rec.cycling_ratio = 0.0
            if self.heat_rec is not None:
                self.heat_rec.outlet_node.temp = self.heat_rec.inlet_node.temp
                rec.heat_rec_outlet_temp = rec.heat_rec_inlet_temp
                rec.heat_rec_mass_flow = self.heat_rec.inlet_node.mass_flow_rate
            return

        self.evap.outlet_node.temp = state.evap_outlet_temp
        self.cond.outlet_node.temp = state.cond_outlet_temp
        rec.evap_outlet_temp = state.evap_outlet_temp
        rec.cond_outlet_temp = state.cond_outlet_temp

        rec.power = state.power
        rec.energy = state.power * seconds
        rec.q_evaporator = state.q_evaporator
        rec.evap_energy = state.q_evaporator * seconds
        rec.q_condenser = state.q_condenser
        rec.cond_energy = state.q_condenser * seconds
        rec.false_load_rate = state.false_load_rate
        rec.false_load_energy = state.false_load_rate * seconds
        rec.q_heat_recovery = state.q_heat_recovery
        rec.heat_rec_energy = state.q_heat_recovery * seconds
        rec.part_load_ratio = state.part_load_ratio
        rec.cycling_ratio = state.cycling_ratio
        rec.actual_cop = (
            (state.q_evaporator + state.false_load_rate) / state.power if state.power != 0.0 else 0.0
        )

        if self.heat_rec is not None:
            self.heat_rec.outlet_node.temp = state.heat_rec_outlet_temp
            rec.heat_rec_outlet_temp = state.heat_rec_outlet_temp
            rec.heat_rec_mass_flow = state.heat_rec_mass_flow

    def get_state(self) -> Dict[str, Any]:
        """
        Return the chiller's operating point, records and warning counters.

        Returns:
            Dict[str, Any]: JSON-serialisable state dictionary.
        """
        outcome = self.last_outcome
        return {
            **super().get_state(),
            "name": self.spec.name,
            "load_w": float(self.load),
            "delivered_load_w": float(self.delivered_load),
            "state": self.state.snapshot(),
            "records": self.records.snapshot(),
            "diagnostics": self.diagnostics.counts(),
            "solver": {
                "path": outcome.path.name if outcome else None,
                "root_status": outcome.root_status.name if outcome and outcome.root_status is not None else None,
                "iterations": outcome.iterations if outcome else 0,
            },
        }
