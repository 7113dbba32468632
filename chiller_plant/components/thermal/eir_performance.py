"""
Single-Point Performance Evaluation of a Reformulated-EIR Chiller.

Given an assumed condenser leaving water temperature, this module computes
the chiller's capacity, electrical power and heat flows for one plant call.
The condenser temperature solver calls it repeatedly until the assumed and
computed leaving temperatures agree.

Capacity and Power Model:
    **Q_avail = Q_ref * F_fouling * CAPFT(T_evap_sp, T_cond)**

    **P = Q_avail / COP_ref * EIRFPLR * EIRFT(T_evap_out, T_cond) * cycling**

    **Q_cond = P * f_comp + Q_evap + Q_false**

    where T_cond is the condenser leaving temperature used for curve lookup
    (blended with the heat-recovery leaving temperature when recovery runs).

Part Load Behaviour:
    - Below MinPLR the compressor cycles; the on-fraction is PLR / MinPLR.
    - Below the minimum unloading ratio the chiller false-loads (hot gas
      bypass): the capacity between the unloading floor and the delivered
      load is rejected to the condenser as false load.

Heat Recovery:
    With a heat-recovery bundle the condenser heat is split between the
    recovery loop and the condenser loop, either by blending the two
    streams' temperatures or by tracking a recovery-loop setpoint.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import math

from chiller_plant.config.models import ChillerSpec
from chiller_plant.core.constants import (
    MASS_FLOW_TOLERANCE,
    SMALL_LOAD,
    DELTA_TEMP_TOL,
    SENSED_NODE_FLAG_VALUE,
    ChillerDefaults,
)
from chiller_plant.core.context import SimulationContext
from chiller_plant.core.enums import (
    PartLoadCurveType,
    FlowMode,
    EquipFlowControl,
    OperationSchemeType,
)
from chiller_plant.core.exceptions import CondenserFlowError
from chiller_plant.core.node import LoopConnection, PlantNode
from chiller_plant.core.types import CurveEvaluator
from chiller_plant.components.thermal.chiller_state import (
    ChillerState,
    ChillerDiagnostics,
    LaggedCondenserTemps,
)
from chiller_plant.models.faults import FoulingFault, SupplyTempSensorFault
from chiller_plant.models.schedules import Schedule
from chiller_plant.optimization.numba_ops import weighted_mix_temperature
from chiller_plant.reporting.diagnostics import DiagnosticsSink, report_throttled

logger = logging.getLogger(__name__)


@dataclass
class EvaluationContext:
    """
    Everything one chiller evaluation reads or writes.

    The condenser solver builds one context per plant call and closes its
    residual over it, so repeated evaluations share the same inputs.

    Attributes:
        spec: Immutable chiller reference data.
        state: Operating point, overwritten by every evaluation.
        curves: Performance curve lookup.
        evap: Chilled water loop connection.
        cond: Condenser water loop connection.
        load: Requested load (W, negative for cooling). Clamped in place.
        run_flag: Chiller commanded on.
        sim: Simulation flags (time, warm-up, sizing).
        diagnostics: Warning counters.
        sink: Warning destination.
        heat_rec: Heat-recovery loop connection, if any.
        heat_rec_setpoint_node: Node whose setpoint the recovery tracks.
        heat_rec_inlet_limit: Recovery stops above this inlet temperature.
        equip_flow_control: Flow control of the chiller's branch.
        first_iteration: First plant iteration of the timestep.
        lagged: Previous call's condenser/recovery results.
        fouling_fault: Optional fouling fault.
        sensor_fault: Optional supply temperature sensor fault.
    """
    spec: ChillerSpec
    state: ChillerState
    curves: CurveEvaluator
    evap: LoopConnection
    cond: LoopConnection
    load: float
    run_flag: bool
    sim: SimulationContext = field(default_factory=SimulationContext)
    diagnostics: ChillerDiagnostics = field(default_factory=ChillerDiagnostics)
    sink: DiagnosticsSink = field(default_factory=DiagnosticsSink)
    heat_rec: Optional[LoopConnection] = None
    heat_rec_setpoint_node: Optional[PlantNode] = None
    heat_rec_inlet_limit: Optional[Schedule] = None
    equip_flow_control: EquipFlowControl = EquipFlowControl.ACTIVE
    first_iteration: bool = False
    lagged: LaggedCondenserTemps = field(default_factory=LaggedCondenserTemps)
    fouling_fault: Optional[FoulingFault] = None
    sensor_fault: Optional[SupplyTempSensorFault] = None

    @property
    def running(self) -> bool:
        return self.load < 0.0 and self.run_flag


@dataclass(frozen=True)
class HeatRecoveryResult:
    """Outcome of splitting condenser heat with the recovery bundle."""
    condenser_heat: float
    heat_recovered: float
    inlet_temp: float
    outlet_temp: float
    mass_flow: float


def split_heat_recovery(
    spec: ChillerSpec,
    heat_rec: LoopConnection,
    total_condenser_heat: float,
    cond_mass_flow: float,
    cond_inlet_temp: float,
    cp_cond: float,
    sim: SimulationContext,
    setpoint_node: Optional[PlantNode] = None,
    inlet_limit: Optional[Schedule] = None
) -> HeatRecoveryResult:
    """
    Split total condenser heat between the recovery and condenser loops.

    Without a setpoint node the two streams are treated as one mixed
    condenser: the recovery stream gets the share that heats it to the
    blended leaving temperature. With a setpoint node the recovery stream
    takes the heat needed to reach its setpoint. Either way the recovered
    heat is limited to the bundle capacity and the total condenser heat.

    Args:
        spec: Chiller reference data (capacity limit).
        heat_rec: Heat-recovery loop connection.
        total_condenser_heat: Heat to reject (W).
        cond_mass_flow: Condenser loop mass flow (kg/s).
        cond_inlet_temp: Condenser inlet temperature (C).
        cp_cond: Condenser fluid specific heat (J/kg/K).
        sim: Simulation flags for the inlet limit schedule.
        setpoint_node: Node holding the recovery setpoint, if tracked.
        inlet_limit: High limit on recovery inlet temperature (C).

    Returns:
        HeatRecoveryResult with adjusted condenser heat and recovery outlet.
    """
    m_hr = max(0.0, heat_rec.inlet_node.mass_flow_rate)
    t_hr_in = heat_rec.inlet_node.temp
    cp_hr = heat_rec.loop.specific_heat(t_hr_in)
    capacity_limit = spec.heat_recovery_capacity_limit_w

    if setpoint_node is None:
        t_avg_in = weighted_mix_temperature(m_hr, cp_hr, t_hr_in, cond_mass_flow, cp_cond, cond_inlet_temp)
        total_rate = m_hr * cp_hr + cond_mass_flow * cp_cond
        t_avg_out = total_condenser_heat / total_rate + t_avg_in if total_rate > 0.0 else t_avg_in
        q_hr = max(0.0, m_hr * cp_hr * (t_avg_out - t_hr_in))
    else:
        t_set = setpoint_node.setpoint_for(heat_rec.loop.demand_calc_scheme)
        q_hr = max(0.0, m_hr * cp_hr * (t_set - t_hr_in))

    q_hr = min(q_hr, capacity_limit, max(0.0, total_condenser_heat))

    if inlet_limit is not None and t_hr_in > inlet_limit.value(sim):
        q_hr = 0.0

    if m_hr > 0.0:
        t_hr_out = q_hr / (m_hr * cp_hr) + t_hr_in
    else:
        t_hr_out = t_hr_in

    return HeatRecoveryResult(
        condenser_heat=total_condenser_heat - q_hr,
        heat_recovered=q_hr,
        inlet_temp=t_hr_in,
        outlet_temp=t_hr_out,
        mass_flow=m_hr,
    )


def evaporator_setpoint(ctx: EvaluationContext) -> float:
    """
    Leaving chilled water setpoint seen by the chiller.

    The outlet node's own setpoint wins when the chiller modulates flow to
    it, when the branch runs on a component-setpoint scheme, or when one has
    been assigned; otherwise the loop setpoint applies.
    """
    scheme = ctx.evap.loop.demand_calc_scheme
    outlet = ctx.evap.outlet_node
    use_node = (
        ctx.spec.flow_mode == FlowMode.LEAVING_SETPOINT_MODULATED
        or ctx.evap.operation_scheme == OperationSchemeType.COMPONENT_SETPOINT_BASED
        or outlet.has_setpoint(scheme)
    )
    setpoint = outlet.setpoint_for(scheme) if use_node else ctx.evap.loop.loop_setpoint()
    if setpoint == SENSED_NODE_FLAG_VALUE:
        return ctx.spec.reference_evap_outlet_temp_c
    return setpoint


def _set_idle(ctx: EvaluationContext) -> None:
    state = ctx.state
    state.evap_outlet_temp = state.evap_inlet_temp
    state.cond_outlet_temp = state.cond_inlet_temp
    if ctx.heat_rec is not None:
        state.heat_rec_inlet_temp = ctx.heat_rec.inlet_node.temp
        state.heat_rec_outlet_temp = ctx.heat_rec.inlet_node.temp
        state.heat_rec_mass_flow = ctx.heat_rec.inlet_node.mass_flow_rate


def _clamp_to_limit(
    inlet_temp: float,
    outlet_temp: float,
    q_evap: float,
    limit: float,
    mass_flow: float,
    cp: float
):
    """Raise outlet_temp to limit (or to inlet when the margin is too small)."""
    if outlet_temp >= limit:
        return outlet_temp, q_evap
    if inlet_temp - limit > DELTA_TEMP_TOL:
        outlet_temp = limit
    else:
        outlet_temp = inlet_temp
    return outlet_temp, mass_flow * cp * (inlet_temp - outlet_temp)


def evaluate_performance(ctx: EvaluationContext, assumed_cond_outlet_temp: float) -> None:
    """
    Evaluate the chiller at one assumed condenser leaving temperature.

    Overwrites ctx.state; may clamp ctx.load to what the chilled water loop
    can deliver (or to zero when the chiller cannot run).

    Args:
        ctx: Evaluation context for this plant call.
        assumed_cond_outlet_temp: Condenser leaving temperature (C) used for
            the curve lookups.

    Raises:
        CondenserFlowError: If the chiller runs with no condenser flow.
    """
    spec = ctx.spec
    state = ctx.state
    evap = ctx.evap
    cond = ctx.cond

    state.reset_outputs()
    state.evap_inlet_temp = evap.inlet_node.temp
    state.cond_inlet_temp = cond.inlet_node.temp

    # Idle: pass flows through for series branches and locked loops
    if not ctx.running:
        if ctx.equip_flow_control == EquipFlowControl.SERIES_ACTIVE or evap.flow_locked:
            state.evap_mass_flow = evap.inlet_node.mass_flow_rate
        if cond.flow_control == EquipFlowControl.SERIES_ACTIVE:
            state.cond_mass_flow = cond.inlet_node.mass_flow_rate
        _set_idle(ctx)
        return

    state.cond_mass_flow = cond.request_flow(spec.design_cond_mass_flow_kg_s)

    ref_cap = spec.reference_capacity_w
    ref_cop = spec.reference_cop
    if ctx.fouling_fault is not None:
        factor = ctx.fouling_fault.factor(ctx.sim)
        state.fouling_factor = factor
        ref_cap *= factor
        ref_cop *= factor

    evap_inlet_temp = state.evap_inlet_temp
    setpoint = evaporator_setpoint(ctx)

    sensor_active = ctx.sensor_fault is not None and not ctx.sim.faults_suppressed
    if sensor_active:
        unbiased = setpoint
        offset = ctx.sensor_fault.offset(ctx.sim)
        setpoint = max(spec.evap_outlet_temp_low_limit_c, min(evap_inlet_temp, unbiased - offset))
        state.sensor_offset = unbiased - setpoint
    state.evap_setpoint = setpoint

    if spec.heat_recovery_active:
        cond_temp = ctx.lagged.blended_temp(assumed_cond_outlet_temp)
    else:
        cond_temp = assumed_cond_outlet_temp
    state.cond_temp_for_curves = cond_temp

    state.cap_ft = max(0.0, ctx.curves.value(spec.cap_ft_curve, setpoint, cond_temp))
    avail_cap = ref_cap * state.cap_ft

    state.evap_mass_flow = evap.inlet_node.mass_flow_rate
    if state.evap_mass_flow == 0.0 or avail_cap <= 0.0:
        ctx.load = 0.0
        _set_idle(ctx)
        return

    # The chiller cannot remove more heat than the water brings in
    cp_evap = evap.loop.specific_heat(evap_inlet_temp)
    water_side_load = max(
        0.0, evap.inlet_node.mass_flow_rate_max_avail * cp_evap * (evap_inlet_temp - setpoint)
    )
    if abs(ctx.load) > water_side_load:
        ctx.load = math.copysign(water_side_load, ctx.load)
    load_magnitude = abs(ctx.load)

    max_plr = spec.max_part_load_ratio
    plr = max(0.0, min(load_magnitude / avail_cap, max_plr))
    q_evap = avail_cap * plr

    if not evap.flow_locked:
        state.possible_subcooling = evap.operation_scheme != OperationSchemeType.COMPONENT_SETPOINT_BASED

        if spec.flow_mode in (FlowMode.CONSTANT_FLOW, FlowMode.NOT_MODULATED):
            mass_flow = evap.request_flow(spec.design_evap_mass_flow_kg_s)
            delta_t = q_evap / mass_flow / cp_evap if mass_flow > 0.0 else 0.0
            outlet_temp = evap_inlet_temp - delta_t
        else:
            node_setpoint = evap.outlet_node.setpoint_for(evap.loop.demand_calc_scheme)
            if node_setpoint == SENSED_NODE_FLAG_VALUE:
                node_setpoint = setpoint
            delta_t = evap_inlet_temp - node_setpoint
            if delta_t != 0.0:
                mass_flow = max(0.0, q_evap / cp_evap / delta_t)
                if mass_flow - spec.design_evap_mass_flow_kg_s > MASS_FLOW_TOLERANCE:
                    state.possible_subcooling = True
                mass_flow = min(spec.design_evap_mass_flow_kg_s, mass_flow)
                mass_flow = evap.request_flow(mass_flow)
                outlet_temp = node_setpoint
                q_evap = max(0.0, mass_flow * cp_evap * delta_t)
                plr = max(0.0, min(q_evap / avail_cap, max_plr))
            else:
                mass_flow = evap.request_flow(0.0)
                outlet_temp = evap_inlet_temp
                q_evap = 0.0
                plr = 0.0
                if not ctx.sim.warmup:
                    report_throttled(
                        ctx.sink,
                        ctx.diagnostics.delta_temp_zero,
                        f"{spec.name}:delta_temp_zero",
                        f"{spec.name}: evaporator DeltaTemp = 0 in mass flow calculation "
                        f"(inlet {evap_inlet_temp:.2f} C equals setpoint); chiller load set to zero",
                        f"{spec.name}: evaporator DeltaTemp = 0 in mass flow calculation continues",
                        delta_t,
                    )
    else:
        mass_flow = evap.request_flow(evap.inlet_node.mass_flow_rate)
        if mass_flow == 0.0:
            state.evap_mass_flow = 0.0
            ctx.load = 0.0
            _set_idle(ctx)
            return

        if state.possible_subcooling:
            q_evap = load_magnitude
            outlet_temp = evap_inlet_temp - q_evap / mass_flow / cp_evap
        else:
            q_evap = max(0.0, mass_flow * cp_evap * (evap_inlet_temp - setpoint))
            outlet_temp = setpoint

        outlet_temp, q_evap = _clamp_to_limit(
            evap_inlet_temp, outlet_temp, q_evap, spec.evap_outlet_temp_low_limit_c, mass_flow, cp_evap
        )
        outlet_temp, q_evap = _clamp_to_limit(
            evap_inlet_temp, outlet_temp, q_evap, evap.outlet_node.temp_min, mass_flow, cp_evap
        )

        for ceiling in (load_magnitude, avail_cap * max_plr):
            if q_evap > ceiling:
                if mass_flow > MASS_FLOW_TOLERANCE:
                    q_evap = ceiling
                    outlet_temp = evap_inlet_temp - q_evap / mass_flow / cp_evap
                else:
                    q_evap = 0.0
                    outlet_temp = evap_inlet_temp

        plr = max(0.0, min(q_evap / avail_cap, max_plr))

    if sensor_active and mass_flow > 0.0:
        variable_flow = spec.flow_mode == FlowMode.LEAVING_SETPOINT_MODULATED and not evap.flow_locked
        outlet_temp, faulty_flow, q_evap = ctx.sensor_fault.apply(
            state.sensor_offset,
            evap_inlet_temp,
            outlet_temp,
            mass_flow,
            cp_evap,
            variable_flow,
            spec.design_evap_mass_flow_kg_s,
        )
        if variable_flow:
            faulty_flow = evap.request_flow(faulty_flow)
        mass_flow = faulty_flow
        plr = max(0.0, min(q_evap / avail_cap, max_plr))

    state.evap_mass_flow = mass_flow
    state.evap_outlet_temp = outlet_temp
    state.q_evaporator = q_evap

    # Cycling below MinPLR, false loading below the unloading floor
    cycling = 1.0
    if plr < spec.min_part_load_ratio:
        cycling = min(1.0, plr / spec.min_part_load_ratio)
    state.cycling_ratio = cycling
    plr = max(plr, spec.min_unloading_ratio)
    state.part_load_ratio = plr

    false_load = avail_cap * plr * cycling - q_evap
    state.false_load_rate = false_load if false_load >= SMALL_LOAD else 0.0

    state.eir_ft = max(0.0, ctx.curves.value(spec.eir_ft_curve, outlet_temp, cond_temp))

    if spec.part_load_curve_type == PartLoadCurveType.LEAVING_CONDENSER_TEMPERATURE:
        eir_fplr = ctx.curves.value(spec.eir_fplr_curve, cond_temp, plr)
    else:
        lift_ref = spec.reference_lift_c
        if lift_ref <= 0.0:
            lift_ref = ChillerDefaults.FALLBACK_REFERENCE_LIFT
        lift = cond_temp - outlet_temp
        t_dev = abs(outlet_temp - spec.reference_evap_outlet_temp_c)
        eir_fplr = ctx.curves.value(spec.eir_fplr_curve, lift / lift_ref, plr, t_dev / lift_ref)
    state.eir_fplr = max(0.0, eir_fplr)

    if ref_cop <= 0.0:
        ref_cop = ChillerDefaults.FALLBACK_COP

    state.power = (avail_cap / ref_cop) * state.eir_fplr * state.eir_ft * cycling
    state.q_condenser = (
        state.power * spec.comp_power_to_condenser_frac + state.q_evaporator + state.false_load_rate
    )

    if state.cond_mass_flow > MASS_FLOW_TOLERANCE:
        cp_cond = cond.loop.specific_heat(state.cond_inlet_temp)
        if spec.heat_recovery_active and ctx.heat_rec is not None:
            result = split_heat_recovery(
                spec,
                ctx.heat_rec,
                state.q_condenser,
                state.cond_mass_flow,
                state.cond_inlet_temp,
                cp_cond,
                ctx.sim,
                ctx.heat_rec_setpoint_node,
                ctx.heat_rec_inlet_limit,
            )
            state.q_condenser = result.condenser_heat
            state.q_heat_recovery = result.heat_recovered
            state.heat_rec_inlet_temp = result.inlet_temp
            state.heat_rec_outlet_temp = result.outlet_temp
            state.heat_rec_mass_flow = result.mass_flow
        state.cond_outlet_temp = state.q_condenser / state.cond_mass_flow / cp_cond + state.cond_inlet_temp
    else:
        raise CondenserFlowError(
            f"{spec.name}: condenser mass flow rate is {state.cond_mass_flow:.3g} kg/s "
            f"with the chiller running (load {ctx.load:.1f} W). Check the condenser loop "
            f"availability and design flow"
        )
