"""
Tests for the split of condenser heat between condenser and heat-recovery loops.
"""

import pytest

from chiller_plant.components.thermal.chiller_state import LaggedCondenserTemps
from chiller_plant.components.thermal.eir_performance import evaluate_performance, split_heat_recovery
from chiller_plant.config.models import HeatRecoverySpec
from chiller_plant.core.context import SimulationContext
from chiller_plant.core.node import PlantLoop, PlantNode, make_connection
from chiller_plant.models.schedules import ConstantSchedule

TOTAL_HEAT = 354545.45
COND_FLOW = 40.0
COND_INLET = 29.4


@pytest.fixture
def heat_rec():
    connection = make_connection(PlantLoop("hw"), "hr", inlet_temp=25.0, max_avail=10.0)
    connection.inlet_node.mass_flow_rate = 10.0
    return connection


def _split(spec, heat_rec, **kwargs):
    cp_cond = PlantLoop("cw").specific_heat(COND_INLET)
    return split_heat_recovery(
        spec, heat_rec, TOTAL_HEAT, COND_FLOW, COND_INLET, cp_cond, SimulationContext(), **kwargs
    )


def test_blended_split_conserves_heat(heat_recovery_spec, heat_rec):
    result = _split(heat_recovery_spec, heat_rec)

    assert result.heat_recovered > 0.0
    assert result.heat_recovered <= heat_recovery_spec.heat_recovery_capacity_limit_w
    assert result.condenser_heat + result.heat_recovered == pytest.approx(TOTAL_HEAT)
    cp_hr = heat_rec.loop.specific_heat(25.0)
    assert result.outlet_temp == pytest.approx(25.0 + result.heat_recovered / (10.0 * cp_hr))


def test_hot_recovery_inlet_recovers_nothing(heat_recovery_spec, heat_rec):
    """Recovery water hotter than the blended condenser outlet takes no heat."""
    heat_rec.inlet_node.temp = 40.0
    result = _split(heat_recovery_spec, heat_rec)

    assert result.heat_recovered == 0.0
    assert result.condenser_heat == pytest.approx(TOTAL_HEAT)
    assert result.outlet_temp == 40.0


def test_recovery_limited_to_bundle_capacity(make_spec, heat_rec):
    spec = make_spec(heat_recovery=HeatRecoverySpec(design_mass_flow_kg_s=10.0, capacity_fraction=0.1))
    result = _split(spec, heat_rec)
    limit = 0.1 * (500000.0 + 500000.0 / 5.5)

    assert spec.heat_recovery_capacity_limit_w == pytest.approx(limit)
    assert result.heat_recovered == pytest.approx(limit)
    assert result.condenser_heat == pytest.approx(TOTAL_HEAT - limit)


def test_recovery_stops_above_inlet_high_limit(heat_recovery_spec, heat_rec):
    result = _split(heat_recovery_spec, heat_rec, inlet_limit=ConstantSchedule(20.0))

    assert result.heat_recovered == 0.0
    assert result.outlet_temp == 25.0
    assert result.condenser_heat == pytest.approx(TOTAL_HEAT)


def test_setpoint_tracking(heat_recovery_spec, heat_rec):
    heat_rec.inlet_node.temp = 40.0
    setpoint = PlantNode("hw_sp", temp_setpoint=45.0)
    result = _split(heat_recovery_spec, heat_rec, setpoint_node=setpoint)
    cp_hr = heat_rec.loop.specific_heat(40.0)

    assert result.heat_recovered == pytest.approx(10.0 * cp_hr * 5.0)
    assert result.outlet_temp == pytest.approx(45.0)


def test_setpoint_tracking_stops_above_inlet_high_limit(heat_recovery_spec, heat_rec):
    heat_rec.inlet_node.temp = 40.0
    setpoint = PlantNode("hw_sp", temp_setpoint=45.0)
    result = _split(heat_recovery_spec, heat_rec, setpoint_node=setpoint, inlet_limit=ConstantSchedule(35.0))

    assert result.heat_recovered == 0.0
    assert result.outlet_temp == 40.0
    assert result.condenser_heat == pytest.approx(TOTAL_HEAT)


def test_setpoint_tracking_never_exceeds_total_heat(heat_recovery_spec, heat_rec):
    heat_rec.inlet_node.temp = 10.0
    setpoint = PlantNode("hw_sp", temp_setpoint=60.0)
    result = _split(heat_recovery_spec, heat_rec, setpoint_node=setpoint)

    assert result.heat_recovered <= TOTAL_HEAT
    assert result.condenser_heat >= 0.0


def test_zero_recovery_flow(heat_recovery_spec, heat_rec):
    heat_rec.inlet_node.mass_flow_rate = 0.0
    result = _split(heat_recovery_spec, heat_rec)

    assert result.heat_recovered == 0.0
    assert result.outlet_temp == 25.0


def test_evaluation_with_heat_recovery_reduces_condenser_heat(heat_recovery_spec, make_context, unit_curves):
    ctx = make_context(heat_recovery_spec, unit_curves, heat_rec_inlet=25.0)
    evaluate_performance(ctx, 32.0)
    state = ctx.state
    cp_cond = ctx.cond.loop.specific_heat(29.4)

    assert state.q_heat_recovery > 0.0
    assert state.q_condenser + state.q_heat_recovery == pytest.approx(state.power + state.q_evaporator)
    assert state.cond_outlet_temp == pytest.approx(29.4 + state.q_condenser / (40.0 * cp_cond))
    assert state.heat_rec_outlet_temp > 25.0


def test_curves_see_lagged_blended_temperature(heat_recovery_spec, make_context, unit_curves):
    lagged = LaggedCondenserTemps(
        q_heat_recovery=100000.0, q_condenser=300000.0,
        heat_rec_outlet_temp=40.0, cond_outlet_temp=32.0,
    )
    ctx = make_context(heat_recovery_spec, unit_curves, lagged=lagged)
    evaluate_performance(ctx, 30.0)

    assert ctx.state.cond_temp_for_curves == pytest.approx((100000.0 * 40.0 + 300000.0 * 32.0) / 400000.0)


def test_curves_use_assumed_temperature_without_history(heat_recovery_spec, make_context, unit_curves):
    ctx = make_context(heat_recovery_spec, unit_curves)
    evaluate_performance(ctx, 30.0)

    assert ctx.state.cond_temp_for_curves == 30.0
