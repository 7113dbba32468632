"""
Tests for the ReformulatedEIRChiller component lifecycle.
"""

import json
import logging

import pytest

from chiller_plant.components.thermal.chiller import ReformulatedEIRChiller
from chiller_plant.config.models import HeatRecoverySpec
from chiller_plant.core.component_registry import ComponentRegistry
from chiller_plant.core.enums import FlowMode, SolverPath
from chiller_plant.core.exceptions import (
    ComponentInitializationError,
    ComponentNotInitializedError,
    CondenserFlowError,
    ConfigurationError,
)
from chiller_plant.core.node import PlantLoop, PlantNode, make_connection
from chiller_plant.models.curves import BiquadraticCurve, ChillerPartLoadWithLiftCurve, CurveDomain
from chiller_plant.models.faults import FoulingFault


def make_chiller(spec, curves, chw_setpoint=6.67, with_heat_rec=False, **kwargs):
    setpoint_node = PlantNode("chw_sp", temp_setpoint=chw_setpoint) if chw_setpoint is not None else None
    chw = PlantLoop("chw", setpoint_node=setpoint_node)
    evap = make_connection(chw, "evap", inlet_temp=12.0, max_avail=spec.design_evap_mass_flow_kg_s)
    cond = make_connection(PlantLoop("cw"), "cond", inlet_temp=29.4, max_avail=spec.design_cond_mass_flow_kg_s)
    heat_rec = None
    if with_heat_rec:
        heat_rec = make_connection(PlantLoop("hw"), "hr", inlet_temp=25.0, max_avail=10.0)
    return ReformulatedEIRChiller(spec, evap=evap, cond=cond, heat_rec=heat_rec, curves=curves, **kwargs)


class TestReformulatedEIRChiller:
    """Lifecycle and reporting of a single chiller."""

    @pytest.fixture
    def chiller(self, spec, unit_curves):
        chiller = make_chiller(spec, unit_curves)
        chiller.initialize(dt=1.0, registry=None)
        return chiller

    def test_simulate_reference_point(self, chiller):
        load = chiller.simulate(-300000.0, run_flag=True)
        expected_power = 500000.0 / 5.5 * 0.6

        assert load == -300000.0
        assert chiller.last_outcome.path == SolverPath.SOLVED
        assert chiller.records.power == pytest.approx(expected_power)
        assert chiller.records.energy == pytest.approx(expected_power * 3600.0)
        assert chiller.records.evap_energy == pytest.approx(300000.0 * 3600.0)
        assert chiller.records.actual_cop == pytest.approx(300000.0 / expected_power)
        assert chiller.evap.outlet_node.temp == pytest.approx(chiller.state.evap_outlet_temp)
        assert chiller.cond.outlet_node.temp == pytest.approx(chiller.state.cond_outlet_temp)
        assert chiller.evap.inlet_node.mass_flow_rate_request == pytest.approx(30.0)

    def test_simulate_idle_passes_inlet_temperatures(self, chiller):
        chiller.simulate(0.0, run_flag=True)

        assert chiller.last_outcome.path == SolverPath.IDLE
        assert chiller.evap.inlet_node.mass_flow_rate == 0.0
        assert chiller.evap.outlet_node.temp == 12.0
        assert chiller.cond.outlet_node.temp == 29.4
        assert chiller.records.power == 0.0
        assert chiller.records.actual_cop == 0.0

    def test_step_uses_demand(self, chiller):
        chiller.set_demand(-250000.0, run_flag=True)
        chiller.step(t=3.0)

        assert chiller.sim.time_hours == 3.0
        assert chiller.state.q_evaporator == pytest.approx(250000.0)

    def test_step_keeps_demand_separate_from_clamped_load(self, chiller):
        chiller.set_demand(-800000.0, run_flag=True)
        chiller.step(t=0.0)
        chiller.step(t=1.0)
        water_side = 30.0 * chiller.evap.loop.specific_heat(12.0) * (12.0 - 6.67)

        assert chiller.load == -800000.0
        assert chiller.delivered_load == pytest.approx(-water_side)
        state = chiller.get_state()
        assert state["load_w"] == -800000.0
        assert state["delivered_load_w"] == pytest.approx(-water_side)

    def test_step_before_initialize_raises(self, spec, unit_curves):
        chiller = make_chiller(spec, unit_curves)

        with pytest.raises(ComponentNotInitializedError):
            chiller.step(0.0)

    def test_get_state_is_json_serialisable(self, chiller):
        chiller.simulate(-300000.0, run_flag=True)
        state = chiller.get_state()

        assert state["component_id"] == "CH-TEST"
        assert state["solver"]["path"] == "SOLVED"
        assert state["solver"]["root_status"] == "CONVERGED"
        assert state["diagnostics"]["no_bracket"] == 0
        json.dumps(state)

    def test_load_range(self, chiller):
        assert chiller.get_load_range() == pytest.approx((50000.0, 500000.0, 500000.0))

    def test_condenser_flow_error_propagates(self, spec, unit_curves):
        chiller = make_chiller(spec, unit_curves)
        chiller.cond.inlet_node.mass_flow_rate_max_avail = 0.0
        chiller.initialize(dt=1.0, registry=None)

        with pytest.raises(CondenserFlowError):
            chiller.simulate(-300000.0, run_flag=True)

    def test_heat_recovery_records_and_lagged_values(self, heat_recovery_spec, unit_curves):
        chiller = make_chiller(heat_recovery_spec, unit_curves, with_heat_rec=True)
        chiller.initialize(dt=0.25, registry=None)
        chiller.simulate(-300000.0, run_flag=True)

        assert chiller.heat_rec.inlet_node.mass_flow_rate == pytest.approx(10.0)
        assert chiller.records.q_heat_recovery > 0.0
        assert chiller.records.heat_rec_energy == pytest.approx(chiller.records.q_heat_recovery * 900.0)
        assert chiller.heat_rec.outlet_node.temp == pytest.approx(chiller.state.heat_rec_outlet_temp)
        assert chiller.lagged.q_heat_recovery == chiller.state.q_heat_recovery
        assert chiller.lagged.cond_outlet_temp == chiller.state.cond_outlet_temp


class TestChillerInitialization:
    """Curve checks and resource resolution at initialization."""

    def test_requires_curves(self, spec):
        chiller = make_chiller(spec, curves=None)

        with pytest.raises(ConfigurationError, match="no curve evaluator"):
            chiller.initialize(dt=1.0, registry=None)

    def test_resolves_resources_from_registry(self, spec, unit_curves):
        registry = ComponentRegistry()
        registry.register_resource("curves", unit_curves)
        registry.register_resource("faults", {"foul": FoulingFault("foul", 0.9)})
        chiller = make_chiller(spec.model_copy(update={"fouling_fault": "foul"}), curves=None)
        registry.register("CH-TEST", chiller, component_type="chiller")

        registry.initialize_all(dt=1.0)

        assert chiller.curves is unit_curves
        assert chiller.fouling_fault.fouling_factor == 0.9
        assert registry.get_by_type("chiller") == [chiller]

    def test_reference_curve_deviation_warns(self, make_spec, unit_curves, caplog):
        unit_curves.register(BiquadraticCurve(
            "CAP-HIGH", [1.2, 0.0, 0.0, 0.0, 0.0, 0.0],
            CurveDomain(x_min=0.0, x_max=20.0, y_min=10.0, y_max=50.0),
        ))
        chiller = make_chiller(make_spec(cap_ft_curve="CAP-HIGH"), unit_curves)

        with caplog.at_level(logging.WARNING):
            chiller.initialize(dt=1.0, registry=None)

        assert "not equal to 1.0" in caplog.text
        assert "CAP-HIGH" in caplog.text

    def test_invalid_part_load_range_raises(self, make_spec, unit_curves):
        unit_curves.register(BiquadraticCurve(
            "PLR-WIDE", [0.0, 0.0, 0.0, 1.0, 0.0, 0.0],
            CurveDomain(x_min=10.0, x_max=50.0, y_min=0.0, y_max=1.2),
        ))
        chiller = make_chiller(make_spec(eir_fplr_curve="PLR-WIDE"), unit_curves)

        with pytest.raises(ConfigurationError, match="maximum value of PLR"):
            chiller.initialize(dt=1.0, registry=None)

    def test_negative_part_load_curve_raises(self, make_spec, unit_curves):
        unit_curves.register(BiquadraticCurve(
            "PLR-OFFSET", [-0.05, 0.0, 0.0, 1.0, 0.0, 0.0],
            CurveDomain(x_min=10.0, x_max=50.0, y_min=0.0, y_max=1.0),
        ))
        chiller = make_chiller(make_spec(eir_fplr_curve="PLR-OFFSET"), unit_curves)

        with pytest.raises(ConfigurationError, match="negative"):
            chiller.initialize(dt=1.0, registry=None)

    def test_part_load_curve_dimension_mismatch(self, make_spec, unit_curves):
        unit_curves.register(ChillerPartLoadWithLiftCurve(
            "PLR-LIFT", [0.0] * 12,
            CurveDomain(x_min=0.0, x_max=2.0, y_min=0.0, y_max=1.0, z_min=0.0, z_max=1.0),
        ))
        chiller = make_chiller(make_spec(eir_fplr_curve="PLR-LIFT"), unit_curves)

        with pytest.raises(ConfigurationError, match="independent variables"):
            chiller.initialize(dt=1.0, registry=None)

    def test_heat_recovery_needs_connection(self, make_spec, unit_curves):
        spec = make_spec(heat_recovery=HeatRecoverySpec(design_mass_flow_kg_s=5.0))
        chiller = make_chiller(spec, unit_curves)

        with pytest.raises(ConfigurationError, match="heat-recovery loop"):
            chiller.initialize(dt=1.0, registry=None)

    def test_missing_setpoint_for_modulated_flow_warns(self, make_spec, unit_curves, caplog):
        spec = make_spec(flow_mode=FlowMode.LEAVING_SETPOINT_MODULATED)
        chiller = make_chiller(spec, unit_curves, chw_setpoint=None)

        with caplog.at_level(logging.WARNING):
            chiller.initialize(dt=1.0, registry=None)

        assert "no evaporator outlet setpoint" in caplog.text

    def test_registry_wraps_initialization_failure(self, spec):
        registry = ComponentRegistry()
        registry.register("CH-TEST", make_chiller(spec, curves=None))

        with pytest.raises(ComponentInitializationError, match="CH-TEST"):
            registry.initialize_all(dt=1.0)
