"""
Pytest configuration and fixtures for chiller_plant testing.

The synthetic curves make the chiller easy to reason about by hand:
CAPFT and EIRFT are identically 1 and EIRFPLR equals the part load ratio,
so power is Q_ref / COP_ref * PLR.
"""

import pytest

from chiller_plant.config.models import ChillerSpec, HeatRecoverySpec
from chiller_plant.core.context import SimulationContext
from chiller_plant.core.node import PlantLoop, PlantNode, make_connection
from chiller_plant.components.thermal.eir_performance import EvaluationContext
from chiller_plant.components.thermal.chiller_state import ChillerState, ChillerDiagnostics
from chiller_plant.models.curves import CurveDomain, CurveManager, BiquadraticCurve
from chiller_plant.reporting.diagnostics import DiagnosticsSink


def pytest_configure(config):
    """Configure pytest settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that build a plant from a configuration file"
    )


REF_CAP = 500000.0
REF_COP = 5.5
DESIGN_EVAP_FLOW = 30.0
DESIGN_COND_FLOW = 40.0
SETPOINT = 6.67


def build_unit_curves() -> CurveManager:
    """CAPFT = 1, EIRFT = 1, EIRFPLR(T, PLR) = PLR."""
    curves = CurveManager()
    temp_domain = CurveDomain(x_min=0.0, x_max=20.0, y_min=10.0, y_max=50.0)
    curves.register(BiquadraticCurve("CAP-UNIT", [1.0, 0.0, 0.0, 0.0, 0.0, 0.0], temp_domain))
    curves.register(BiquadraticCurve("EIR-UNIT", [1.0, 0.0, 0.0, 0.0, 0.0, 0.0], temp_domain))
    curves.register(BiquadraticCurve(
        "PLR-LINEAR",
        [0.0, 0.0, 0.0, 1.0, 0.0, 0.0],
        CurveDomain(x_min=10.0, x_max=50.0, y_min=0.0, y_max=1.0),
    ))
    return curves


def build_spec(**overrides) -> ChillerSpec:
    params = dict(
        name="CH-TEST",
        reference_capacity_w=REF_CAP,
        reference_cop=REF_COP,
        cap_ft_curve="CAP-UNIT",
        eir_ft_curve="EIR-UNIT",
        eir_fplr_curve="PLR-LINEAR",
        design_evap_mass_flow_kg_s=DESIGN_EVAP_FLOW,
        design_cond_mass_flow_kg_s=DESIGN_COND_FLOW,
    )
    params.update(overrides)
    return ChillerSpec(**params)


def build_context(
    spec: ChillerSpec,
    curves,
    load: float = -300000.0,
    run_flag: bool = True,
    evap_inlet: float = 12.0,
    cond_inlet: float = 29.4,
    heat_rec_inlet: float = 40.0,
    **kwargs
) -> EvaluationContext:
    """Evaluation context with both loops able to deliver the design flows."""
    chw = PlantLoop("chw", setpoint_node=PlantNode("chw_sp", temp_setpoint=SETPOINT))
    cw = PlantLoop("cw")
    evap = make_connection(chw, "evap", inlet_temp=evap_inlet, max_avail=spec.design_evap_mass_flow_kg_s)
    cond = make_connection(cw, "cond", inlet_temp=cond_inlet, max_avail=spec.design_cond_mass_flow_kg_s)
    evap.inlet_node.mass_flow_rate = spec.design_evap_mass_flow_kg_s
    cond.inlet_node.mass_flow_rate = spec.design_cond_mass_flow_kg_s

    heat_rec = kwargs.pop("heat_rec", None)
    if heat_rec is None and spec.heat_recovery_active:
        hw = PlantLoop("hw")
        flow = spec.heat_recovery.design_mass_flow_kg_s
        heat_rec = make_connection(hw, "hr", inlet_temp=heat_rec_inlet, max_avail=flow)
        heat_rec.inlet_node.mass_flow_rate = flow

    return EvaluationContext(
        spec=spec,
        state=ChillerState(),
        curves=curves,
        evap=evap,
        cond=cond,
        load=load,
        run_flag=run_flag,
        sim=kwargs.pop("sim", SimulationContext()),
        diagnostics=ChillerDiagnostics(),
        sink=kwargs.pop("sink", DiagnosticsSink("test")),
        heat_rec=heat_rec,
        **kwargs
    )


@pytest.fixture
def unit_curves():
    return build_unit_curves()


@pytest.fixture
def spec():
    return build_spec()


@pytest.fixture
def heat_recovery_spec():
    return build_spec(
        name="CH-HR",
        heat_recovery=HeatRecoverySpec(design_mass_flow_kg_s=10.0, capacity_fraction=0.5),
    )


@pytest.fixture
def ctx(spec, unit_curves):
    return build_context(spec, unit_curves)


@pytest.fixture
def make_spec():
    """Factory for specs with overridden fields."""
    return build_spec


@pytest.fixture
def make_context():
    """Factory for evaluation contexts."""
    return build_context
