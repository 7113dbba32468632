import pytest
from chiller_plant.core.component import Component
from chiller_plant.core.component_registry import ComponentRegistry, DuplicateComponentError
from chiller_plant.core.exceptions import (
    ComponentNotFoundError,
    ComponentNotInitializedError,
    ComponentStepError,
    CondenserFlowError,
)


class MockComponent(Component):
    """Mock component for testing."""

    def __init__(self, fail_with=None):
        super().__init__()
        self.step_count = 0
        self.fail_with = fail_with

    def initialize(self, dt: float, registry: ComponentRegistry) -> None:
        super().initialize(dt, registry)

    def step(self, t: float) -> None:
        super().step(t)
        if self.fail_with is not None:
            raise self.fail_with
        self.step_count += 1

    def get_state(self) -> dict:
        return {**super().get_state(), "step_count": self.step_count}


def test_component_registration():
    """Test basic component registration and lookup."""
    registry = ComponentRegistry()
    component = MockComponent()

    handle = registry.register("CH-1", component, component_type="chiller")

    assert handle == "CH-1"
    retrieved = registry.get("CH-1")
    assert retrieved is component
    assert retrieved.component_id == "CH-1"

    by_type = registry.get_by_type("chiller")
    assert len(by_type) == 1
    assert by_type[0] is component
    assert registry.get_by_type("boiler") == []


def test_duplicate_registration_raises_error():
    registry = ComponentRegistry()
    registry.register("CH-1", MockComponent())

    with pytest.raises(DuplicateComponentError, match="already registered"):
        registry.register("CH-1", MockComponent())


def test_register_rejects_non_components():
    with pytest.raises(TypeError):
        ComponentRegistry().register("CH-1", object())


def test_unknown_component_lookup():
    registry = ComponentRegistry()

    with pytest.raises(ComponentNotFoundError, match="not found"):
        registry.get("missing")
    assert not registry.has("missing")


def test_resources():
    registry = ComponentRegistry()
    registry.register_resource("curves", {"CAPFT": 1})

    assert registry.has_resource("curves")
    assert registry.get_resource("curves") == {"CAPFT": 1}
    with pytest.raises(DuplicateComponentError):
        registry.register_resource("curves", {})
    with pytest.raises(ComponentNotFoundError):
        registry.get_resource("loops")


def test_initialize_and_step_all():
    registry = ComponentRegistry()
    comp1 = MockComponent()
    comp2 = MockComponent()
    registry.register("comp1", comp1)
    registry.register("comp2", comp2)

    registry.initialize_all(dt=1.0)
    registry.step_all(0.0)

    assert comp1.dt == 1.0
    assert comp1.step_count == 1
    assert comp2.step_count == 1


def test_step_all_before_initialize():
    registry = ComponentRegistry()
    registry.register("comp1", MockComponent())

    with pytest.raises(ComponentNotInitializedError):
        registry.step_all(0.0)


def test_step_errors_are_wrapped():
    registry = ComponentRegistry()
    registry.register("comp1", MockComponent(fail_with=ValueError("boom")))
    registry.initialize_all(dt=1.0)

    with pytest.raises(ComponentStepError, match="comp1"):
        registry.step_all(0.0)


def test_condenser_flow_error_is_not_rewrapped():
    registry = ComponentRegistry()
    registry.register("comp1", MockComponent(fail_with=CondenserFlowError("no flow")))
    registry.initialize_all(dt=1.0)

    with pytest.raises(CondenserFlowError, match="no flow"):
        registry.step_all(0.0)


def test_get_all_states():
    registry = ComponentRegistry()
    registry.register("comp1", MockComponent())
    registry.register("comp2", MockComponent())
    registry.initialize_all(dt=1.0)

    states = registry.get_all_states()

    assert set(states) == {"comp1", "comp2"}
    assert states["comp1"]["initialized"] is True
    assert registry.get_component_count() == 2
    assert registry.get_all_ids() == ["comp1", "comp2"]
