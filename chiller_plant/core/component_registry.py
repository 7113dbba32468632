"""
Component registry for dependency injection and lifecycle management.

The ComponentRegistry is the owned collection of chillers (and any other
components) of a plant, providing:
- Component registration and lookup by a stable string handle
- Shared resources (curve manager, plant loops, faults, diagnostics sink)
- Lifecycle coordination (initialize all, step all)
- State aggregation for result export
"""

from typing import Dict, List, Optional, Any
from collections import defaultdict
import logging

from chiller_plant.core.component import Component
from chiller_plant.core.exceptions import (
    ComponentNotInitializedError,
    ComponentInitializationError,
    ComponentStepError,
    DuplicateComponentError,
    ComponentNotFoundError
)

logger = logging.getLogger(__name__)


class ComponentRegistry:
    """
    Central registry for component management and orchestration.

    Example:
        registry = ComponentRegistry()
        registry.register_resource("curves", curve_manager)
        registry.register("CH-1", chiller, component_type="chiller")

        registry.initialize_all(dt=1.0)
        registry.step_all(0.0)
        state = registry.get_all_states()
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._components: Dict[str, Component] = {}
        self._components_by_type: Dict[str, List[Component]] = defaultdict(list)
        self._resources: Dict[str, Any] = {}
        self._initialized: bool = False

    def register(
        self,
        component_id: str,
        component: Component,
        component_type: Optional[str] = None
    ) -> str:
        """
        Register a component in the registry.

        Args:
            component_id: Unique identifier for component lookup
            component: Component instance to register
            component_type: Optional type tag for filtering (e.g., "chiller")

        Returns:
            The handle under which the component is registered.

        Raises:
            DuplicateComponentError: If component_id already registered
            TypeError: If component doesn't inherit from Component
        """
        if component_id in self._components:
            raise DuplicateComponentError(f"Component ID '{component_id}' already registered")

        if not isinstance(component, Component):
            raise TypeError(
                f"Component must inherit from Component ABC, got {type(component)}"
            )

        component.set_component_id(component_id)
        self._components[component_id] = component

        if component_type:
            self._components_by_type[component_type].append(component)

        logger.debug(f"Registered component '{component_id}' (type: {component_type})")
        return component_id

    def get(self, component_id: str) -> Component:
        """
        Retrieve component by ID.

        Raises:
            ComponentNotFoundError: If component_id not found
        """
        if component_id not in self._components:
            raise ComponentNotFoundError(
                f"Component '{component_id}' not found in registry. "
                f"Available: {list(self._components.keys())}"
            )
        return self._components[component_id]

    def get_by_type(self, component_type: str) -> List[Component]:
        """Retrieve all components registered with a type tag (empty if none)."""
        return self._components_by_type.get(component_type, [])

    def has(self, component_id: str) -> bool:
        """Check if component ID exists in registry."""
        return component_id in self._components

    def register_resource(self, name: str, resource: Any) -> None:
        """
        Register a shared non-component resource (curves, loops, faults).

        Raises:
            DuplicateComponentError: If name already registered
        """
        if name in self._resources:
            raise DuplicateComponentError(f"Resource '{name}' already registered")
        self._resources[name] = resource
        logger.debug(f"Registered resource '{name}' ({type(resource).__name__})")

    def get_resource(self, name: str) -> Any:
        """
        Retrieve a shared resource.

        Raises:
            ComponentNotFoundError: If name not found
        """
        if name not in self._resources:
            raise ComponentNotFoundError(
                f"Resource '{name}' not found in registry. "
                f"Available: {list(self._resources.keys())}"
            )
        return self._resources[name]

    def has_resource(self, name: str) -> bool:
        return name in self._resources

    def initialize_all(self, dt: float) -> None:
        """
        Initialize all registered components in registration order.

        Args:
            dt: Simulation timestep in hours

        Raises:
            ComponentInitializationError: If any component initialization fails
        """
        logger.info(f"Initializing {len(self._components)} components with dt={dt}h")

        failed_components = []

        for component_id, component in self._components.items():
            try:
                component.initialize(dt, self)
                logger.debug(f"Initialized '{component_id}'")
            except Exception as e:
                logger.error(f"Failed to initialize '{component_id}': {e}")
                failed_components.append((component_id, e))

        if failed_components:
            error_msg = "\n".join(
                f"  - {comp_id}: {error}"
                for comp_id, error in failed_components
            )
            raise ComponentInitializationError(
                f"Failed to initialize components:\n{error_msg}"
            )

        self._initialized = True
        logger.info("All components initialized successfully")

    def step_all(self, t: float) -> None:
        """
        Execute one plant call on all registered components, in registration order.

        Raises:
            ComponentNotInitializedError: If initialize_all() not called first
            ComponentStepError: If any component step fails
        """
        if not self._initialized:
            raise ComponentNotInitializedError(
                "Registry not initialized. Call initialize_all() first."
            )

        for component_id, component in self._components.items():
            try:
                component.step(t)
            except ComponentStepError:
                logger.error(f"Component '{component_id}' failed at t={t}h")
                raise
            except Exception as e:
                logger.error(f"Component '{component_id}' failed at t={t}h: {e}")
                raise ComponentStepError(
                    f"Component '{component_id}' step failed: {e}"
                ) from e

    def get_all_states(self) -> Dict[str, Dict[str, Any]]:
        """Aggregate state from all components, keyed by component ID."""
        return {
            component_id: component.get_state()
            for component_id, component in self._components.items()
        }

    def get_component_count(self) -> int:
        """Return total number of registered components."""
        return len(self._components)

    def get_all_ids(self) -> List[str]:
        """Return list of all registered component IDs."""
        return list(self._components.keys())
