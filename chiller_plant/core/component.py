"""
Core component abstractions for the chiller plant simulation.

This module defines the Component abstract base class that all simulation
components inherit from, ensuring uniform lifecycle management and state
reporting.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, TYPE_CHECKING

from chiller_plant.core.exceptions import ComponentNotInitializedError

if TYPE_CHECKING:
    from chiller_plant.core.component_registry import ComponentRegistry


class Component(ABC):
    """
    Abstract base class for all simulation components.

    Each component implements a standardized lifecycle:

    1. initialize(): Setup with timestep and registry access
    2. step(): Execute a single plant call
    3. get_state(): Serialize state for monitoring and result export

    Attributes:
        component_id: Unique identifier set during registry registration
        dt: Simulation timestep in hours
        _registry: Reference to ComponentRegistry for dependency access
        _initialized: Flag tracking initialization status
    """

    def __init__(self, config: Any = None, **kwargs) -> None:
        """
        Initialize component with default state.

        Args:
            config: Optional component configuration object (Pydantic model)
            **kwargs: Additional keyword arguments:
                - component_id: Optional explicit ID (for tests/manual wiring)
        """
        component_id = kwargs.pop("component_id", None)

        self.component_id: Optional[str] = None
        self.dt: float = 0.0
        self._registry: Optional['ComponentRegistry'] = None
        self._initialized: bool = False
        self.config = config

        if component_id is not None:
            self.set_component_id(component_id)

    @abstractmethod
    def initialize(self, dt: float, registry: 'ComponentRegistry') -> None:
        """
        Initialize component before simulation starts.

        Called once before the first plant call. Components should store the
        timestep and registry, resolve their collaborators and validate
        their configuration.

        Args:
            dt: Simulation timestep in hours
            registry: ComponentRegistry for accessing shared resources

        Raises:
            ComponentInitializationError: If initialization fails
        """
        self.dt = dt
        self._registry = registry
        self._initialized = True

    @abstractmethod
    def step(self, t: float) -> None:
        """
        Execute single plant call.

        Args:
            t: Current simulation time in hours

        Raises:
            ComponentNotInitializedError: If called before initialize()
            ComponentStepError: If execution fails
        """
        if not self._initialized:
            raise ComponentNotInitializedError(
                f"Component {self.component_id} not initialized before step()"
            )

    @abstractmethod
    def get_state(self) -> Dict[str, Any]:
        """
        Return current component state for monitoring/export.

        Returns:
            Dictionary mapping state variable names to current values.
            All values must be JSON-serializable (primitives, lists, dicts).
        """
        return {
            "component_id": self.component_id,
            "initialized": self._initialized
        }

    def set_component_id(self, component_id: str) -> None:
        """
        Set unique component identifier (called by ComponentRegistry).

        Args:
            component_id: Unique identifier for registry lookup
        """
        self.component_id = component_id

    def validate_initialized(self) -> None:
        """
        Validate component has been initialized.

        Raises:
            ComponentNotInitializedError: If initialize() not called
        """
        if not self._initialized:
            raise ComponentNotInitializedError(
                f"Component {self.component_id} must be initialized before use"
            )
