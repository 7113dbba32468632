"""Custom exception hierarchy for the chiller plant simulation."""


class ChillerPlantError(Exception):
    """Base exception for all chiller_plant errors."""
    pass


class ComponentError(ChillerPlantError):
    """Base exception for component-related errors."""
    pass


class ComponentNotInitializedError(ComponentError):
    """Raised when component method called before initialize()."""
    pass


class ComponentInitializationError(ComponentError):
    """Raised when component initialization fails."""
    pass


class ComponentStepError(ComponentError):
    """Raised when component timestep execution fails."""
    pass


class CondenserFlowError(ComponentStepError):
    """Raised when a running chiller has no condenser water flow."""
    pass


class RegistryError(ChillerPlantError):
    """Base exception for registry errors."""
    pass


class ComponentNotFoundError(RegistryError):
    """Raised when component ID not found in registry."""
    pass


class DuplicateComponentError(RegistryError):
    """Raised when attempting to register duplicate component ID."""
    pass


class ConfigurationError(ChillerPlantError):
    """Raised for configuration loading/validation errors."""
    pass


class CurveNotFoundError(ConfigurationError):
    """Raised when a performance curve id is not known to the curve manager."""
    pass
