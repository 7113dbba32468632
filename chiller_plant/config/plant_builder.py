"""
PlantBuilder: Factory for configuration-driven chiller plant assembly.

Constructs the plant loops, performance curves, faults and chillers from a
PlantConfig and registers them in a ComponentRegistry.

Shared resources registered alongside the components:
    - ``curves``: CurveManager with every configured curve.
    - ``loops``: Dict of PlantLoop by loop name.
    - ``faults``: Dict of fault adapters by fault name.
    - ``diagnostics``: DiagnosticsSink shared by all chillers.
    - ``simulation_context``: SimulationContext owned by the driver.
"""

from pathlib import Path
from typing import Dict, Union
import logging

from chiller_plant.core.component_registry import ComponentRegistry
from chiller_plant.core.context import SimulationContext
from chiller_plant.core.exceptions import ConfigurationError
from chiller_plant.core.node import PlantLoop, PlantNode, make_connection
from chiller_plant.config.models import PlantConfig, ChillerConfig
from chiller_plant.config.loaders import load_plant_config, ConfigLoader
from chiller_plant.components.thermal.chiller import ReformulatedEIRChiller
from chiller_plant.models.curves import CurveDomain, CurveManager, build_curve
from chiller_plant.models.faults import FoulingFault, SupplyTempSensorFault
from chiller_plant.models.schedules import schedule_from_config
from chiller_plant.reporting.diagnostics import DiagnosticsSink

logger = logging.getLogger(__name__)

Fault = Union[FoulingFault, SupplyTempSensorFault]


class PlantBuilder:
    """
    Factory for building chiller plants from configuration.

    Example:
        # From configuration file
        plant = PlantBuilder.from_file("configs/chiller_baseline.yaml")
        registry = plant.registry
        registry.initialize_all(dt=1.0)

        # From PlantConfig object
        plant = PlantBuilder.from_config(config)
    """

    def __init__(self, config: PlantConfig):
        """
        Initialize PlantBuilder.

        Args:
            config: Validated PlantConfig instance
        """
        self.config = config
        self.registry = ComponentRegistry()
        self.sim = SimulationContext(dt_hours=config.timestep_hours)
        self.curves = CurveManager()
        self.loops: Dict[str, PlantLoop] = {}
        self.faults: Dict[str, Fault] = {}
        self.sink = DiagnosticsSink(config.name)

    @classmethod
    def from_file(cls, config_path: Path | str) -> 'PlantBuilder':
        """
        Build plant from configuration file.

        Args:
            config_path: Path to YAML/JSON configuration file

        Returns:
            PlantBuilder instance with populated registry
        """
        config = load_plant_config(config_path)
        builder = cls(config)
        builder.build()
        return builder

    @classmethod
    def from_config(cls, config: PlantConfig) -> 'PlantBuilder':
        """Build plant from an already validated PlantConfig object."""
        builder = cls(config)
        builder.build()
        return builder

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'PlantBuilder':
        """
        Build plant from configuration dictionary.

        The dictionary goes through the same schema and model validation as
        a configuration file.
        """
        config = ConfigLoader().dict_to_config(config_dict)
        builder = cls(config)
        builder.build()
        return builder

    def build(self) -> None:
        """Build complete plant system and populate registry."""
        logger.info(f"Building plant: {self.config.name}")

        self._build_curves()
        self._build_loops()
        self._build_faults()

        self.registry.register_resource("simulation_context", self.sim)
        self.registry.register_resource("curves", self.curves)
        self.registry.register_resource("loops", self.loops)
        self.registry.register_resource("faults", self.faults)
        self.registry.register_resource("diagnostics", self.sink)

        for chiller_config in self.config.chillers:
            self._build_chiller(chiller_config)

        logger.info(f"Plant built successfully: {self.registry.get_component_count()} components registered")

    def _build_curves(self) -> None:
        for curve in self.config.curves:
            domain = CurveDomain(
                x_min=curve.x_min,
                x_max=curve.x_max,
                y_min=curve.y_min,
                y_max=curve.y_max,
                z_min=curve.z_min,
                z_max=curve.z_max,
            )
            self.curves.register(
                build_curve(curve.name, curve.type, curve.coefficients, domain,
                            curve.output_min, curve.output_max)
            )
        logger.debug(f"Registered {len(self.config.curves)} performance curves")

    def _build_loops(self) -> None:
        for loop_config in self.config.loops:
            setpoint_node = None
            if loop_config.setpoint_c is not None or loop_config.setpoint_hi_c is not None:
                setpoint_node = PlantNode(f"{loop_config.name}_setpoint")
                if loop_config.setpoint_c is not None:
                    setpoint_node.temp_setpoint = loop_config.setpoint_c
                if loop_config.setpoint_hi_c is not None:
                    setpoint_node.temp_setpoint_hi = loop_config.setpoint_hi_c
                if loop_config.setpoint_lo_c is not None:
                    setpoint_node.temp_setpoint_lo = loop_config.setpoint_lo_c
            self.loops[loop_config.name] = PlantLoop(
                name=loop_config.name,
                demand_calc_scheme=loop_config.demand_calc_scheme,
                setpoint_node=setpoint_node,
            )

    def _build_faults(self) -> None:
        for fault in self.config.faults:
            availability = schedule_from_config(fault.availability)
            severity = schedule_from_config(fault.severity)
            if fault.type == "fouling":
                self.faults[fault.name] = FoulingFault(
                    name=fault.name,
                    fouling_factor=fault.fouling_factor,
                    availability=availability,
                    severity=severity,
                )
            else:
                self.faults[fault.name] = SupplyTempSensorFault(
                    name=fault.name,
                    offset_schedule=schedule_from_config(fault.offset_c),
                    availability=availability,
                    severity=severity,
                )

        for name, fault in self.faults.items():
            logger.debug(f"Registered fault '{name}' ({type(fault).__name__})")

    def _build_chiller(self, chiller_config: ChillerConfig) -> None:
        spec = chiller_config.spec

        evap = make_connection(
            self.loops[chiller_config.chilled_water_loop],
            f"{spec.name}_evap",
            operation_scheme=chiller_config.operation_scheme,
        )
        if chiller_config.evap_outlet_setpoint_c is not None:
            evap.outlet_node.temp_setpoint = chiller_config.evap_outlet_setpoint_c
            evap.outlet_node.temp_setpoint_hi = chiller_config.evap_outlet_setpoint_c
        cond = make_connection(self.loops[chiller_config.condenser_loop], f"{spec.name}_cond")

        heat_rec = None
        heat_rec_setpoint_node = None
        if chiller_config.heat_recovery_loop is not None:
            heat_rec = make_connection(self.loops[chiller_config.heat_recovery_loop], f"{spec.name}_hr")
            if spec.heat_recovery is not None and spec.heat_recovery.setpoint_node is not None:
                # The recovery tracks the setpoint node of the named loop
                tracked = self.loops.get(spec.heat_recovery.setpoint_node)
                if tracked is None or tracked.setpoint_node is None:
                    raise ConfigurationError(
                        f"{spec.name}: heat recovery setpoint loop '{spec.heat_recovery.setpoint_node}' "
                        f"does not exist or has no setpoint"
                    )
                heat_rec_setpoint_node = tracked.setpoint_node

        chiller = ReformulatedEIRChiller(
            spec,
            evap=evap,
            cond=cond,
            heat_rec=heat_rec,
            heat_rec_setpoint_node=heat_rec_setpoint_node,
            curves=self.curves,
            sink=self.sink,
            sim=self.sim,
        )
        self.registry.register(spec.name, chiller, component_type="chiller")
