"""
Plant nodes and loops seen by a chiller.

A chiller sits on up to three loops (chilled water, condenser water and an
optional heat-recovery loop). Each loop exposes the few things the
performance model needs from the wider plant:

- Resolution of requested mass flow rates against node availability.
- The flow-lock flag set by the outer plant solver.
- The demand calculation scheme and the loop setpoint node.
- Fluid specific heat at a temperature.

Node and loop objects are plain mutable records owned by the plant; the
chiller reads inlet conditions from them and writes outlet conditions back.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from chiller_plant.core.constants import SENSED_NODE_FLAG_VALUE
from chiller_plant.core.enums import DemandCalcScheme, EquipFlowControl, OperationSchemeType
from chiller_plant.optimization.numba_ops import water_specific_heat, water_density

logger = logging.getLogger(__name__)


@dataclass
class PlantNode:
    """
    Fluid state at a point of a plant loop.

    Attributes:
        name: Node identifier.
        temp: Fluid temperature (C).
        mass_flow_rate: Resolved mass flow rate (kg/s).
        mass_flow_rate_max_avail: Maximum flow the loop can deliver (kg/s).
        mass_flow_rate_min_avail: Minimum flow the loop will deliver (kg/s).
        mass_flow_rate_request: Last flow requested by the attached component.
        temp_setpoint: Single setpoint (C), SENSED_NODE_FLAG_VALUE when unset.
        temp_setpoint_hi: Upper deadband setpoint (C).
        temp_setpoint_lo: Lower deadband setpoint (C).
        temp_min: Lowest temperature the loop accepts at this node (C).
    """
    name: str
    temp: float = 20.0
    mass_flow_rate: float = 0.0
    mass_flow_rate_max_avail: float = 0.0
    mass_flow_rate_min_avail: float = 0.0
    mass_flow_rate_request: float = 0.0
    temp_setpoint: float = SENSED_NODE_FLAG_VALUE
    temp_setpoint_hi: float = SENSED_NODE_FLAG_VALUE
    temp_setpoint_lo: float = SENSED_NODE_FLAG_VALUE
    temp_min: float = -999.0

    def setpoint_for(self, scheme: DemandCalcScheme) -> float:
        """Cooling setpoint under the given demand scheme."""
        if scheme == DemandCalcScheme.DUAL_SETPOINT_DEADBAND:
            return self.temp_setpoint_hi
        return self.temp_setpoint

    def has_setpoint(self, scheme: DemandCalcScheme) -> bool:
        return self.setpoint_for(scheme) != SENSED_NODE_FLAG_VALUE


@dataclass
class PlantLoop:
    """
    Flow and fluid-property adapter for one plant loop.

    Example:
        loop = PlantLoop("chw", setpoint_node=PlantNode("chw_sp", temp_setpoint=6.67))
        granted = loop.set_component_flow_rate(25.0, inlet, outlet)
    """
    name: str
    fluid: str = "water"
    demand_calc_scheme: DemandCalcScheme = DemandCalcScheme.SINGLE_SETPOINT
    flow_locked: bool = False
    setpoint_node: Optional[PlantNode] = None

    def set_component_flow_rate(
        self,
        requested: float,
        inlet_node: PlantNode,
        outlet_node: PlantNode
    ) -> float:
        """
        Resolve a component flow request against node availability.

        While the loop is unlocked the request is clamped to the inlet node's
        [min_avail, max_avail] window. Once locked the loop flow is final and
        the node's current flow is returned regardless of the request.

        Args:
            requested: Requested mass flow rate (kg/s).
            inlet_node: Component inlet node.
            outlet_node: Component outlet node.

        Returns:
            Granted mass flow rate (kg/s), never negative.
        """
        inlet_node.mass_flow_rate_request = max(0.0, requested)

        if self.flow_locked:
            granted = max(0.0, inlet_node.mass_flow_rate)
        else:
            granted = min(
                max(requested, inlet_node.mass_flow_rate_min_avail),
                inlet_node.mass_flow_rate_max_avail
            )
            granted = max(0.0, granted)

        inlet_node.mass_flow_rate = granted
        outlet_node.mass_flow_rate = granted
        return granted

    def loop_setpoint(self) -> float:
        """Loop-level cooling setpoint, SENSED_NODE_FLAG_VALUE when no setpoint node."""
        if self.setpoint_node is None:
            return SENSED_NODE_FLAG_VALUE
        return self.setpoint_node.setpoint_for(self.demand_calc_scheme)

    def specific_heat(self, temp_c: float) -> float:
        """Fluid specific heat in J/(kg*K)."""
        return water_specific_heat(temp_c)

    def density(self, temp_c: float) -> float:
        """Fluid density in kg/m3."""
        return water_density(temp_c)


@dataclass
class LoopConnection:
    """
    A chiller's attachment to one loop: the loop plus inlet/outlet nodes.

    Attributes:
        loop: Loop adapter.
        inlet_node: Component inlet node.
        outlet_node: Component outlet node.
        flow_control: Branch flow control type.
        operation_scheme: Operation scheme currently owning the branch.
    """
    loop: PlantLoop
    inlet_node: PlantNode
    outlet_node: PlantNode
    flow_control: EquipFlowControl = EquipFlowControl.ACTIVE
    operation_scheme: OperationSchemeType = OperationSchemeType.LOAD_RANGE_BASED

    @property
    def flow_locked(self) -> bool:
        return self.loop.flow_locked

    def request_flow(self, requested: float) -> float:
        """Request a flow through this connection, returning the granted rate."""
        return self.loop.set_component_flow_rate(requested, self.inlet_node, self.outlet_node)


def make_connection(
    loop: PlantLoop,
    prefix: str,
    inlet_temp: float = 20.0,
    max_avail: float = 0.0,
    **kwargs
) -> LoopConnection:
    """Create a connection with fresh inlet/outlet nodes named after prefix."""
    inlet = PlantNode(f"{prefix}_inlet", temp=inlet_temp, mass_flow_rate_max_avail=max_avail)
    outlet = PlantNode(f"{prefix}_outlet", temp=inlet_temp)
    return LoopConnection(loop=loop, inlet_node=inlet, outlet_node=outlet, **kwargs)
