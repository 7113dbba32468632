"""
Tests for plant nodes, loops and the flow request resolution.
"""

import unittest

from chiller_plant.core.constants import SENSED_NODE_FLAG_VALUE
from chiller_plant.core.enums import DemandCalcScheme
from chiller_plant.core.node import PlantLoop, PlantNode, make_connection


class TestFlowResolution(unittest.TestCase):

    def setUp(self):
        self.loop = PlantLoop("chw")
        self.connection = make_connection(self.loop, "evap", inlet_temp=12.0, max_avail=30.0)

    def test_request_clamped_to_max_avail(self):
        granted = self.connection.request_flow(45.0)

        self.assertEqual(granted, 30.0)
        self.assertEqual(self.connection.inlet_node.mass_flow_rate, 30.0)
        self.assertEqual(self.connection.outlet_node.mass_flow_rate, 30.0)
        self.assertEqual(self.connection.inlet_node.mass_flow_rate_request, 45.0)

    def test_request_raised_to_min_avail(self):
        self.connection.inlet_node.mass_flow_rate_min_avail = 5.0

        self.assertEqual(self.connection.request_flow(1.0), 5.0)

    def test_negative_request_grants_zero(self):
        self.assertEqual(self.connection.request_flow(-3.0), 0.0)
        self.assertEqual(self.connection.inlet_node.mass_flow_rate_request, 0.0)

    def test_locked_loop_keeps_current_flow(self):
        self.connection.inlet_node.mass_flow_rate = 22.0
        self.loop.flow_locked = True

        self.assertTrue(self.connection.flow_locked)
        self.assertEqual(self.connection.request_flow(10.0), 22.0)
        self.assertEqual(self.connection.outlet_node.mass_flow_rate, 22.0)


class TestSetpoints(unittest.TestCase):

    def test_single_and_dual_setpoints(self):
        node = PlantNode("sp", temp_setpoint=6.67, temp_setpoint_hi=7.0, temp_setpoint_lo=5.0)

        self.assertEqual(node.setpoint_for(DemandCalcScheme.SINGLE_SETPOINT), 6.67)
        self.assertEqual(node.setpoint_for(DemandCalcScheme.DUAL_SETPOINT_DEADBAND), 7.0)

    def test_unset_setpoint(self):
        node = PlantNode("sp")

        self.assertFalse(node.has_setpoint(DemandCalcScheme.SINGLE_SETPOINT))
        self.assertEqual(PlantLoop("chw").loop_setpoint(), SENSED_NODE_FLAG_VALUE)

    def test_loop_setpoint_follows_scheme(self):
        loop = PlantLoop(
            "chw",
            demand_calc_scheme=DemandCalcScheme.DUAL_SETPOINT_DEADBAND,
            setpoint_node=PlantNode("sp", temp_setpoint_hi=8.0),
        )

        self.assertEqual(loop.loop_setpoint(), 8.0)


class TestFluidProperties(unittest.TestCase):

    def test_water_properties(self):
        loop = PlantLoop("cw")

        self.assertAlmostEqual(loop.specific_heat(20.0), 4182.0, delta=5.0)
        self.assertAlmostEqual(loop.density(4.0), 1000.0, delta=0.5)
        self.assertGreater(loop.specific_heat(0.0), loop.specific_heat(35.0))


if __name__ == '__main__':
    unittest.main()
